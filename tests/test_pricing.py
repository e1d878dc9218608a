"""
Pricing resolution across the five pricing models.

Catalog prices are integer cents; costs come back in dollars, unrounded.
"""
import pytest

from flightdeck.engine.pricing import (
    FALLBACK_PROVIDER_COST,
    active_strategies,
    price_group,
    residency_cost,
    resolve_provider_costs,
    to_strategy,
)
from flightdeck.engine.providers import build_lookup, normalize_provider_key
from flightdeck.engine.types import (
    Enrollment,
    FinancialRules,
    Hybrid,
    PerCourse,
    PerCredit,
    PerSession,
    PricingRule,
    ProgressSummary,
    Subscription,
)


def courses(provider, n, credits=3, status="completed"):
    return [Enrollment(provider_key=provider, credits=credits, status=status) for _ in range(n)]


class TestPriceGroup:
    def test_subscription_rounds_months_up(self):
        strategy = Subscription(provider="Sophia", monthly_price=9900, courses_per_month=2)
        assert price_group(strategy, count=5, total_credits=15) == pytest.approx(99.0 * 3)

    def test_per_session_has_one_session_minimum(self):
        strategy = PerSession(provider="UMPI", per_session_price=180000)
        assert price_group(strategy, count=1, total_credits=0) == pytest.approx(1800.0)
        assert price_group(strategy, count=10, total_credits=31) == pytest.approx(3600.0)

    def test_per_course_with_monthly_base(self):
        strategy = PerCourse(provider="Saylor", per_course_price=2500, monthly_price=1000, courses_per_month=3)
        # 4 courses x $25 + 2 months x $10
        assert price_group(strategy, count=4, total_credits=12) == pytest.approx(120.0)

    def test_per_credit(self):
        strategy = PerCredit(provider="Study.com", per_credit_price=5900)
        assert price_group(strategy, count=3, total_credits=9) == pytest.approx(531.0)

    def test_hybrid_prefers_per_credit_over_per_course(self):
        strategy = Hybrid(
            provider="Mix",
            monthly_price=5000,
            courses_per_month=2,
            per_credit_price=1000,
            per_course_price=99999,
            fee=2500,
        )
        # $50 x 2 months + $10 x 9 credits + $25 fee
        assert price_group(strategy, count=3, total_credits=9) == pytest.approx(215.0)

    def test_hybrid_falls_back_to_per_course(self):
        strategy = Hybrid(provider="Mix", per_course_price=4000)
        assert price_group(strategy, count=2, total_credits=6) == pytest.approx(80.0)


class TestToStrategy:
    def test_rule_missing_required_fields_is_skipped(self):
        assert to_strategy(PricingRule(provider="Sophia", model="subscription", monthly_price=9900)) is None

    def test_unknown_model_is_skipped(self):
        assert to_strategy(PricingRule(provider="Sophia", model="barter")) is None

    def test_per_course_reads_per_session_price(self):
        strategy = to_strategy(PricingRule(provider="Saylor", model="per_course", per_session_price=2500))
        assert isinstance(strategy, PerCourse)
        assert strategy.per_course_price == 2500

    def test_only_first_active_rule_per_provider(self):
        rules = [
            PricingRule(provider="Study.com", model="per_credit", per_credit_price=5900),
            PricingRule(provider="study-com", model="per_credit", per_credit_price=1),
        ]
        strategies = active_strategies(rules)
        assert strategies["studycom"].per_credit_price == 5900


def test_provider_keys_are_case_and_punctuation_insensitive():
    assert normalize_provider_key("Study.com") == normalize_provider_key("STUDY_COM") == "studycom"


class TestResolveProviderCosts:
    RULES = [
        PricingRule(provider="Sophia", model="subscription", monthly_price=9900, courses_per_month=2),
        PricingRule(provider="Study.com", model="per_credit", per_credit_price=5900),
        PricingRule(provider="Old Provider", model="per_credit", per_credit_price=100, ends_on="2024-01-01"),
    ]

    def test_sums_provider_groups(self):
        enrollments = courses("sophia", 4) + courses("Study.com", 2)
        result = resolve_provider_costs(enrollments, self.RULES)
        assert result.provider_cost == pytest.approx(99.0 * 2 + 59.0 * 6)
        assert not result.fallback
        assert {p.provider for p in result.providers} == {"Sophia", "Study.com"}

    def test_dropped_and_excluded_providers_not_priced(self):
        enrollments = courses("sophia", 2, status="dropped") + courses("umpi", 4) + courses("Study.com", 1)
        result = resolve_provider_costs(enrollments, self.RULES, exclude_providers=["UMPI"])
        assert result.provider_cost == pytest.approx(177.0)
        assert result.unmatched_providers == []

    def test_unmatched_provider_costs_nothing(self):
        enrollments = courses("sophia", 2) + courses("mystery", 3)
        result = resolve_provider_costs(enrollments, self.RULES)
        assert result.provider_cost == pytest.approx(99.0)
        assert result.unmatched_providers == ["mystery"]

    def test_inactive_rule_is_ignored(self):
        result = resolve_provider_costs(courses("Old Provider", 1), self.RULES)
        assert result.provider_cost == 0
        assert result.unmatched_providers == ["Old Provider"]

    def test_lookup_resolves_key_to_display_name(self):
        rules = [PricingRule(provider="Straighterline", model="per_credit", per_credit_price=1000)]
        lookup = build_lookup([("sl", "Straighterline")])
        result = resolve_provider_costs(courses("sl", 1), rules, lookup)
        assert result.provider_cost == pytest.approx(30.0)

    def test_no_active_rules_returns_fallback(self):
        result = resolve_provider_costs(courses("sophia", 3), [])
        assert result.fallback
        assert result.provider_cost == FALLBACK_PROVIDER_COST


class TestResidencyCost:
    def test_sessions_from_remaining_credits(self):
        cost = residency_cost(ProgressSummary(completed=50, in_progress=9), [], FinancialRules())
        # 61 remaining -> 3 sessions at the default $1,800
        assert cost.remaining_credits == 61
        assert cost.sessions_needed == 3
        assert cost.total == pytest.approx(5400.0)

    def test_at_least_one_session_when_done(self):
        cost = residency_cost(ProgressSummary(completed=120), [], FinancialRules())
        assert cost.sessions_needed == 1

    def test_residency_rule_overrides_session_cost(self):
        rules = [PricingRule(provider="UMPI", model="per_session", per_session_price=200000)]
        cost = residency_cost(ProgressSummary(completed=100), rules, FinancialRules())
        assert cost.session_cost == pytest.approx(2000.0)


class TestCorruptCatalogAndEnrollments:
    def test_enrollment_credits_clamped_at_ingestion(self):
        assert Enrollment(provider_key="sophia", credits=1_000_000).credits == 120
        assert Enrollment(provider_key="sophia", credits=-5).credits == 0

    def test_group_credits_never_exceed_program_length(self):
        rules = [PricingRule(provider="Sophia", model="per_credit", per_credit_price=100)]
        enrollments = courses("sophia", 3, credits=1_000_000)

        result = resolve_provider_costs(enrollments, rules)

        assert result.providers[0].total_credits == 120
        assert result.provider_cost == pytest.approx(120.0)

    @pytest.mark.parametrize("model", ["per_course", "per_credit", "hybrid"])
    def test_negative_courses_per_month_rule_is_skipped(self, model):
        rule = PricingRule(
            provider="Saylor",
            model=model,
            per_session_price=10000,
            per_credit_price=10000,
            monthly_price=9900,
            courses_per_month=-1,
        )
        assert to_strategy(rule) is None

    def test_negative_courses_per_month_does_not_offset_cost(self):
        rules = [
            PricingRule(
                provider="Saylor",
                model="per_course",
                per_session_price=10000,
                monthly_price=9900,
                courses_per_month=-1,
            )
        ]
        result = resolve_provider_costs(courses("saylor", 3), rules)

        assert result.provider_cost == 0
        assert result.unmatched_providers == ["saylor"]

    def test_zero_courses_per_month_means_single_month(self):
        strategy = to_strategy(
            PricingRule(provider="Saylor", model="per_course", per_session_price=2500, monthly_price=1000, courses_per_month=0)
        )
        # 3 x $25 + 1 month x $10
        assert price_group(strategy, count=3, total_credits=9) == pytest.approx(85.0)
