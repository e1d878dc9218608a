"""
End-to-end engine pipeline.

The pipeline is a pure function: it never raises for ordinary edge cases and
reports degraded inputs through data_quality instead.
"""
from datetime import date, timedelta

import pytest

from flightdeck.engine.flight_deck import (
    FinancialContext,
    FlightDeckInput,
    PaceInput,
    PlanHints,
    ProgressInput,
    StudentProfile,
    calculate_flight_deck,
)
from flightdeck.engine.types import (
    Enrollment,
    FinancialRules,
    PaymentRecord,
    PricingRule,
    PriorSnapshot,
    WeeklyMetric,
)

TODAY = date(2025, 1, 13)
RULES = [
    PricingRule(provider="Sophia", model="subscription", monthly_price=9900, courses_per_month=2),
    PricingRule(provider="Study.com", model="per_credit", per_credit_price=5900),
    PricingRule(provider="UMPI", model="per_session", per_session_price=180000),
]


def enrollments():
    rows = [Enrollment(provider_key="sophia", credits=3, status="completed", code=f"SOPH{i}") for i in range(4)]
    rows += [Enrollment(provider_key="studycom", credits=3, status="completed") for _ in range(2)]
    rows += [Enrollment(provider_key="umpi", credits=3, status="completed") for _ in range(2)]
    rows.append(Enrollment(provider_key="sophia", credits=3, status="in_progress"))
    rows.append(Enrollment(provider_key="sophia", credits=3, status="dropped"))
    return rows


def metrics(hours=12, n=6):
    return [WeeklyMetric(week_of=TODAY - timedelta(weeks=i), hours_studied=hours) for i in range(n)]


def make_input(**overrides):
    data = dict(
        student_profile=StudentProfile(name="Ada", target_hours=12, pace_months=12, payment_method="card"),
        progress=ProgressInput(enrollments=enrollments()),
        pace=PaceInput(weekly_metrics=metrics()),
        financials=FinancialContext(
            rules=FinancialRules(),
            pricing_rules=RULES,
            provider_lookup={"studycom": "Study.com", "sophia": "Sophia", "umpi": "UMPI"},
        ),
        today=TODAY,
    )
    data.update(overrides)
    return FlightDeckInput(**data)


def test_full_pipeline():
    result = calculate_flight_deck(make_input())

    assert result.credits.completed == 24
    assert result.credits.in_progress == 3
    assert result.credits.remaining == 93
    assert result.credits.residency_completed == 6

    # Sophia: 5 active courses -> 3 months x $99; Study.com: 6 credits x $59
    assert result.cost.provider_cost == pytest.approx(651.0)
    # 93 credits left -> 4 residency sessions
    assert result.cost.projected_umpi_sessions == 4
    assert result.cost.state == "Caution"
    assert result.financials.projected_total == pytest.approx(7000 + 651 + 4 * 1800)
    assert result.financials.start_date == TODAY

    assert result.pace.current_hours == pytest.approx(12)
    assert result.pace.zone == "on_track"
    assert result.eta.exceeds_one_year
    assert result.alerts.level == "red"
    assert not result.trend.available
    assert result.data_quality == []
    assert result.codes[:4] == ["SOPH0", "SOPH1", "SOPH2", "SOPH3"]


def test_deterministic_for_same_inputs():
    data = make_input()
    assert calculate_flight_deck(data).model_dump_json() == calculate_flight_deck(data).model_dump_json()


def test_fallback_pricing_uses_baseline_sessions():
    data = make_input(
        pace=PaceInput(),
        financials=FinancialContext(rules=FinancialRules()),
    )

    result = calculate_flight_deck(data)

    assert result.cost.provider_cost == 2400.0
    assert result.cost.projected_umpi_sessions == 2
    assert result.financials.projected_total == pytest.approx(13000.0)
    assert {i.code for i in result.data_quality} == {"pace_defaulted", "pricing_fallback"}


def test_unmatched_provider_reported():
    rows = enrollments() + [Enrollment(provider_key="Mystery U", credits=3, status="completed")]
    result = calculate_flight_deck(make_input(progress=ProgressInput(enrollments=rows)))

    issues = [i for i in result.data_quality if i.code == "unmatched_provider"]
    assert len(issues) == 1
    assert "Mystery U" in issues[0].message


def test_defaulted_plan_hints_are_flagged():
    result = calculate_flight_deck(make_input(plan_hints=PlanHints(defaulted=True)))
    assert "plan_hints_defaulted" in {i.code for i in result.data_quality}


def test_remaining_ul_credits_reported():
    result = calculate_flight_deck(make_input(plan_hints=PlanHints(remaining_ul_credits=18)))
    assert result.credits.remaining_ul_credits == 18


def test_corrupt_credits_priced_within_program_length():
    rows = [Enrollment(provider_key="studycom", credits=1_000_000, status="completed")]
    result = calculate_flight_deck(make_input(progress=ProgressInput(enrollments=rows)))

    assert result.credits.completed == 120
    # 120 credits x $59, never the raw value
    assert result.cost.provider_cost == pytest.approx(120 * 59.0)


def test_empty_student_gets_complete_result():
    result = calculate_flight_deck(FlightDeckInput(financials=FinancialContext(rules=FinancialRules()), today=TODAY))

    assert result.credits.completed == 0
    assert result.eta.months == 42
    assert len(result.payments.schedule) == 12
    assert result.insights.summary


def test_trend_and_payments_from_history():
    data = make_input(
        prior_snapshots=PriorSnapshot(last_week_projected_total=14000, completed_credits=20),
        financials=FinancialContext(
            rules=FinancialRules(),
            pricing_rules=RULES,
            payments_made=[
                PaymentRecord(paid_on=date(2024, 12, 1), amount=7000),
                PaymentRecord(paid_on=date(2025, 1, 1), amount=500.5),
            ],
        ),
    )

    result = calculate_flight_deck(data)

    assert result.trend.available
    assert result.trend.direction == "up"
    assert result.payments.paid_to_date == 7500.5
    assert result.payments.remaining_balance == pytest.approx(result.financials.projected_total - 7500.5)
    # 20 -> 24 completed credits crosses nothing (first milestone is 30)
    assert not any("complete" in c.message for c in result.insights.celebrations)
