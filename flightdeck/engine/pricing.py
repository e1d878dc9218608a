# flightdeck/engine/pricing.py
"""
Provider pricing resolution.

Catalog rows are converted once into a tagged strategy (one class per pricing
model) and every cost goes through `price_group`, which matches on the
strategy type. Prices are integer cents until the point of use; nothing is
rounded here.
"""
import logging
import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping

from pydantic import ValidationError

from flightdeck.engine.providers import normalize_provider_key
from flightdeck.engine.sanitize import PROGRAM_TOTAL_CREDITS, clamp_credits
from flightdeck.engine.types import (
    Enrollment,
    FinancialRules,
    Hybrid,
    PerCourse,
    PerCredit,
    PerSession,
    PricingResolution,
    PricingRule,
    PricingStrategy,
    ProgressSummary,
    ProviderCost,
    ResidencyCost,
    Subscription,
)

logger = logging.getLogger(__name__)

CREDITS_PER_SESSION = 30
FALLBACK_PROVIDER_COST = 2400.0


def _dollars(cents: int | None) -> float:
    return (cents or 0) / 100


def _months_needed(count: int, courses_per_month: int | None) -> int:
    if not courses_per_month:
        return 1
    return math.ceil(count / courses_per_month)


def sessions_for_credits(credits: int) -> int:
    return max(1, math.ceil(credits / CREDITS_PER_SESSION))


def to_strategy(rule: PricingRule) -> PricingStrategy | None:
    """Convert a flat catalog row into its pricing strategy.

    Returns None when the row lacks the fields its model needs; such a row
    prices to zero, same as an unmatched provider.
    """
    try:
        if rule.model == "subscription":
            if not rule.monthly_price or not rule.courses_per_month:
                return None
            return Subscription(
                provider=rule.provider,
                monthly_price=rule.monthly_price,
                courses_per_month=rule.courses_per_month,
            )
        if rule.model == "per_session":
            if not rule.per_session_price:
                return None
            return PerSession(provider=rule.provider, per_session_price=rule.per_session_price)
        if rule.model == "per_course":
            # per_session_price doubles as the per-course price in the catalog
            return PerCourse(
                provider=rule.provider,
                per_course_price=rule.per_session_price or 0,
                monthly_price=rule.monthly_price,
                courses_per_month=rule.courses_per_month or None,
            )
        if rule.model == "per_credit":
            rate = rule.per_credit_price or rule.per_session_price
            if not rate:
                return None
            return PerCredit(
                provider=rule.provider,
                per_credit_price=rate,
                monthly_price=rule.monthly_price,
                courses_per_month=rule.courses_per_month or None,
            )
        if rule.model == "hybrid":
            return Hybrid(
                provider=rule.provider,
                monthly_price=rule.monthly_price,
                courses_per_month=rule.courses_per_month or None,
                per_credit_price=rule.per_credit_price,
                per_course_price=rule.per_session_price,
                fee=rule.fee or 0,
            )
    except ValidationError as e:
        logger.warning("invalid pricing rule provider=%s model=%s: %s", rule.provider, rule.model, e)
        return None

    logger.warning("unknown pricing model provider=%s model=%s", rule.provider, rule.model)
    return None


def price_group(strategy: PricingStrategy, count: int, total_credits: int) -> float:
    """Cost in dollars for `count` enrollments worth `total_credits` credits."""
    if isinstance(strategy, Subscription):
        months = math.ceil(count / strategy.courses_per_month)
        return _dollars(strategy.monthly_price) * months

    if isinstance(strategy, PerSession):
        return _dollars(strategy.per_session_price) * sessions_for_credits(total_credits)

    if isinstance(strategy, PerCourse):
        cost = _dollars(strategy.per_course_price) * count
        if strategy.monthly_price:
            cost += _dollars(strategy.monthly_price) * _months_needed(count, strategy.courses_per_month)
        return cost

    if isinstance(strategy, PerCredit):
        cost = _dollars(strategy.per_credit_price) * total_credits
        if strategy.monthly_price:
            cost += _dollars(strategy.monthly_price) * _months_needed(count, strategy.courses_per_month)
        return cost

    if isinstance(strategy, Hybrid):
        cost = 0.0
        if strategy.monthly_price and strategy.courses_per_month:
            cost += _dollars(strategy.monthly_price) * math.ceil(count / strategy.courses_per_month)
        # per-credit wins over per-course when both are configured
        if strategy.per_credit_price and total_credits > 0:
            cost += _dollars(strategy.per_credit_price) * total_credits
        elif strategy.per_course_price and count > 0:
            cost += _dollars(strategy.per_course_price) * count
        if strategy.fee:
            cost += _dollars(strategy.fee)
        return cost

    raise TypeError(f"Unhandled pricing strategy: {type(strategy).__name__}")


def active_strategies(rules: Iterable[PricingRule]) -> Dict[str, PricingStrategy]:
    """Normalized provider -> strategy for active rules (at most one each)."""
    strategies: Dict[str, PricingStrategy] = {}
    for rule in rules:
        if not rule.active:
            continue
        key = normalize_provider_key(rule.provider)
        if key in strategies:
            logger.warning("duplicate active pricing rule provider=%s; keeping the first", rule.provider)
            continue
        strategy = to_strategy(rule)
        if strategy is not None:
            strategies[key] = strategy
    return strategies


def _lookup_strategy(
    provider_key: str,
    strategies: Mapping[str, PricingStrategy],
    provider_lookup: Mapping[str, str],
) -> PricingStrategy | None:
    key = normalize_provider_key(provider_key)
    if key in strategies:
        return strategies[key]
    name = provider_lookup.get(key)
    if name:
        return strategies.get(normalize_provider_key(name))
    return None


def resolve_provider_costs(
    enrollments: Iterable[Enrollment],
    rules: Iterable[PricingRule],
    provider_lookup: Mapping[str, str] | None = None,
    *,
    exclude_providers: Iterable[str] = (),
) -> PricingResolution:
    """
    Price every provider group in the student's plan.

    Dropped enrollments and the excluded providers (the residency school,
    priced separately by `residency_cost`) are skipped. Providers with no
    matching rule cost nothing and are reported in `unmatched_providers`.
    """
    provider_lookup = provider_lookup or {}
    rules = list(rules)
    if not any(r.active for r in rules):
        logger.warning("no active pricing rules; using fallback provider cost=%.2f", FALLBACK_PROVIDER_COST)
        return PricingResolution(provider_cost=FALLBACK_PROVIDER_COST, fallback=True)

    strategies = active_strategies(rules)
    excluded = {normalize_provider_key(p) for p in exclude_providers}

    groups: "OrderedDict[str, List[Enrollment]]" = OrderedDict()
    for e in enrollments:
        key = normalize_provider_key(e.provider_key)
        if e.status == "dropped" or not key or key in excluded:
            continue
        groups.setdefault(key, []).append(e)

    total = 0.0
    priced: List[ProviderCost] = []
    unmatched: List[str] = []
    for key, items in groups.items():
        display = provider_lookup.get(key, items[0].provider_key)
        strategy = _lookup_strategy(key, strategies, provider_lookup)
        if strategy is None:
            logger.warning("no pricing rule for provider=%s count=%d", display, len(items))
            unmatched.append(display)
            continue

        count = len(items)
        total_credits = clamp_credits(sum(e.credits for e in items))
        cost = price_group(strategy, count, total_credits)
        total += cost
        priced.append(
            ProviderCost(
                provider=strategy.provider,
                model=strategy.model,
                count=count,
                total_credits=total_credits,
                cost=cost,
            )
        )

    if groups and total == 0:
        logger.warning("provider cost is zero despite enrollments providers=%s", list(groups))

    return PricingResolution(provider_cost=total, providers=priced, unmatched_providers=unmatched)


def residency_session_cost(
    rules: Iterable[PricingRule],
    financial_rules: FinancialRules,
    residency_provider_key: str = "umpi",
) -> float:
    """Per-session price from the active residency rule, else the configured default."""
    residency = normalize_provider_key(residency_provider_key)
    for rule in rules:
        if rule.active and normalize_provider_key(rule.provider) == residency and rule.per_session_price:
            return _dollars(rule.per_session_price)
    return financial_rules.umpi_session_cost


def residency_cost(
    progress: ProgressSummary,
    rules: Iterable[PricingRule],
    financial_rules: FinancialRules,
    *,
    residency_provider_key: str = "umpi",
    program_total: int = PROGRAM_TOTAL_CREDITS,
) -> ResidencyCost:
    """Sessions still needed at the residency school and what they cost."""
    remaining = max(0, program_total - progress.completed - progress.in_progress)
    sessions = sessions_for_credits(remaining)

    session_cost = residency_session_cost(rules, financial_rules, residency_provider_key)

    return ResidencyCost(
        remaining_credits=remaining,
        sessions_needed=sessions,
        session_cost=session_cost,
        total=sessions * session_cost,
    )
