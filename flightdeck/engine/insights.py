# flightdeck/engine/insights.py
"""
Rule-based alerts, warnings, celebrations and next-best actions.

Every rule reads the already computed credits / pace / ETA / cost figures;
nothing here is persisted. Milestones are recomputed from totals on each
call rather than flagged as "already celebrated".
"""
import math
from typing import List

from flightdeck.engine.eta import ONE_YEAR_MONTHS, WEEKS_PER_MONTH
from flightdeck.engine.types import (
    AlertResult,
    CostResult,
    CreditsResult,
    ETAResult,
    FinancialProjection,
    FinancialRules,
    InsightItem,
    Insights,
    PaceResult,
    PriorSnapshot,
    Recommendations,
    TrendResult,
)

SLOW_PACE_PCT = 70.0
APPROACHING_MARGIN = 1000.0
TREND_FLAT_BAND = 1.0
TREND_ALERT_PCT = 5.0
UNDER_BUDGET_TOTAL = 13000.0
FAST_TRACK_MONTHS = 8
MILESTONE_PERCENTS = (25, 50, 75, 100)
MAX_WARNINGS = 3
MAX_CELEBRATIONS = 3
MAX_PER_BUCKET = 2


def _top(items: List[InsightItem], limit: int) -> List[InsightItem]:
    # sorted() is stable: equal priorities keep rule order
    return sorted(items, key=lambda i: i.priority)[:limit]


def _money(value: float) -> str:
    return f"${value:,.0f}"


def calculate_trend(current_total: float, prior_total: float | None) -> TrendResult:
    if prior_total is None:
        return TrendResult(available=False, direction="flat")

    delta = current_total - prior_total
    percent = delta / prior_total * 100 if prior_total > 0 else 0.0
    if abs(delta) < TREND_FLAT_BAND:
        direction = "flat"
    elif delta > 0:
        direction = "up"
    else:
        direction = "down"
    return TrendResult(available=True, direction=direction, delta_total=delta, percent_change=percent)


def calculate_alerts(
    pace: PaceResult,
    eta: ETAResult,
    projection: FinancialProjection,
    umpi_session_cost: float,
) -> AlertResult:
    messages: List[str] = []
    one_year_warning = None

    if eta.exceeds_one_year:
        messages.append(f"Timeline exceeds 12 months ({eta.months} months)")
        one_year_warning = (
            f"Exceeds 12 months - additional UMPI session (~{_money(umpi_session_cost)}) likely."
        )
    if pace.percent_of_target < SLOW_PACE_PCT:
        messages.append("Study pace significantly below target")
    if projection.over_15k:
        messages.append("Projected cost over budget")

    level = "red" if messages else "green"
    if not messages:
        messages.append("On track for timely completion")
    return AlertResult(level=level, messages=messages, one_year_warning=one_year_warning)


def budget_warnings(
    cost: CostResult,
    projection: FinancialProjection,
    trend: TrendResult,
    rules: FinancialRules,
) -> List[InsightItem]:
    warnings: List[InsightItem] = []
    threshold = rules.total_projection

    if projection.over_15k:
        warnings.append(
            InsightItem(
                message=f"Budget exceeded by {_money(cost.projected_total - threshold)}.",
                icon="dollar",
                severity="warning",
                priority=1,
            )
        )
        for reason in projection.overage_reasons:
            warnings.append(
                InsightItem(
                    message=f"{reason} push the total past {_money(threshold)}.",
                    icon="alert",
                    severity="warning",
                    priority=1,
                )
            )
    elif cost.projected_total > threshold - APPROACHING_MARGIN:
        warnings.append(
            InsightItem(
                message=f"Within {_money(threshold - cost.projected_total)} of the budget limit. Monitor closely.",
                icon="alert",
                severity="warning",
                priority=2,
            )
        )

    if trend.available and trend.direction == "up" and (trend.percent_change or 0) > TREND_ALERT_PCT:
        warnings.append(
            InsightItem(
                message=f"Costs increased {trend.percent_change:.1f}% from last week. Review pace and session planning.",
                icon="trend-up",
                severity="warning",
                priority=2,
            )
        )

    return _top(warnings, MAX_WARNINGS)


def _milestone_message(percent: int, credits: CreditsResult) -> str:
    if percent >= 100:
        return f"All {credits.total} credits complete. Degree requirements met!"
    if percent >= 75:
        return "75% complete! Three-quarters of the way to your degree!"
    if percent >= 50:
        return f"Halfway there! {credits.completed} credits down, {credits.remaining} to go!"
    return "25% complete! Great start on your degree journey!"


def milestone_celebrations(credits: CreditsResult, prior: PriorSnapshot | None) -> List[InsightItem]:
    """Milestones crossed since the prior snapshot.

    Without a prior snapshot only the highest percentage reached is shown,
    and residency counts as just started if any residency credit exists.
    Snapshots are recorded weekly, so that state lasts one week at most.
    """
    items: List[InsightItem] = []
    prior_completed = prior.completed_credits if prior else None
    prior_residency = prior.residency_completed if prior else None

    if credits.residency_completed > 0 and not prior_residency:
        items.append(
            InsightItem(
                message="First UMPI credit logged - residency is underway!",
                icon="check",
                severity="success",
                priority=1,
            )
        )

    reached = [
        p for p in MILESTONE_PERCENTS if credits.completed >= math.ceil(credits.total * p / 100)
    ]
    if prior_completed is None:
        crossed = reached[-1:]
    else:
        crossed = [p for p in reached if prior_completed < math.ceil(credits.total * p / 100)]

    for percent in reversed(crossed):
        items.append(
            InsightItem(
                message=_milestone_message(percent, credits),
                icon="check",
                severity="success",
                priority=1 if percent >= 50 else 2,
            )
        )
    return items


def celebrations(
    credits: CreditsResult,
    pace: PaceResult,
    cost: CostResult,
    eta: ETAResult,
    prior: PriorSnapshot | None,
) -> List[InsightItem]:
    items = milestone_celebrations(credits, prior)

    if pace.percent_of_target >= 100:
        items.append(
            InsightItem(
                message=(
                    f"Excellent pace! You're studying {pace.current_hours:.1f} hrs/week "
                    f"({round(pace.percent_of_target)}% of target)."
                ),
                icon="check",
                severity="success",
                priority=2,
            )
        )
    if cost.projected_total < UNDER_BUDGET_TOTAL:
        items.append(
            InsightItem(
                message=f"Under budget! Projected total of {_money(cost.projected_total)} is excellent.",
                icon="dollar",
                severity="success",
                priority=2,
            )
        )
    if 0 < eta.months < FAST_TRACK_MONTHS:
        items.append(
            InsightItem(
                message=f"Fast track! On pace to finish in just {eta.months} months.",
                icon="clock",
                severity="success",
                priority=2,
            )
        )
    return _top(items, MAX_CELEBRATIONS)


def hours_to_finish_in_year(credits: CreditsResult, pace: PaceResult) -> int:
    return math.ceil(credits.remaining * pace.hours_per_credit / (ONE_YEAR_MONTHS * WEEKS_PER_MONTH))


def recommendations(
    credits: CreditsResult,
    pace: PaceResult,
    eta: ETAResult,
    cost: CostResult,
    projection: FinancialProjection,
    rules: FinancialRules,
) -> Recommendations:
    pace_recs: List[InsightItem] = []
    credit_recs: List[InsightItem] = []
    budget_recs: List[InsightItem] = []

    # Pace
    needed = hours_to_finish_in_year(credits, pace)
    if eta.exceeds_one_year and needed > pace.current_hours:
        pace_recs.append(
            InsightItem(
                message=(
                    f"Increase to {needed} hrs/week to finish within 12 months and avoid an "
                    f"extra session (~{_money(cost.umpi_session_cost)})."
                ),
                icon="clock",
                severity="warning",
                priority=1,
            )
        )
    elif pace.percent_of_target < 100:
        pace_recs.append(
            InsightItem(
                message=f"Increase to {math.ceil(pace.target_hours)} hrs/week to finish on time.",
                icon="clock",
                priority=2,
            )
        )
    else:
        pace_recs.append(
            InsightItem(
                message=f"Maintain your current {pace.current_hours:.1f} hrs/week pace to stay on track.",
                icon="check",
                severity="success",
                priority=3,
            )
        )

    # Credits
    if credits.remaining > 0 and eta.exceeds_one_year:
        credit_recs.append(
            InsightItem(
                message="Take one more course this term to lift your credit velocity.",
                icon="lightbulb",
                priority=1,
            )
        )
    if credits.remaining > 0 and eta.months > 0:
        credit_recs.append(
            InsightItem(
                message=(
                    f"Complete ~{math.ceil(credits.remaining / eta.months)} credits per month "
                    f"to finish in {eta.months} months."
                ),
                icon="lightbulb",
                priority=2,
            )
        )
    if credits.in_progress > 0:
        credit_recs.append(
            InsightItem(
                message=f"Focus on completing your {credits.in_progress} in-progress credits first.",
                icon="lightbulb",
                priority=2,
            )
        )

    # Budget
    if projection.payment_method == "card" and rules.card_fee_pct > rules.ach_fee_pct:
        ach_total = projection.base_monthly_payment * rules.ach_fee_pct / 100 * projection.payment_months
        savings = projection.payment_method_fees.total - ach_total
        budget_recs.append(
            InsightItem(
                message=f"Consider ACH to avoid card fees (save ~{_money(savings)}).",
                icon="dollar",
                priority=1,
            )
        )
    if cost.state == "Over Budget":
        budget_recs.append(
            InsightItem(
                message=(
                    f"Finishing one month faster could save ~{_money(cost.umpi_session_cost)}. "
                    "Consider increasing study hours."
                ),
                icon="dollar",
                priority=1,
            )
        )
    if cost.projected_umpi_sessions > rules.baseline_sessions:
        budget_recs.append(
            InsightItem(
                message=(
                    f"Projected {cost.projected_umpi_sessions} UMPI sessions. "
                    f"Aim for {rules.baseline_sessions} sessions to optimize costs."
                ),
                icon="dollar",
                priority=2,
            )
        )

    return Recommendations(
        pace=_top(pace_recs, MAX_PER_BUCKET),
        credits=_top(credit_recs, MAX_PER_BUCKET),
        budget=_top(budget_recs, MAX_PER_BUCKET),
    )


def generate_insights(
    credits: CreditsResult,
    pace: PaceResult,
    eta: ETAResult,
    cost: CostResult,
    projection: FinancialProjection,
    trend: TrendResult,
    rules: FinancialRules,
    prior: PriorSnapshot | None = None,
) -> Insights:
    summary = f"At this pace, you'll finish in {eta.months} months and pay {_money(cost.projected_total)}."

    smart_tip = None
    needed = hours_to_finish_in_year(credits, pace)
    if eta.exceeds_one_year and needed > pace.current_hours:
        smart_tip = (
            f"Add {math.ceil(needed - pace.current_hours)} hrs/week to avoid one extra "
            f"UMPI session (~{_money(cost.umpi_session_cost)})."
        )
    elif SLOW_PACE_PCT <= pace.percent_of_target < 100:
        smart_tip = f"Increase pace by {math.ceil(pace.target_hours - pace.current_hours)} hrs/week to stay on track."

    return Insights(
        summary=summary,
        smart_tip=smart_tip,
        budget_warnings=budget_warnings(cost, projection, trend, rules),
        celebrations=celebrations(credits, pace, cost, eta, prior),
        recommendations=recommendations(credits, pace, eta, cost, projection, rules),
    )
