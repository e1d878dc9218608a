# flightdeck/engine/flight_deck.py
"""
Flight deck pipeline: the single pure entry point of the engine.

progress + pace -> pricing -> payment schedule -> ETA -> insights

Inputs are already fetched records; nothing here touches the database or the
clock (pass `today` for reproducible schedules).
"""
import logging
from datetime import date
from typing import Dict, List

from pydantic import Field

from flightdeck.engine.eta import calculate_eta
from flightdeck.engine.insights import calculate_alerts, calculate_trend, generate_insights
from flightdeck.engine.pace import estimate_pace
from flightdeck.engine.pricing import residency_cost, resolve_provider_costs
from flightdeck.engine.progress import aggregate_progress
from flightdeck.engine.sanitize import PROGRAM_TOTAL_CREDITS, clamp
from flightdeck.engine.schedule import calculate_financials
from flightdeck.engine.types import (
    CostResult,
    CreditsResult,
    DataQualityIssue,
    DurationRule,
    Enrollment,
    ExamOverride,
    FinancialInputs,
    FinancialProjection,
    FinancialRules,
    FlightDeckResult,
    FrozenModel,
    PaceEstimate,
    PaceResult,
    PaymentMethod,
    PaymentRecord,
    PaymentsResult,
    PricingRule,
    PriorSnapshot,
    ProgressSummary,
    ReplacedProvider,
    WeeklyMetric,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_HOURS = 12.0
DEFAULT_BASELINE_SESSIONS = 2
DEFAULT_REMAINING_UL_CREDITS = 10


class StudentProfile(FrozenModel):
    name: str = ""
    target_hours: float = DEFAULT_TARGET_HOURS
    pace_months: int = Field(default=12, ge=1, le=60)
    payment_method: PaymentMethod = "card"


class ProgressInput(FrozenModel):
    enrollments: List[Enrollment] = Field(default_factory=list)


class PaceInput(FrozenModel):
    weekly_metrics: List[WeeklyMetric] = Field(default_factory=list)


class FinancialContext(FrozenModel):
    rules: FinancialRules
    duration_rules: List[DurationRule] = Field(default_factory=list)
    pricing_rules: List[PricingRule] = Field(default_factory=list)
    provider_lookup: Dict[str, str] = Field(default_factory=dict)
    residency_provider_key: str = "umpi"
    exam: ExamOverride | None = None
    replaced_provider: ReplacedProvider | None = None
    payments_made: List[PaymentRecord] = Field(default_factory=list)


class PlanHints(FrozenModel):
    remaining_ul_credits: int = DEFAULT_REMAINING_UL_CREDITS
    baseline_sessions: int = DEFAULT_BASELINE_SESSIONS
    # True when the hints are cold-start defaults rather than student data
    defaulted: bool = False


class FlightDeckInput(FrozenModel):
    student_profile: StudentProfile = Field(default_factory=StudentProfile)
    progress: ProgressInput = Field(default_factory=ProgressInput)
    pace: PaceInput = Field(default_factory=PaceInput)
    financials: FinancialContext
    plan_hints: PlanHints = Field(default_factory=PlanHints)
    prior_snapshots: PriorSnapshot | None = None
    today: date | None = None


def calculate_credits(
    progress: ProgressSummary,
    program_total: int = PROGRAM_TOTAL_CREDITS,
    remaining_ul_credits: int = DEFAULT_REMAINING_UL_CREDITS,
) -> CreditsResult:
    earned = progress.completed + progress.in_progress
    return CreditsResult(
        completed=progress.completed,
        in_progress=progress.in_progress,
        remaining=max(0, program_total - earned),
        total=program_total,
        is_over_target=earned > program_total,
        overage_amount=max(0, earned - program_total),
        percent_complete=progress.completed / program_total * 100,
        residency_completed=progress.residency_completed,
        remaining_ul_credits=max(0, remaining_ul_credits),
    )


def calculate_pace(estimate: PaceEstimate, target_hours: float) -> PaceResult:
    target = clamp(target_hours, 0, 168)
    percent = estimate.weekly_hours / target * 100 if target > 0 else 0.0
    if percent < 70:
        zone = "slow"
    elif percent > 100:
        zone = "excellent"
    else:
        zone = "on_track"
    return PaceResult(
        current_hours=estimate.weekly_hours,
        target_hours=target,
        percent_of_target=percent,
        zone=zone,
        hours_per_credit=estimate.hours_per_credit,
    )


def calculate_cost(
    projection: FinancialProjection,
    provider_cost: float,
    sessions: int,
    session_cost: float,
    lumiere_fee: float,
    baseline_sessions: int,
) -> CostResult:
    if projection.over_15k:
        state = "Over Budget"
    elif sessions > baseline_sessions:
        state = "Caution"
    else:
        state = "On Track"
    return CostResult(
        lumiere_fee=lumiere_fee,
        provider_cost=round(provider_cost, 2),
        umpi_cost=round(sessions * session_cost, 2),
        projected_umpi_sessions=sessions,
        umpi_session_cost=session_cost,
        projected_total=projection.projected_total,
        state=state,
    )


def calculate_payments(projection: FinancialProjection, payments_made: List[PaymentRecord]) -> PaymentsResult:
    paid = sum(p.amount for p in payments_made)
    return PaymentsResult(
        upfront_due=projection.upfront_due,
        monthly_payment=projection.monthly_payment,
        payment_months=projection.payment_months,
        paid_to_date=round(paid, 2),
        remaining_balance=round(max(0.0, projection.projected_total - paid), 2),
        schedule=projection.monthly_schedule,
    )


def calculate_flight_deck(data: FlightDeckInput) -> FlightDeckResult:
    profile = data.student_profile
    fin = data.financials
    issues: List[DataQualityIssue] = []

    # 1. progress + pace
    enrollments = data.progress.enrollments
    progress = aggregate_progress(enrollments, residency_provider_key=fin.residency_provider_key)
    estimate = estimate_pace(
        data.pace.weekly_metrics,
        [e for e in enrollments if e.status == "completed"],
    )
    if estimate.weeks_sampled == 0:
        issues.append(DataQualityIssue(code="pace_defaulted", message="No study hours logged; default pace used."))

    # 2. pricing
    pricing = resolve_provider_costs(
        enrollments,
        fin.pricing_rules,
        fin.provider_lookup,
        exclude_providers=[fin.residency_provider_key],
    )
    residency = residency_cost(
        progress,
        fin.pricing_rules,
        fin.rules,
        residency_provider_key=fin.residency_provider_key,
    )
    sessions = residency.sessions_needed
    if pricing.fallback:
        sessions = data.plan_hints.baseline_sessions
        issues.append(
            DataQualityIssue(code="pricing_fallback", message="No active pricing rules; fallback estimate used.")
        )
    for provider in pricing.unmatched_providers:
        issues.append(
            DataQualityIssue(code="unmatched_provider", message=f"No active pricing rule for provider {provider}.")
        )
    if data.plan_hints.defaulted:
        issues.append(
            DataQualityIssue(
                code="plan_hints_defaulted",
                message="No progress metrics on file; baseline sessions and UL credits are defaults.",
            )
        )

    # 3. payment schedule
    projection = calculate_financials(
        FinancialInputs(
            pace_months=profile.pace_months,
            sessions_actual=sessions,
            phase1_cost=pricing.provider_cost,
            exam=fin.exam,
            replaced_provider=fin.replaced_provider,
            payment_method=profile.payment_method,
        ),
        fin.rules.model_copy(update={"umpi_session_cost": residency.session_cost}),
        fin.duration_rules,
        today=data.today,
    )

    # 4. ETA
    credits = calculate_credits(progress, remaining_ul_credits=data.plan_hints.remaining_ul_credits)
    eta = calculate_eta(progress.completed, progress.in_progress, estimate.weekly_hours, estimate.hours_per_credit)
    if eta.degraded:
        issues.append(DataQualityIssue(code="eta_degraded", message="ETA computed from default pace."))

    # 5. insights
    pace = calculate_pace(estimate, profile.target_hours)
    cost = calculate_cost(
        projection,
        pricing.provider_cost,
        sessions,
        residency.session_cost,
        fin.rules.lumiere_fee,
        data.plan_hints.baseline_sessions,
    )
    prior = data.prior_snapshots
    trend = calculate_trend(projection.projected_total, prior.last_week_projected_total if prior else None)
    alerts = calculate_alerts(pace, eta, projection, residency.session_cost)
    insights = generate_insights(credits, pace, eta, cost, projection, trend, fin.rules, prior)

    for issue in issues:
        logger.warning("flight deck data quality code=%s student=%s: %s", issue.code, profile.name, issue.message)

    return FlightDeckResult(
        credits=credits,
        pace=pace,
        eta=eta,
        cost=cost,
        financials=projection,
        payments=calculate_payments(projection, fin.payments_made),
        trend=trend,
        alerts=alerts,
        insights=insights,
        codes=progress.codes,
        data_quality=issues,
    )
