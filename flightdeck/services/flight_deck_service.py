# flightdeck/services/flight_deck_service.py
"""
Flight deck orchestration: gather a student's records, run the engine.

Data flow:
1. fetch profile, enrollments, recent study hours, pricing catalog, provider
   lookup, financial + duration rules, plan hints, prior snapshot and
   payments, concurrently, one session per fetch
2. normalize rows into engine inputs
3. calculate_flight_deck (pure)
4. record this week's snapshot so next week has a trend baseline
"""
import asyncio
import logging
import uuid
from datetime import date
from typing import Callable, List, Tuple

from sqlalchemy.orm import Session

from flightdeck.db.models.duration_rule import DurationRule as DurationRuleRow
from flightdeck.db.models.enrollment import Enrollment as EnrollmentRow
from flightdeck.db.models.financial_rules import FinancialRules as FinancialRulesRow
from flightdeck.db.models.payment import Payment
from flightdeck.db.models.plan import Plan
from flightdeck.db.models.plan_financials import PlanFinancials
from flightdeck.db.models.pricing_rule import PricingRule as PricingRuleRow
from flightdeck.db.models.provider import Provider
from flightdeck.db.models.student_metrics import StudentMetrics
from flightdeck.db.models.user import User
from flightdeck.db.models.weekly_snapshot import WeeklySnapshot
from flightdeck.engine.errors import FinancialRulesNotConfigured
from flightdeck.engine.flight_deck import (
    DEFAULT_REMAINING_UL_CREDITS,
    FinancialContext,
    FlightDeckInput,
    PaceInput,
    PlanHints,
    ProgressInput,
    StudentProfile,
    calculate_flight_deck,
)
from flightdeck.engine.types import (
    DurationRule,
    Enrollment,
    ExamOverride,
    FinancialRules,
    FlightDeckResult,
    PaymentRecord,
    PricingRule,
    PriorSnapshot,
    ReplacedProvider,
    WeeklyMetric,
)
from flightdeck.services.providers import build_provider_lookup
from flightdeck.services.weekly_metrics_service import get_latest_weekly_metrics, get_week_start
from flightdeck.settings import settings

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class StudentNotFound(Exception):
    pass


# -------------------------
# Row -> engine input mappers
# -------------------------
def to_financial_rules(row: FinancialRulesRow) -> FinancialRules:
    return FinancialRules(
        total_projection=row.total_projection,
        lumiere_fee=row.lumiere_fee,
        umpi_session_cost=row.umpi_session_cost,
        baseline_sessions=row.baseline_sessions,
        card_fee_pct=row.card_fee_pct,
        ach_fee_pct=row.ach_fee_pct,
        wire_fee_flat=row.wire_fee_flat,
    )


def to_pricing_rule(row: PricingRuleRow) -> PricingRule:
    return PricingRule(
        provider=row.provider,
        model=row.model,
        monthly_price=row.monthly_price,
        courses_per_month=row.courses_per_month,
        per_session_price=row.per_session_price,
        per_credit_price=row.per_credit_price,
        fee=row.fee,
        ends_on=row.ends_on,
    )


# -------------------------
# Fetchers (each runs in a worker thread with its own session)
# -------------------------
def load_profile(db: Session, user_id: uuid.UUID) -> StudentProfile:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise StudentNotFound(f"User not found: {user_id}")
    return StudentProfile(
        name=user.name,
        target_hours=user.target_hours_per_week or settings.default_target_hours,
        pace_months=user.pace_months or settings.default_pace_months,
        payment_method=user.payment_method or "card",
    )


def load_enrollments(db: Session, user_id: uuid.UUID) -> List[Enrollment]:
    rows = (
        db.query(EnrollmentRow, Provider.key)
        .join(Provider, Provider.id == EnrollmentRow.provider_id)
        .filter(EnrollmentRow.user_id == user_id)
        .order_by(EnrollmentRow.created_at.asc())
        .all()
    )
    return [
        Enrollment(provider_key=key, credits=row.credits, status=row.status, code=row.course_code)
        for row, key in rows
    ]


def load_weekly_metrics(db: Session, user_id: uuid.UUID) -> List[WeeklyMetric]:
    rows = get_latest_weekly_metrics(db, user_id, settings.metrics_window_weeks)
    return [WeeklyMetric(week_of=r.week_of, hours_studied=r.hours_studied) for r in rows]


def load_pricing_rules(db: Session) -> List[PricingRule]:
    rows = db.query(PricingRuleRow).filter(PricingRuleRow.ends_on.is_(None)).all()
    return [to_pricing_rule(r) for r in rows]


def load_financial_rules(db: Session) -> FinancialRules:
    row = db.query(FinancialRulesRow).order_by(FinancialRulesRow.created_at.desc()).first()
    if not row:
        logger.error("financial_rules table is empty; projections are unavailable")
        raise FinancialRulesNotConfigured()
    return to_financial_rules(row)


def load_duration_rules(db: Session) -> List[DurationRule]:
    rows = db.query(DurationRuleRow).order_by(DurationRuleRow.months.asc()).all()
    return [DurationRule(months=r.months, cost_multiplier=r.cost_multiplier) for r in rows]


def load_ul_credits(db: Session, user_id: uuid.UUID) -> int | None:
    row = db.query(StudentMetrics).filter(StudentMetrics.user_id == user_id).first()
    return row.credits_ul if row else None


def load_prior_snapshot(db: Session, user_id: uuid.UUID, week_start: date) -> PriorSnapshot | None:
    row = (
        db.query(WeeklySnapshot)
        .filter(WeeklySnapshot.user_id == user_id, WeeklySnapshot.week_of < week_start)
        .order_by(WeeklySnapshot.week_of.desc())
        .first()
    )
    if not row:
        return None
    return PriorSnapshot(
        last_week_projected_total=row.projected_total,
        completed_credits=row.credits_completed,
        residency_completed=row.residency_completed,
    )


def load_payments(db: Session, user_id: uuid.UUID) -> List[PaymentRecord]:
    rows = db.query(Payment).filter(Payment.user_id == user_id).order_by(Payment.paid_on.asc()).all()
    return [PaymentRecord(paid_on=r.paid_on, amount=r.amount) for r in rows]


def load_exam_selection(
    db: Session, user_id: uuid.UUID
) -> Tuple[ExamOverride | None, ReplacedProvider | None]:
    """Exam option saved on the student's most recent plan, if any."""
    row = (
        db.query(PlanFinancials)
        .join(Plan, Plan.id == PlanFinancials.plan_id)
        .filter(Plan.user_id == user_id)
        .order_by(PlanFinancials.updated_at.desc())
        .first()
    )
    if not row or not row.exam_selected:
        return None, None

    exam = ExamOverride(
        use=True,
        exam_code=row.exam_code,
        credits=row.exam_credits or 0,
        exam_cost=row.exam_cost or 0.0,
    )
    replaced = None
    if row.replaced_provider and row.replaced_per_credit_est is not None:
        replaced = ReplacedProvider(provider=row.replaced_provider, per_credit_est=row.replaced_per_credit_est)
    return exam, replaced


def plan_hints_from(ul_credits: int | None, rules: FinancialRules, user_id: uuid.UUID) -> PlanHints:
    if ul_credits is None:
        logger.warning("no metrics row for user=%s; plan hints use defaults", user_id)
        return PlanHints(
            remaining_ul_credits=DEFAULT_REMAINING_UL_CREDITS,
            baseline_sessions=rules.baseline_sessions,
            defaulted=True,
        )
    return PlanHints(
        remaining_ul_credits=max(0, settings.required_ul_credits - ul_credits),
        baseline_sessions=rules.baseline_sessions,
    )


async def _fetch(session_factory: SessionFactory, fn, *args):
    def run():
        with session_factory() as db:
            return fn(db, *args)

    return await asyncio.to_thread(run)


async def gather_flight_deck_input(
    user_id: uuid.UUID,
    *,
    session_factory: SessionFactory,
    today: date | None = None,
) -> FlightDeckInput:
    today = today or date.today()
    week_start = get_week_start(today)

    (
        profile,
        enrollments,
        metrics,
        pricing_rules,
        provider_lookup,
        rules,
        duration_rules,
        ul_credits,
        prior,
        payments,
        (exam, replaced),
    ) = await asyncio.gather(
        _fetch(session_factory, load_profile, user_id),
        _fetch(session_factory, load_enrollments, user_id),
        _fetch(session_factory, load_weekly_metrics, user_id),
        _fetch(session_factory, load_pricing_rules),
        _fetch(session_factory, build_provider_lookup),
        _fetch(session_factory, load_financial_rules),
        _fetch(session_factory, load_duration_rules),
        _fetch(session_factory, load_ul_credits, user_id),
        _fetch(session_factory, load_prior_snapshot, user_id, week_start),
        _fetch(session_factory, load_payments, user_id),
        _fetch(session_factory, load_exam_selection, user_id),
    )

    return FlightDeckInput(
        student_profile=profile,
        progress=ProgressInput(enrollments=enrollments),
        pace=PaceInput(weekly_metrics=metrics),
        financials=FinancialContext(
            rules=rules,
            duration_rules=duration_rules,
            pricing_rules=pricing_rules,
            provider_lookup=provider_lookup,
            residency_provider_key=settings.residency_provider_key,
            exam=exam,
            replaced_provider=replaced,
            payments_made=payments,
        ),
        plan_hints=plan_hints_from(ul_credits, rules, user_id),
        prior_snapshots=prior,
        today=today,
    )


def record_weekly_snapshot(
    db: Session,
    user_id: uuid.UUID,
    result: FlightDeckResult,
    week_of: date,
) -> WeeklySnapshot:
    """Upsert this week's figures, keyed by (user_id, Monday of week_of)."""
    week_start = get_week_start(week_of)
    snap = (
        db.query(WeeklySnapshot)
        .filter(WeeklySnapshot.user_id == user_id, WeeklySnapshot.week_of == week_start)
        .first()
    )
    if not snap:
        snap = WeeklySnapshot(user_id=user_id, week_of=week_start)
        db.add(snap)

    snap.projected_total = result.financials.projected_total
    snap.eta_months = result.eta.months
    snap.pace_hours = round(result.pace.current_hours, 2)
    snap.credits_completed = result.credits.completed
    snap.credits_in_progress = result.credits.in_progress
    snap.credits_remaining = result.credits.remaining
    snap.residency_completed = result.credits.residency_completed

    db.commit()
    db.refresh(snap)
    return snap


async def get_flight_deck_data(
    user_id: uuid.UUID,
    *,
    session_factory: SessionFactory,
    today: date | None = None,
    record_snapshot: bool = True,
) -> FlightDeckResult:
    today = today or date.today()
    logger.info("fetching flight deck data user=%s", user_id)

    data = await gather_flight_deck_input(user_id, session_factory=session_factory, today=today)
    result = calculate_flight_deck(data)

    if record_snapshot:
        def save():
            with session_factory() as db:
                record_weekly_snapshot(db, user_id, result, today)

        await asyncio.to_thread(save)

    logger.info(
        "flight deck calculated user=%s projected_total=%s eta_months=%s data_quality=%s",
        user_id,
        result.financials.projected_total,
        result.eta.months,
        ",".join(i.code for i in result.data_quality) or "-",
    )
    return result
