# flightdeck/services/plan_service.py
"""
Plan generation and its persisted financial projection.

generate_plan creates a roadmap plan and prices it; regenerate_plan recomputes
an existing plan in place. Either way plan_financials holds exactly one row
per plan: save_financials updates the row when it exists and inserts it
otherwise, so regenerating never duplicates.
"""
import json
import logging
import uuid
from datetime import date
from typing import List, Tuple

from sqlalchemy.orm import Session

from flightdeck.db.models.exam_catalog import ExamCatalog
from flightdeck.db.models.plan import Plan
from flightdeck.db.models.plan_financials import PlanFinancials
from flightdeck.engine.pricing import residency_cost, residency_session_cost, resolve_provider_costs
from flightdeck.engine.progress import aggregate_progress
from flightdeck.engine.sanitize import PROGRAM_TOTAL_CREDITS
from flightdeck.engine.schedule import calculate_financials
from flightdeck.engine.types import (
    ExamOverride,
    FinancialInputs,
    FinancialProjection,
    FinancialRules,
    PricingRule,
    ReplacedProvider,
)
from flightdeck.schemas import PlanRequest
from flightdeck.services.flight_deck_service import (
    load_duration_rules,
    load_enrollments,
    load_financial_rules,
    load_pricing_rules,
)
from flightdeck.services.providers import build_provider_lookup
from flightdeck.settings import settings

logger = logging.getLogger(__name__)


class PlanNotFound(Exception):
    pass


class InvalidPlanRequest(ValueError):
    pass


def get_plan(db: Session, user_id: uuid.UUID, plan_id: uuid.UUID) -> Plan:
    plan = db.query(Plan).filter(Plan.id == plan_id, Plan.user_id == user_id).first()
    if not plan:
        raise PlanNotFound(f"Plan not found: {plan_id}")
    return plan


def resolve_exam(db: Session, req: PlanRequest) -> Tuple[ExamOverride | None, ReplacedProvider | None]:
    """Exam option from the request, with gaps filled from the exam catalog."""
    if not req.use_exam or not req.exam_code:
        return None, None

    entry = db.query(ExamCatalog).filter(ExamCatalog.exam_code == req.exam_code).first()
    if entry is None and (req.exam_credits is None or req.exam_cost is None):
        logger.warning("exam code=%s not in catalog and request is incomplete", req.exam_code)

    credits = req.exam_credits if req.exam_credits is not None else (entry.credits if entry else 0)
    cost = req.exam_cost if req.exam_cost is not None else (entry.exam_cost if entry else 0.0)
    exam = ExamOverride(use=True, exam_code=req.exam_code, credits=credits, exam_cost=cost)

    replaced = None
    provider = req.replaced_provider or (entry.replaces_provider if entry else None)
    if provider and req.replaced_per_credit_est is not None:
        replaced = ReplacedProvider(provider=provider, per_credit_est=req.replaced_per_credit_est)
    return exam, replaced


def derive_phase1_and_sessions(
    db: Session,
    user_id: uuid.UUID,
    rules: FinancialRules,
    pricing_rules: List[PricingRule],
) -> Tuple[float, int]:
    """Provider spend and residency sessions implied by the student's enrollments."""
    enrollments = load_enrollments(db, user_id)
    key = settings.residency_provider_key

    pricing = resolve_provider_costs(
        enrollments,
        pricing_rules,
        build_provider_lookup(db),
        exclude_providers=[key],
    )
    if pricing.fallback:
        return pricing.provider_cost, rules.baseline_sessions

    progress = aggregate_progress(enrollments, residency_provider_key=key)
    residency = residency_cost(progress, pricing_rules, rules, residency_provider_key=key)
    return pricing.provider_cost, residency.sessions_needed


def check_exam_credits(db: Session, user_id: uuid.UUID, exam: ExamOverride) -> None:
    """An exam may only replace credits the student still needs."""
    progress = aggregate_progress(load_enrollments(db, user_id), residency_provider_key=settings.residency_provider_key)
    remaining = max(0, PROGRAM_TOTAL_CREDITS - progress.completed - progress.in_progress)
    if exam.credits > remaining:
        raise InvalidPlanRequest(
            f"Exam {exam.exam_code} covers {exam.credits} credits but only {remaining} remain"
        )


def build_inputs(
    db: Session,
    user_id: uuid.UUID,
    req: PlanRequest,
    rules: FinancialRules,
    pricing_rules: List[PricingRule],
) -> FinancialInputs:
    phase1_cost, sessions = req.phase1_cost, req.sessions_actual
    if phase1_cost is None or sessions is None:
        derived_cost, derived_sessions = derive_phase1_and_sessions(db, user_id, rules, pricing_rules)
        phase1_cost = derived_cost if phase1_cost is None else phase1_cost
        sessions = derived_sessions if sessions is None else sessions

    exam, replaced = resolve_exam(db, req)
    if exam is not None:
        check_exam_credits(db, user_id, exam)
    return FinancialInputs(
        pace_months=req.pace_months,
        sessions_actual=sessions,
        phase1_cost=phase1_cost,
        exam=exam,
        replaced_provider=replaced,
        payment_method=req.payment_method,
    )


def save_financials(
    db: Session,
    plan_id: uuid.UUID,
    inputs: FinancialInputs,
    result: FinancialProjection,
) -> PlanFinancials:
    """Upsert keyed by plan_id. Caller commits."""
    row = db.query(PlanFinancials).filter(PlanFinancials.plan_id == plan_id).first()
    if not row:
        row = PlanFinancials(plan_id=plan_id)
        db.add(row)

    exam = inputs.exam
    row.pace_months = inputs.pace_months
    row.sessions_actual = inputs.sessions_actual
    row.phase1_cost = inputs.phase1_cost
    row.exam_selected = bool(exam and exam.use)
    row.exam_code = exam.exam_code if exam else None
    row.exam_credits = exam.credits if exam else 0
    row.exam_cost = exam.exam_cost if exam else 0.0
    row.replaced_provider = inputs.replaced_provider.provider if inputs.replaced_provider else None
    row.replaced_per_credit_est = inputs.replaced_provider.per_credit_est if inputs.replaced_provider else None
    row.payment_method = inputs.payment_method

    row.projected_total = result.projected_total
    row.over_15k = result.over_15k
    row.overage_reasons_json = json.dumps(result.overage_reasons)
    row.upfront_due = result.upfront_due
    row.monthly_payment = result.monthly_payment
    row.duration_multiplier = result.duration_multiplier
    row.replaced_provider_cost = result.breakdown.replaced_provider_cost
    row.start_date = result.start_date
    row.completion_target = result.completion_target
    row.schedule_json = json.dumps([e.model_dump(mode="json") for e in result.monthly_schedule])
    row.result_json = result.model_dump_json()
    return row


def _price_plan(
    db: Session,
    plan: Plan,
    req: PlanRequest,
    today: date | None,
) -> FinancialProjection:
    pricing_rules = load_pricing_rules(db)
    rules = load_financial_rules(db)
    session_cost = residency_session_cost(pricing_rules, rules, settings.residency_provider_key)
    rules = rules.model_copy(update={"umpi_session_cost": session_cost})

    inputs = build_inputs(db, plan.user_id, req, rules, pricing_rules)
    result = calculate_financials(inputs, rules, load_duration_rules(db), today=today)

    plan.pace_months = req.pace_months
    plan.pace_hours_per_week = req.pace_hours_per_week
    plan.est_cost = result.projected_total
    plan.est_months = req.pace_months
    save_financials(db, plan.id, inputs, result)
    return result


def generate_plan(
    db: Session,
    user_id: uuid.UUID,
    req: PlanRequest,
    *,
    today: date | None = None,
) -> Tuple[Plan, FinancialProjection]:
    plan = Plan(user_id=user_id, status="active", version=1)
    db.add(plan)
    db.flush()  # ensures plan.id exists without committing yet

    try:
        result = _price_plan(db, plan, req, today)
    except Exception:
        db.rollback()
        raise

    db.commit()
    db.refresh(plan)
    logger.info("plan generated plan=%s user=%s projected_total=%s", plan.id, user_id, result.projected_total)
    return plan, result


def regenerate_plan(
    db: Session,
    user_id: uuid.UUID,
    plan_id: uuid.UUID,
    req: PlanRequest,
    *,
    today: date | None = None,
) -> Tuple[Plan, FinancialProjection]:
    plan = get_plan(db, user_id, plan_id)

    try:
        result = _price_plan(db, plan, req, today)
    except Exception:
        db.rollback()
        raise

    plan.version += 1
    db.commit()
    db.refresh(plan)
    logger.info("plan regenerated plan=%s version=%s projected_total=%s", plan.id, plan.version, result.projected_total)
    return plan, result


def get_plan_financials(db: Session, user_id: uuid.UUID, plan_id: uuid.UUID) -> FinancialProjection:
    get_plan(db, user_id, plan_id)
    row = db.query(PlanFinancials).filter(PlanFinancials.plan_id == plan_id).first()
    if not row or not row.result_json:
        raise PlanNotFound(f"No financials for plan: {plan_id}")
    return FinancialProjection.model_validate_json(row.result_json)
