# flightdeck/engine/schedule.py
"""
Financial projection and month-by-month payment schedule.

Logic:
1. base = (lumiere fee + phase 1 provider spend + sessions x session cost)
2. scale by the duration multiplier for the chosen pace
3. add the premium exam delta (never negative)
4. split into the upfront fee + equal monthly installments
5. add the payment-method fee to every installment

All arithmetic runs in full precision; values are rounded to cents only as
they are written into the result.
"""
from datetime import date
from typing import Iterable

from dateutil.relativedelta import relativedelta

from flightdeck.engine.types import (
    DurationRule,
    FinancialBreakdown,
    FinancialInputs,
    FinancialProjection,
    FinancialRules,
    PaymentMethodFees,
    ScheduleEntry,
)

EXTRA_SESSION_REASON = "Extra UMPI session(s)"
PREMIUM_EXAM_REASON = "Premium language exam"


def _cents(value: float) -> float:
    return round(value, 2)


def duration_multiplier(pace_months: int, duration_rules: Iterable[DurationRule]) -> float:
    """Cost multiplier for a pace; 1.0 when the table has no entry."""
    for rule in duration_rules:
        if rule.months == pace_months:
            return rule.cost_multiplier
    return 1.0


def exam_cost_delta(inputs: FinancialInputs) -> tuple[float, float]:
    """(exam_delta, replaced_provider_cost) for the premium exam option.

    The delta is the extra spend over the coursework the exam replaces. A
    cheaper exam costs nothing extra; no credit is issued back.
    """
    exam = inputs.exam
    if exam is None or not exam.use or not exam.exam_code:
        return 0.0, 0.0

    replaced = 0.0
    if inputs.replaced_provider is not None and exam.credits:
        replaced = exam.credits * inputs.replaced_provider.per_credit_est
    return max(0.0, exam.exam_cost - replaced), replaced


def installment_fee(base_monthly: float, method: str, rules: FinancialRules) -> float:
    if method == "card":
        return base_monthly * (rules.card_fee_pct / 100)
    if method == "ach":
        return base_monthly * (rules.ach_fee_pct / 100)
    if method == "wire":
        return rules.wire_fee_flat
    raise ValueError(f"Unknown payment method: {method}")


def calculate_financials(
    inputs: FinancialInputs,
    rules: FinancialRules,
    duration_rules: Iterable[DurationRule] = (),
    *,
    today: date | None = None,
) -> FinancialProjection:
    """Price a plan and lay out its payment schedule.

    Pure: identical inputs (including `today`) give an identical projection.
    """
    start_date = today or date.today()
    months = inputs.pace_months

    multiplier = duration_multiplier(months, duration_rules)
    sessions_cost = inputs.sessions_actual * rules.umpi_session_cost
    base_total = (rules.lumiere_fee + inputs.phase1_cost + sessions_cost) * multiplier

    exam_delta, replaced_cost = exam_cost_delta(inputs)
    projected_total = base_total + exam_delta

    over_15k = projected_total > rules.total_projection
    overage_reasons: list[str] = []
    if inputs.sessions_actual > rules.baseline_sessions:
        overage_reasons.append(EXTRA_SESSION_REASON)
    if exam_delta > 0:
        overage_reasons.append(PREMIUM_EXAM_REASON)

    upfront_due = rules.lumiere_fee
    remaining = projected_total - upfront_due
    base_monthly = remaining / months
    fee = installment_fee(base_monthly, inputs.payment_method, rules)
    monthly_payment = base_monthly + fee

    warnings: list[str] = []
    if over_15k:
        threshold = f"${rules.total_projection:,.0f}"
        if overage_reasons:
            warnings.append(
                f"Total exceeds the standard {threshold} projection due to "
                f"{' and '.join(overage_reasons)}."
            )
        else:
            warnings.append(
                f"Total exceeds the standard {threshold} projection "
                f"(x{multiplier:g} duration multiplier for {months} months)."
            )

    schedule: list[ScheduleEntry] = []
    total_paid = upfront_due
    for i in range(1, months + 1):
        total_paid += monthly_payment
        schedule.append(
            ScheduleEntry(
                month=i,
                due_date=start_date + relativedelta(months=i),
                payment_amount=_cents(monthly_payment),
                payment_method=inputs.payment_method,
                total_paid=_cents(total_paid),
                remaining_balance=_cents(max(0.0, projected_total - total_paid)),
            )
        )

    exam = inputs.exam
    return FinancialProjection(
        projected_total=_cents(projected_total),
        over_15k=over_15k,
        overage_reasons=overage_reasons,
        upfront_due=_cents(upfront_due),
        remaining=_cents(remaining),
        base_monthly_payment=_cents(base_monthly),
        monthly_payment=_cents(monthly_payment),
        payment_months=months,
        payment_method=inputs.payment_method,
        includes_premium_exam=bool(exam and exam.use),
        premium_exam_cost=_cents(exam.exam_cost) if exam and exam.use else 0.0,
        duration_multiplier=multiplier,
        payment_method_fees=PaymentMethodFees(
            per_installment=_cents(fee),
            total=_cents(fee * months),
        ),
        breakdown=FinancialBreakdown(
            lumiere_fee=_cents(rules.lumiere_fee),
            phase1_cost=_cents(inputs.phase1_cost),
            sessions_cost=_cents(sessions_cost),
            base_total=_cents(base_total),
            exam_delta=_cents(exam_delta),
            replaced_provider_cost=_cents(replaced_cost),
        ),
        warnings=warnings,
        start_date=start_date,
        completion_target=start_date + relativedelta(months=months),
        monthly_schedule=schedule,
    )
