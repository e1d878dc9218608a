## Engine value objects (inputs and outputs of the projection pipeline)
from datetime import date
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flightdeck.engine.sanitize import clamp_credits

EnrollmentStatus = Literal["todo", "in_progress", "completed", "dropped"]
PaymentMethod = Literal["card", "ach", "wire"]
AlertLevel = Literal["red", "green"]
IconHint = Literal["alert", "check", "trend-up", "dollar", "clock", "lightbulb"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# -------------------------
# Inputs
# -------------------------
class Enrollment(FrozenModel):
    provider_key: str
    credits: int = 0
    status: EnrollmentStatus = "todo"
    code: str | None = None

    @field_validator("credits", mode="before")
    @classmethod
    def _clamp_credits(cls, v):
        return clamp_credits(v)


class WeeklyMetric(FrozenModel):
    week_of: date  # Monday
    hours_studied: float = 0.0


class FinancialRules(FrozenModel):
    total_projection: float = 15000.0
    lumiere_fee: float = 7000.0
    umpi_session_cost: float = 1800.0
    baseline_sessions: int = 2
    card_fee_pct: float = 3.0
    ach_fee_pct: float = 0.0
    wire_fee_flat: float = 25.0


class DurationRule(FrozenModel):
    months: int
    cost_multiplier: float


class ExamOverride(FrozenModel):
    use: bool = False
    exam_code: str | None = None
    credits: int = 0
    exam_cost: float = 0.0


class ReplacedProvider(FrozenModel):
    provider: str
    per_credit_est: float


class FinancialInputs(FrozenModel):
    pace_months: int = Field(ge=1, le=60)
    sessions_actual: int = Field(ge=0)
    phase1_cost: float = Field(ge=0)
    exam: ExamOverride | None = None
    replaced_provider: ReplacedProvider | None = None
    payment_method: PaymentMethod = "card"


class PricingRule(FrozenModel):
    """Flat catalog row as stored; prices in integer cents."""

    provider: str
    model: str
    monthly_price: int | None = None
    courses_per_month: int | None = None
    per_session_price: int | None = None
    per_credit_price: int | None = None
    fee: int | None = 0
    ends_on: date | None = None

    @property
    def active(self) -> bool:
        return self.ends_on is None


# Pricing strategies. Prices are integer cents, as stored.
class Subscription(FrozenModel):
    model: Literal["subscription"] = "subscription"
    provider: str
    monthly_price: int
    courses_per_month: int = Field(ge=1)


class PerSession(FrozenModel):
    model: Literal["per_session"] = "per_session"
    provider: str
    per_session_price: int


class PerCourse(FrozenModel):
    model: Literal["per_course"] = "per_course"
    provider: str
    per_course_price: int = 0
    monthly_price: int | None = None
    courses_per_month: int | None = Field(default=None, ge=1)


class PerCredit(FrozenModel):
    model: Literal["per_credit"] = "per_credit"
    provider: str
    per_credit_price: int
    monthly_price: int | None = None
    courses_per_month: int | None = Field(default=None, ge=1)


class Hybrid(FrozenModel):
    model: Literal["hybrid"] = "hybrid"
    provider: str
    monthly_price: int | None = None
    courses_per_month: int | None = Field(default=None, ge=1)
    per_credit_price: int | None = None
    per_course_price: int | None = None
    fee: int = 0


PricingStrategy = Annotated[
    Union[Subscription, PerSession, PerCourse, PerCredit, Hybrid],
    Field(discriminator="model"),
]


class PriorSnapshot(FrozenModel):
    """Last week's figures, used for the trend and milestone crossings."""

    last_week_projected_total: float | None = None
    completed_credits: int | None = None
    residency_completed: int | None = None


class PaymentRecord(FrozenModel):
    paid_on: date
    amount: float


# -------------------------
# Intermediate results
# -------------------------
class ProgressSummary(FrozenModel):
    completed: int = 0
    in_progress: int = 0
    residency_completed: int = 0
    codes: List[str] = Field(default_factory=list)


class PaceEstimate(FrozenModel):
    weekly_hours: float
    hours_per_credit: float
    weeks_sampled: int = 0
    derived_hours_per_credit: bool = False


class ProviderCost(FrozenModel):
    provider: str
    model: str
    count: int
    total_credits: int
    cost: float


class PricingResolution(FrozenModel):
    provider_cost: float
    providers: List[ProviderCost] = Field(default_factory=list)
    unmatched_providers: List[str] = Field(default_factory=list)
    fallback: bool = False


class ResidencyCost(FrozenModel):
    remaining_credits: int
    sessions_needed: int
    session_cost: float
    total: float


class ScheduleEntry(FrozenModel):
    month: int
    due_date: date
    payment_amount: float
    payment_method: PaymentMethod
    total_paid: float
    remaining_balance: float


class PaymentMethodFees(FrozenModel):
    per_installment: float
    total: float


class FinancialBreakdown(FrozenModel):
    lumiere_fee: float
    phase1_cost: float
    sessions_cost: float
    base_total: float
    exam_delta: float
    replaced_provider_cost: float


class FinancialProjection(FrozenModel):
    projected_total: float
    over_15k: bool
    overage_reasons: List[str]
    upfront_due: float
    remaining: float
    base_monthly_payment: float
    monthly_payment: float
    payment_months: int
    payment_method: PaymentMethod
    includes_premium_exam: bool
    premium_exam_cost: float
    duration_multiplier: float
    payment_method_fees: PaymentMethodFees
    breakdown: FinancialBreakdown
    warnings: List[str]
    start_date: date
    completion_target: date
    monthly_schedule: List[ScheduleEntry]


# -------------------------
# Flight deck output
# -------------------------
class CreditsResult(FrozenModel):
    completed: int
    in_progress: int
    remaining: int
    total: int
    is_over_target: bool
    overage_amount: int
    percent_complete: float
    residency_completed: int = 0
    # Upper-level credits still required; carried for planning views
    remaining_ul_credits: int = 0


class PaceResult(FrozenModel):
    current_hours: float
    target_hours: float
    percent_of_target: float
    zone: Literal["slow", "on_track", "excellent"]
    hours_per_credit: float


class TimelinePoint(FrozenModel):
    month: str
    credits: int
    cumulative: float


class ETAResult(FrozenModel):
    months: int
    weeks_needed: float
    exceeds_one_year: bool
    effective_monthly_throughput: float
    degraded: bool = False
    timeline: List[TimelinePoint] = Field(default_factory=list)


class CostResult(FrozenModel):
    lumiere_fee: float
    provider_cost: float
    umpi_cost: float
    projected_umpi_sessions: int
    umpi_session_cost: float
    projected_total: float
    state: Literal["On Track", "Caution", "Over Budget"]


class PaymentsResult(FrozenModel):
    upfront_due: float
    monthly_payment: float
    payment_months: int
    paid_to_date: float
    remaining_balance: float
    schedule: List[ScheduleEntry]


class TrendResult(FrozenModel):
    available: bool
    direction: Literal["up", "down", "flat"]
    delta_total: float | None = None
    percent_change: float | None = None


class AlertResult(FrozenModel):
    level: AlertLevel
    messages: List[str]
    one_year_warning: str | None = None


class InsightItem(FrozenModel):
    message: str
    icon: IconHint
    severity: Literal["info", "warning", "success"] = "info"
    priority: int = 2  # 1=high, 3=low


class Recommendations(FrozenModel):
    pace: List[InsightItem] = Field(default_factory=list)
    credits: List[InsightItem] = Field(default_factory=list)
    budget: List[InsightItem] = Field(default_factory=list)


class Insights(FrozenModel):
    summary: str
    smart_tip: str | None
    budget_warnings: List[InsightItem]
    celebrations: List[InsightItem]
    recommendations: Recommendations


class DataQualityIssue(FrozenModel):
    code: str
    message: str


class FlightDeckResult(FrozenModel):
    credits: CreditsResult
    pace: PaceResult
    eta: ETAResult
    cost: CostResult
    financials: FinancialProjection
    payments: PaymentsResult
    trend: TrendResult
    alerts: AlertResult
    insights: Insights
    codes: List[str] = Field(default_factory=list)
    data_quality: List[DataQualityIssue] = Field(default_factory=list)
