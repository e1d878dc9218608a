## Pydantic schemas for API request and response bodies
import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, confloat, conint

from flightdeck.engine.types import FinancialProjection, PaymentMethod


class WeeklyMetricIn(BaseModel):
    week_of: date
    hours_studied: confloat(ge=0, le=168)
    notes: str | None = Field(default=None, max_length=2000)


class WeeklyMetricOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | None = None  # None for a week with nothing logged
    week_of: date
    hours_studied: float
    notes: str | None = None


class PlanRequest(BaseModel):
    pace_months: conint(ge=1, le=60) = 12
    pace_hours_per_week: conint(ge=1, le=168) = 12
    # Derived from the student's enrollments when omitted
    sessions_actual: int | None = Field(default=None, ge=0)
    phase1_cost: float | None = Field(default=None, ge=0)

    use_exam: bool = False
    exam_code: str | None = None
    exam_credits: int | None = Field(default=None, ge=0)
    exam_cost: float | None = Field(default=None, ge=0)
    replaced_provider: str | None = None
    replaced_per_credit_est: float | None = Field(default=None, ge=0)

    payment_method: PaymentMethod = "card"


class PlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: str
    pace_months: int
    pace_hours_per_week: int
    est_cost: float | None = None
    est_months: int | None = None
    version: int


class PlanResponse(BaseModel):
    plan: PlanOut
    financials: FinancialProjection


class HealthOut(BaseModel):
    status: str
    env: str
