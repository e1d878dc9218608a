## Persisted financial projection, one row per plan
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class PlanFinancials(Base):
    __tablename__ = "plan_financials"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("roadmap_plans.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # Inputs
    pace_months: Mapped[int] = mapped_column(Integer, nullable=False)
    sessions_actual: Mapped[int] = mapped_column(Integer, nullable=False)
    phase1_cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    exam_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    exam_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    exam_credits: Mapped[int | None] = mapped_column(Integer, nullable=True)
    exam_cost: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    replaced_provider: Mapped[str | None] = mapped_column(String(200), nullable=True)
    replaced_per_credit_est: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(10), nullable=False, default="card")

    # Results
    projected_total: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    over_15k: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    overage_reasons_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    upfront_due: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    monthly_payment: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    duration_multiplier: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False, default=1)
    replaced_provider_cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    completion_target: Mapped[date] = mapped_column(Date, nullable=False)
    schedule_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    result_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # full projection payload

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
