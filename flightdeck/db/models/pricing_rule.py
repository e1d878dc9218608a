## Provider pricing catalog (amounts in cents)
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    model: Mapped[str] = mapped_column(String(20), nullable=False)  # subscription/per_session/per_course/per_credit/hybrid

    monthly_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    per_session_price: Mapped[int | None] = mapped_column(Integer, nullable=True)  # also the per-course price
    per_credit_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    courses_per_month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fee: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)

    starts_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    ends_on: Mapped[date | None] = mapped_column(Date, nullable=True)  # NULL = active

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
