## Weekly flight deck snapshot (feeds trend + milestones)
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class WeeklySnapshot(Base):
    __tablename__ = "snapshots_weekly"
    __table_args__ = (UniqueConstraint("user_id", "week_of", name="snapshots_weekly_user_week_key"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True)
    week_of: Mapped[date] = mapped_column(Date, nullable=False)

    projected_total: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    eta_months: Mapped[int] = mapped_column(Integer, nullable=False)
    pace_hours: Mapped[float] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=False)
    credits_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_in_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    residency_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
