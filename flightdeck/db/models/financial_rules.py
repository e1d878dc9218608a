## Global cost constants (single row)
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, Numeric, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class FinancialRules(Base):
    __tablename__ = "financial_rules"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    total_projection: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=15000)
    lumiere_fee: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=7000)
    umpi_session_cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=1800)
    baseline_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    card_fee_pct: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False, default=3)
    ach_fee_pct: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    wire_fee_flat: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False, default=25)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
