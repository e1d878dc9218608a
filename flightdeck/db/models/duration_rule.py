## Cost multiplier per chosen pace (6 -> 1.50 ... 18 -> 0.80)
import uuid

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class DurationRule(Base):
    __tablename__ = "duration_rules"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    months: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    cost_multiplier: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    description: Mapped[str] = mapped_column(String(200), nullable=False, default="")
