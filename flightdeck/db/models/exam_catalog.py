## Premium exams that can replace coursework
import uuid

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flightdeck.db.base import Base


class ExamCatalog(Base):
    __tablename__ = "exam_catalog"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    exam_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    provider: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    exam_cost: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    replaces_provider: Mapped[str | None] = mapped_column(String(200), nullable=True, default="Sophia")
