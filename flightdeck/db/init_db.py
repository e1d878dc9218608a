## Table creation for local development and tests (production schema is migrated separately)
from sqlalchemy.engine import Engine

from flightdeck.db.base import Base

# Imported for their side effect of registering tables on Base.metadata
from flightdeck.db.models import (  # noqa: F401
    duration_rule,
    enrollment,
    exam_catalog,
    financial_rules,
    payment,
    plan,
    plan_financials,
    pricing_rule,
    provider,
    student_metrics,
    user,
    weekly_metric,
    weekly_snapshot,
)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
