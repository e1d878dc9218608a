import os

# Settings require a database URL at import time; tests bind their own engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from flightdeck.db.init_db import create_tables
from flightdeck.db.models.duration_rule import DurationRule
from flightdeck.db.models.enrollment import Enrollment
from flightdeck.db.models.financial_rules import FinancialRules
from flightdeck.db.models.pricing_rule import PricingRule
from flightdeck.db.models.provider import Provider
from flightdeck.db.models.user import User



@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'flightdeck.db'}",
        connect_args={"check_same_thread": False},
    )
    create_tables(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def student(db):
    user = User(email="ada@example.edu", name="Ada", target_hours_per_week=12, pace_months=12, payment_method="card")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def financial_rules(db):
    row = FinancialRules()
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def catalog(db, financial_rules):
    """Providers, pricing and duration rules resembling production seed data."""
    providers = {
        "sophia": Provider(key="sophia", name="Sophia"),
        "studycom": Provider(key="studycom", name="Study.com"),
        "umpi": Provider(key="umpi", name="UMPI"),
    }
    db.add_all(providers.values())
    db.add_all(
        [
            PricingRule(provider="Sophia", model="subscription", monthly_price=9900, courses_per_month=2),
            PricingRule(provider="Study.com", model="per_credit", per_credit_price=5900),
            PricingRule(provider="UMPI", model="per_session", per_session_price=180000),
        ]
    )
    db.add_all(
        [
            DurationRule(months=6, cost_multiplier=1.5, description="Accelerated"),
            DurationRule(months=12, cost_multiplier=1.0, description="Standard"),
            DurationRule(months=18, cost_multiplier=0.8, description="Extended"),
        ]
    )
    db.commit()
    return providers


@pytest.fixture
def enroll(db):
    def _enroll(user, provider, credits, status, code=None, title="Course"):
        row = Enrollment(
            user_id=user.id,
            provider_id=provider.id,
            title=title,
            course_code=code,
            credits=credits,
            status=status,
        )
        db.add(row)
        db.commit()
        return row

    return _enroll
