## Engine + session factory
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from flightdeck.settings import settings

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
