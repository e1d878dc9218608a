## Shared FastAPI dependencies
from typing import Iterator

from sqlalchemy.orm import Session

from flightdeck.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    return SessionLocal
