## Provider lookup table, built fresh per request
from typing import Dict

from sqlalchemy.orm import Session

from flightdeck.db.models.provider import Provider
from flightdeck.engine.providers import build_lookup


def build_provider_lookup(db: Session) -> Dict[str, str]:
    rows = db.query(Provider.key, Provider.name).all()
    return build_lookup((key, name) for key, name in rows)
