# flightdeck/flight_deck/routes.py
from fastapi import APIRouter, Depends

from flightdeck.auth.deps import get_current_user
from flightdeck.db.models.user import User
from flightdeck.deps import get_session_factory
from flightdeck.engine.types import FlightDeckResult
from flightdeck.services.flight_deck_service import get_flight_deck_data

router = APIRouter(prefix="/api/flight-deck", tags=["flight-deck"])


@router.get("", response_model=FlightDeckResult)
async def flight_deck(
    user: User = Depends(get_current_user),
    session_factory=Depends(get_session_factory),
):
    return await get_flight_deck_data(user.id, session_factory=session_factory)
