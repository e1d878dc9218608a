## Service-level routes
from fastapi import APIRouter

from flightdeck.schemas import HealthOut
from flightdeck.settings import settings

router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthOut)
def health():
    return HealthOut(status="ok", env=settings.env)
