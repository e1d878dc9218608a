## Main application entry point
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flightdeck.auth.deps import NotAuthenticated
from flightdeck.db.init_db import create_tables
from flightdeck.db.session import engine
from flightdeck.engine.errors import FinancialRulesNotConfigured
from flightdeck.flight_deck.routes import router as flight_deck_router
from flightdeck.metrics.routes import router as metrics_router
from flightdeck.plans.routes import router as plans_router
from flightdeck.routes import router as app_router
from flightdeck.services.flight_deck_service import StudentNotFound
from flightdeck.services.plan_service import InvalidPlanRequest, PlanNotFound
from flightdeck.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="[%(asctime)s] [%(name)s] %(levelname)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.env == "dev":
        # Production schema is migrated separately
        create_tables(engine)
    logger.info("flight deck api started env=%s", settings.env)
    yield


app = FastAPI(title="Flight Deck", lifespan=lifespan)


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    return JSONResponse({"error": "not_authenticated"}, status_code=401)


@app.exception_handler(FinancialRulesNotConfigured)
async def setup_required_handler(request: Request, exc: FinancialRulesNotConfigured):
    return JSONResponse({"error": "setup_required", "detail": str(exc)}, status_code=503)


@app.exception_handler(PlanNotFound)
async def plan_not_found_handler(request: Request, exc: PlanNotFound):
    return JSONResponse({"error": "not_found", "detail": str(exc)}, status_code=404)


@app.exception_handler(InvalidPlanRequest)
async def invalid_plan_handler(request: Request, exc: InvalidPlanRequest):
    return JSONResponse({"error": "invalid_plan", "detail": str(exc)}, status_code=422)


@app.exception_handler(StudentNotFound)
async def student_not_found_handler(request: Request, exc: StudentNotFound):
    return JSONResponse({"error": "not_found", "detail": str(exc)}, status_code=404)


app.include_router(app_router)
app.include_router(flight_deck_router)
app.include_router(plans_router)
app.include_router(metrics_router)
