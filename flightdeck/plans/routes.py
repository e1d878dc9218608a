# flightdeck/plans/routes.py
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from flightdeck.auth.deps import get_current_user
from flightdeck.db.models.user import User
from flightdeck.deps import get_db
from flightdeck.engine.types import FinancialProjection
from flightdeck.schemas import PlanOut, PlanRequest, PlanResponse
from flightdeck.services.plan_service import generate_plan, get_plan_financials, regenerate_plan

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.post("", response_model=PlanResponse, status_code=201)
def create_plan(
    req: PlanRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan, financials = generate_plan(db, user.id, req)
    return PlanResponse(plan=PlanOut.model_validate(plan), financials=financials)


@router.post("/{plan_id}/regenerate", response_model=PlanResponse)
def regenerate(
    plan_id: uuid.UUID,
    req: PlanRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan, financials = regenerate_plan(db, user.id, plan_id, req)
    return PlanResponse(plan=PlanOut.model_validate(plan), financials=financials)


@router.get("/{plan_id}/financials", response_model=FinancialProjection)
def plan_financials(
    plan_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_plan_financials(db, user.id, plan_id)
