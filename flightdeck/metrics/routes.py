# flightdeck/metrics/routes.py
# Weekly study-hours log
import uuid
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from flightdeck.auth.deps import get_current_user
from flightdeck.db.models.user import User
from flightdeck.deps import get_db
from flightdeck.schemas import WeeklyMetricIn, WeeklyMetricOut
from flightdeck.services.weekly_metrics_service import (
    DEFAULT_WEEKS_BACK,
    delete_weekly_metrics,
    get_recent_weekly_metrics,
    get_week_start,
    get_weekly_metrics,
    upsert_weekly_metrics,
)

router = APIRouter(prefix="/api/weekly-metrics", tags=["weekly-metrics"])


@router.post("", response_model=WeeklyMetricOut)
def upsert_week(
    body: WeeklyMetricIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return upsert_weekly_metrics(db, user.id, body.week_of, body.hours_studied, body.notes)


@router.get("", response_model=List[WeeklyMetricOut])
def recent_weeks(
    weeks: int = Query(DEFAULT_WEEKS_BACK, ge=1, le=104),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_recent_weekly_metrics(db, user.id, weeks)


@router.get("/{week_of}", response_model=WeeklyMetricOut)
def get_week(
    week_of: date,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    row = get_weekly_metrics(db, user.id, week_of)
    if not row:
        # An unlogged week reads as zero hours
        return WeeklyMetricOut(week_of=get_week_start(week_of), hours_studied=0)
    return row


@router.delete("/{metric_id}", status_code=204)
def delete_week(
    metric_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not delete_weekly_metrics(db, user.id, metric_id):
        return JSONResponse({"error": "not_found"}, status_code=404)
    return None
