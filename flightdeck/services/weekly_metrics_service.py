# flightdeck/services/weekly_metrics_service.py
"""
Study-hours log, one row per student per week.

Every week_of is normalized to the Monday of its week before it is read or
written, so any date inside a week addresses the same row.
"""
import logging
import uuid
from datetime import date, timedelta
from typing import List

from sqlalchemy.orm import Session

from flightdeck.db.models.weekly_metric import WeeklyMetric

logger = logging.getLogger(__name__)

DEFAULT_WEEKS_BACK = 12


def get_week_start(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def upsert_weekly_metrics(
    db: Session,
    user_id: uuid.UUID,
    week_of: date,
    hours_studied: float,
    notes: str | None = None,
) -> WeeklyMetric:
    week_start = get_week_start(week_of)

    row = (
        db.query(WeeklyMetric)
        .filter(WeeklyMetric.user_id == user_id, WeeklyMetric.week_of == week_start)
        .first()
    )
    if row:
        row.hours_studied = hours_studied
        row.notes = notes
        action = "updated"
    else:
        row = WeeklyMetric(user_id=user_id, week_of=week_start, hours_studied=hours_studied, notes=notes)
        db.add(row)
        action = "created"

    db.commit()
    db.refresh(row)
    logger.info("weekly metrics %s user=%s week_of=%s hours=%s", action, user_id, week_start, hours_studied)
    return row


def get_weekly_metrics(db: Session, user_id: uuid.UUID, week_of: date) -> WeeklyMetric | None:
    return (
        db.query(WeeklyMetric)
        .filter(WeeklyMetric.user_id == user_id, WeeklyMetric.week_of == get_week_start(week_of))
        .first()
    )


def get_weekly_metrics_range(db: Session, user_id: uuid.UUID, start: date, end: date) -> List[WeeklyMetric]:
    return (
        db.query(WeeklyMetric)
        .filter(
            WeeklyMetric.user_id == user_id,
            WeeklyMetric.week_of >= get_week_start(start),
            WeeklyMetric.week_of <= get_week_start(end),
        )
        .order_by(WeeklyMetric.week_of.desc())
        .all()
    )


def get_recent_weekly_metrics(
    db: Session,
    user_id: uuid.UUID,
    weeks_back: int = DEFAULT_WEEKS_BACK,
    *,
    today: date | None = None,
) -> List[WeeklyMetric]:
    end = today or date.today()
    return get_weekly_metrics_range(db, user_id, end - timedelta(weeks=weeks_back), end)


def get_latest_weekly_metrics(db: Session, user_id: uuid.UUID, limit: int) -> List[WeeklyMetric]:
    """Most recent `limit` logged weeks, newest first."""
    return (
        db.query(WeeklyMetric)
        .filter(WeeklyMetric.user_id == user_id)
        .order_by(WeeklyMetric.week_of.desc())
        .limit(limit)
        .all()
    )


def delete_weekly_metrics(db: Session, user_id: uuid.UUID, metric_id: uuid.UUID) -> bool:
    """Delete one of the student's rows; False when it does not exist."""
    row = (
        db.query(WeeklyMetric)
        .filter(WeeklyMetric.id == metric_id, WeeklyMetric.user_id == user_id)
        .first()
    )
    if not row:
        return False
    db.delete(row)
    db.commit()
    logger.info("weekly metrics deleted id=%s user=%s", metric_id, user_id)
    return True
