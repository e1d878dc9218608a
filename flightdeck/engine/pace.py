## Pace estimation from weekly study logs
import logging
from typing import Iterable, Sequence

from flightdeck.engine.sanitize import clamp, safe_number
from flightdeck.engine.types import Enrollment, PaceEstimate, WeeklyMetric

logger = logging.getLogger(__name__)

DEFAULT_WEEKLY_HOURS = 10.0
DEFAULT_HOURS_PER_CREDIT = 15.0
METRICS_WINDOW = 6
MIN_COMPLETED_FOR_DERIVATION = 3
MIN_WEEKLY_HOURS, MAX_WEEKLY_HOURS = 1.0, 168.0
MIN_HOURS_PER_CREDIT, MAX_HOURS_PER_CREDIT = 5.0, 40.0


def weighted_weekly_hours(metrics: Sequence[WeeklyMetric]) -> float:
    """
    Linearly decaying weighted average, newest first.

    With N weeks the newest gets weight N and the oldest weight 1, so a
    student who stopped studying shows a falling pace rather than a long-run
    average.
    """
    n = len(metrics)
    total_weighted = 0.0
    total_weight = 0
    for index, metric in enumerate(metrics):
        weight = n - index
        total_weighted += max(0.0, safe_number(metric.hours_studied)) * weight
        total_weight += weight
    if total_weight == 0:
        return DEFAULT_WEEKLY_HOURS
    return total_weighted / total_weight


def estimate_pace(
    metrics: Iterable[WeeklyMetric],
    completed_enrollments: Iterable[Enrollment],
) -> PaceEstimate:
    recent = sorted(metrics, key=lambda m: m.week_of, reverse=True)[:METRICS_WINDOW]

    if not recent:
        return PaceEstimate(
            weekly_hours=DEFAULT_WEEKLY_HOURS,
            hours_per_credit=DEFAULT_HOURS_PER_CREDIT,
        )

    weekly_hours = weighted_weekly_hours(recent)

    hours_per_credit = DEFAULT_HOURS_PER_CREDIT
    derived = False
    completed = [e for e in completed_enrollments if e.status == "completed"]
    if len(completed) >= MIN_COMPLETED_FOR_DERIVATION:
        total_credits = sum(max(0, e.credits) for e in completed)
        total_hours = sum(max(0.0, safe_number(m.hours_studied)) for m in recent)
        if total_credits > 0 and total_hours > 0:
            candidate = total_hours / total_credits
            # Outside 5-40 h/credit the logs are too sparse to trust
            if MIN_HOURS_PER_CREDIT <= candidate <= MAX_HOURS_PER_CREDIT:
                hours_per_credit = candidate
                derived = True

    logger.debug(
        "pace estimated weekly_hours=%.1f hours_per_credit=%.1f weeks=%d",
        weekly_hours,
        hours_per_credit,
        len(recent),
    )

    return PaceEstimate(
        weekly_hours=clamp(weekly_hours, MIN_WEEKLY_HOURS, MAX_WEEKLY_HOURS),
        hours_per_credit=clamp(hours_per_credit, MIN_HOURS_PER_CREDIT, MAX_HOURS_PER_CREDIT),
        weeks_sampled=len(recent),
        derived_hours_per_credit=derived,
    )
