## Completion ETA from remaining credits and current pace
import logging
import math

from flightdeck.engine.pace import DEFAULT_HOURS_PER_CREDIT, DEFAULT_WEEKLY_HOURS
from flightdeck.engine.sanitize import PROGRAM_TOTAL_CREDITS, safe_number
from flightdeck.engine.types import ETAResult, TimelinePoint

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 4.33
ONE_YEAR_MONTHS = 12
TIMELINE_MAX_MONTHS = 12


def build_timeline(current_total: int, remaining: int, months: int) -> list[TimelinePoint]:
    """Chart-only projection, capped at 12 months.

    Only the literal completion month is pinned to the exact target; when
    the ETA runs past the cap the curve just stops short.
    """
    per_month = remaining / months if remaining > 0 and months > 0 else 0.0
    target = current_total + remaining
    points = [TimelinePoint(month="Now", credits=0, cumulative=float(current_total))]

    for i in range(1, min(months, TIMELINE_MAX_MONTHS) + 1):
        is_final = i == months and months <= TIMELINE_MAX_MONTHS
        cumulative = float(target) if is_final else round(current_total + per_month * i, 1)
        points.append(TimelinePoint(month=f"M{i}", credits=round(per_month), cumulative=cumulative))
    return points


def calculate_eta(
    completed: int,
    in_progress: int,
    weekly_hours: float,
    hours_per_credit: float,
    *,
    program_total: int = PROGRAM_TOTAL_CREDITS,
) -> ETAResult:
    remaining = max(0, program_total - completed - in_progress)

    degraded = False
    hours = safe_number(weekly_hours)
    if hours <= 0:
        logger.warning("non-positive weekly hours=%s; using default pace for ETA", weekly_hours)
        hours = DEFAULT_WEEKLY_HOURS
        degraded = True

    per_credit = safe_number(hours_per_credit)
    if per_credit <= 0:
        per_credit = DEFAULT_HOURS_PER_CREDIT
        degraded = True

    if remaining == 0:
        return ETAResult(
            months=0,
            weeks_needed=0.0,
            exceeds_one_year=False,
            effective_monthly_throughput=0.0,
            degraded=degraded,
            timeline=build_timeline(completed + in_progress, 0, 0),
        )

    weeks_needed = remaining * per_credit / hours
    months = math.ceil(weeks_needed / WEEKS_PER_MONTH)
    throughput = hours / per_credit * WEEKS_PER_MONTH

    return ETAResult(
        months=months,
        weeks_needed=weeks_needed,
        exceeds_one_year=months > ONE_YEAR_MONTHS,
        effective_monthly_throughput=throughput,
        degraded=degraded,
        timeline=build_timeline(completed + in_progress, remaining, months),
    )
