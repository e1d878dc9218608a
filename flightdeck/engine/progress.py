## Progress aggregation over a student's enrollments
from typing import Iterable

from flightdeck.engine.providers import normalize_provider_key
from flightdeck.engine.sanitize import clamp_credits
from flightdeck.engine.types import Enrollment, ProgressSummary

MAX_CODES = 20


def aggregate_progress(
    enrollments: Iterable[Enrollment],
    *,
    residency_provider_key: str = "umpi",
) -> ProgressSummary:
    """Reduce enrollments to completed / in-progress credit totals.

    Only `completed` and `in_progress` rows count. Totals are clamped to the
    program length; course codes are de-duplicated, completed first.
    """
    residency = normalize_provider_key(residency_provider_key)
    completed = 0
    in_progress = 0
    residency_completed = 0
    completed_codes: list[str] = []
    in_progress_codes: list[str] = []

    for e in enrollments:
        credits = max(0, e.credits)
        if e.status == "completed":
            completed += credits
            if normalize_provider_key(e.provider_key) == residency:
                residency_completed += credits
            if e.code:
                completed_codes.append(e.code)
        elif e.status == "in_progress":
            in_progress += credits
            if e.code:
                in_progress_codes.append(e.code)

    codes: list[str] = []
    for code in completed_codes + in_progress_codes:
        if code not in codes:
            codes.append(code)
        if len(codes) >= MAX_CODES:
            break

    return ProgressSummary(
        completed=clamp_credits(completed),
        in_progress=clamp_credits(in_progress),
        residency_completed=clamp_credits(residency_completed),
        codes=codes,
    )
