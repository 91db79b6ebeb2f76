"""Trust score computation for reporters."""

from __future__ import annotations

import math
from datetime import UTC, datetime

from src.models import ScoreBreakdown, as_utc

BASE_SCORE = 10
POINTS_PER_VERIFIED_REPORT = 5
MAX_VERIFIED_BONUS = 50
MAX_ACCURACY_BONUS = 20
DAYS_PER_TENURE_POINT = 30
MAX_TENURE_BONUS = 10
POINTS_PER_FALSE_REPORT = 10
PENALTY_FLOOR = 5
MIN_SCORE = 0
MAX_SCORE = 100

_SECONDS_PER_DAY = 86_400


def round_half_up(value: float) -> int:
    """Round .5 toward positive infinity (Python's round() is banker's)."""
    return math.floor(value + 0.5)


def tenure_days(created_at: datetime | None, now: datetime) -> int:
    """Whole days since account creation, never less than 1."""
    if created_at is None:
        return 1
    elapsed = (as_utc(now) - as_utc(created_at)).total_seconds()
    return max(1, math.floor(elapsed / _SECONDS_PER_DAY))


def _non_negative(value: int | None) -> int:
    if value is None:
        return 0
    return max(0, int(value))


def compute_breakdown(
    report_count: int | None = 0,
    verified_reports: int | None = 0,
    false_reports: int | None = 0,
    created_at: datetime | None = None,
    now: datetime | None = None,
) -> ScoreBreakdown:
    """Compute a 0-100 trust score and the components that make it up.

    Verified reports earn 5 points each (capped at 50), accuracy earns up to
    20, tenure earns a point per 30 days (capped at 10) and each false report
    costs 10. The false-report penalty can never take the accumulated score
    below 5 on its own.
    """
    reports = _non_negative(report_count)
    verified = _non_negative(verified_reports)
    false = _non_negative(false_reports)
    if now is None:
        now = datetime.now(UTC)
    days = tenure_days(created_at, now)

    score = BASE_SCORE
    verified_bonus = min(MAX_VERIFIED_BONUS, verified * POINTS_PER_VERIFIED_REPORT)
    score += verified_bonus

    accuracy_bonus = 0
    if reports > 0:
        accuracy_bonus = round_half_up((verified / reports) * MAX_ACCURACY_BONUS)
    score += accuracy_bonus

    tenure_bonus = min(MAX_TENURE_BONUS, days // DAYS_PER_TENURE_POINT)
    score += tenure_bonus

    # Penalty cap uses the score accumulated so far
    penalty = min(score - PENALTY_FLOOR, false * POINTS_PER_FALSE_REPORT)
    score -= penalty

    final = max(MIN_SCORE, min(MAX_SCORE, round_half_up(score)))
    return ScoreBreakdown(
        tenure_days=days,
        base=BASE_SCORE,
        verified_bonus=verified_bonus,
        accuracy_bonus=accuracy_bonus,
        tenure_bonus=tenure_bonus,
        penalty=penalty,
        score=final,
    )


def compute_score(
    report_count: int | None = 0,
    verified_reports: int | None = 0,
    false_reports: int | None = 0,
    created_at: datetime | None = None,
    now: datetime | None = None,
) -> int:
    return compute_breakdown(
        report_count, verified_reports, false_reports, created_at, now,
    ).score
