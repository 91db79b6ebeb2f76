"""Listing helpers for the trust console: search, filters, sorting and stats."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum

from src.models import ReporterPage, ReporterTrustRecord, TrustStats, TrustTier
from src.trust.classifier import TIER_THRESHOLDS, score_to_tier, tier_bounds

DEFAULT_PAGE_SIZE = 30

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class FlagFilter(str, Enum):
    ALL = "all"
    FLAGGED = "flagged"
    UNFLAGGED = "unflagged"


class SortField(str, Enum):
    NAME = "name"
    TRUST_SCORE = "trust_score"
    REPORT_COUNT = "report_count"
    ACCURACY = "accuracy"
    CREATED_AT = "created_at"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _matches_search(record: ReporterTrustRecord, needle: str) -> bool:
    lowered = needle.lower()
    return (
        lowered in record.name.lower()
        or lowered in record.email.lower()
        or needle in record.phone
    )


def _sort_key(field: SortField):
    if field is SortField.NAME:
        return lambda r: r.name.lower()
    if field is SortField.TRUST_SCORE:
        return lambda r: r.trust_score
    if field is SortField.REPORT_COUNT:
        return lambda r: r.report_count
    if field is SortField.ACCURACY:
        return lambda r: r.accuracy
    return lambda r: r.created_at or _EPOCH


def filter_reporters(
    records: Iterable[ReporterTrustRecord],
    search: str = "",
    tier: TrustTier | None = None,
    flag: FlagFilter = FlagFilter.ALL,
    sort: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
) -> list[ReporterTrustRecord]:
    """Apply search, tier and flag filters, then sort (stable)."""
    result = list(records)
    if search:
        result = [r for r in result if _matches_search(r, search)]
    if tier is not None:
        lower, upper = tier_bounds(tier)
        result = [r for r in result if lower <= r.trust_score < upper]
    if flag is FlagFilter.FLAGGED:
        result = [r for r in result if r.flagged]
    elif flag is FlagFilter.UNFLAGGED:
        result = [r for r in result if not r.flagged]

    result.sort(key=_sort_key(sort), reverse=direction is SortDirection.DESC)
    return result


def paginate(
    records: list[ReporterTrustRecord],
    page: int = 1,
    per_page: int = DEFAULT_PAGE_SIZE,
) -> ReporterPage:
    if page < 1 or per_page < 1:
        raise ValueError("page and per_page must be positive")
    start = (page - 1) * per_page
    return ReporterPage(
        items=records[start:start + per_page],
        page=page,
        per_page=per_page,
        total=len(records),
        total_pages=math.ceil(len(records) / per_page),
    )


def tier_distribution(records: Iterable[ReporterTrustRecord]) -> dict[TrustTier, int]:
    counts = {tier: 0 for tier in TrustTier}
    for record in records:
        counts[score_to_tier(record.trust_score)] += 1
    return counts


def compute_stats(records: Iterable[ReporterTrustRecord]) -> TrustStats:
    """Dashboard figures; averages are 0 for an empty population."""
    items = list(records)
    total = len(items)
    divisor = total or 1
    return TrustStats(
        total=total,
        average_trust=sum(r.trust_score for r in items) / divisor,
        average_reports=sum(r.report_count for r in items) / divisor,
        high_trust=sum(1 for r in items if r.trust_score >= TIER_THRESHOLDS[TrustTier.TRUSTED]),
        flagged=sum(1 for r in items if r.flagged),
        distribution=tier_distribution(items),
    )
