"""Persistence protocol for reporter trust records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from src.models import ReporterTrustRecord

# Fields this engine is allowed to write
WRITABLE_FIELDS = frozenset({
    "trust_score",
    "trust_reason",
    "flagged",
    "flag_reason",
    "updated_at",
})


@runtime_checkable
class TrustRecordStore(Protocol):
    """Store of ReporterTrustRecord keyed by reporter id.

    ``update`` raises NotFoundError for an unknown id and StoreConflictError
    when ``expected_updated_at`` is given and no longer matches.
    """

    def get(self, reporter_id: str) -> ReporterTrustRecord: ...

    def list_all(self) -> list[ReporterTrustRecord]: ...

    def update(
        self,
        reporter_id: str,
        fields: dict[str, Any],
        expected_updated_at: datetime | None = None,
    ) -> ReporterTrustRecord: ...


def check_writable(fields: dict[str, Any]) -> None:
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not writable by the trust engine: {sorted(unknown)}")
