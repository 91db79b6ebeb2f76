"""In-memory trust record store."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any

from src.models import ReporterTrustRecord, as_utc
from src.store.base import check_writable
from src.trust.errors import NotFoundError, StoreConflictError


class InMemoryTrustRecordStore:
    """Dict-backed store returning copies so callers cannot mutate shared state."""

    def __init__(self, records: list[ReporterTrustRecord] | None = None) -> None:
        self._records: dict[str, ReporterTrustRecord] = {}
        self._lock = threading.Lock()
        for record in records or []:
            self.add(record)

    def add(self, record: ReporterTrustRecord) -> None:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Reporter already exists: {record.id}")
            self._records[record.id] = record.model_copy(deep=True)

    def delete(self, reporter_id: str) -> None:
        with self._lock:
            if self._records.pop(reporter_id, None) is None:
                raise NotFoundError(reporter_id)

    def get(self, reporter_id: str) -> ReporterTrustRecord:
        with self._lock:
            record = self._records.get(reporter_id)
            if record is None:
                raise NotFoundError(reporter_id)
            return record.model_copy(deep=True)

    def list_all(self) -> list[ReporterTrustRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    def update(
        self,
        reporter_id: str,
        fields: dict[str, Any],
        expected_updated_at: datetime | None = None,
    ) -> ReporterTrustRecord:
        check_writable(fields)
        with self._lock:
            current = self._records.get(reporter_id)
            if current is None:
                raise NotFoundError(reporter_id)
            if expected_updated_at is not None and (
                current.updated_at is None
                or current.updated_at != as_utc(expected_updated_at)
            ):
                raise StoreConflictError(reporter_id)
            updated = ReporterTrustRecord.model_validate(
                {**current.model_dump(), **fields},
            )
            self._records[reporter_id] = updated
            return updated.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
