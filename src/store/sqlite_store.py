"""SQLite-backed trust record store."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from typing import Any

from src.models import ReporterTrustRecord, as_utc
from src.store.base import check_writable
from src.store.db import ReporterDB
from src.trust.errors import NotFoundError, StoreConflictError, StoreError

_COLUMNS = (
    "id", "name", "email", "phone", "report_count", "verified_reports",
    "false_reports", "trust_score", "trust_reason", "flagged", "flag_reason",
    "created_at", "updated_at",
)


def _to_column(value: Any) -> Any:
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class SqliteTrustRecordStore:
    """Trust records persisted in a single SQLite table.

    Rows are normalized through ReporterTrustRecord.from_document on read, so
    legacy rows with NULL counters or scores load with zero defaults.
    """

    def __init__(self, db_path: str) -> None:
        self._db = ReporterDB(db_path)
        self._lock = threading.Lock()

    def add(self, record: ReporterTrustRecord) -> None:
        values = tuple(_to_column(getattr(record, c)) for c in _COLUMNS)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            with self._lock:
                self._db.execute(
                    f"INSERT INTO reporters ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    values,
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Reporter already exists: {record.id}") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to insert reporter {record.id}: {exc}") from exc

    def delete(self, reporter_id: str) -> None:
        with self._lock:
            cursor = self._run("DELETE FROM reporters WHERE id = ?", (reporter_id,))
        if cursor.rowcount == 0:
            raise NotFoundError(reporter_id)

    def get(self, reporter_id: str) -> ReporterTrustRecord:
        try:
            with self._lock:
                row = self._db.fetch_one("SELECT * FROM reporters WHERE id = ?", (reporter_id,))
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read reporter {reporter_id}: {exc}") from exc
        if row is None:
            raise NotFoundError(reporter_id)
        return ReporterTrustRecord.from_document(row)

    def list_all(self) -> list[ReporterTrustRecord]:
        try:
            with self._lock:
                rows = self._db.fetch_all("SELECT * FROM reporters")
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list reporters: {exc}") from exc
        return [ReporterTrustRecord.from_document(row) for row in rows]

    def update(
        self,
        reporter_id: str,
        fields: dict[str, Any],
        expected_updated_at: datetime | None = None,
    ) -> ReporterTrustRecord:
        check_writable(fields)
        assignments = ", ".join(f"{name} = ?" for name in fields)
        params: list[Any] = [_to_column(v) for v in fields.values()]
        sql = f"UPDATE reporters SET {assignments} WHERE id = ?"
        params.append(reporter_id)

        with self._lock:
            if expected_updated_at is not None:
                # Compare-and-swap on the parsed timestamp; rows written by
                # other services may store it in a different ISO 8601 form
                stored = self._stored_updated_at(reporter_id)
                current = ReporterTrustRecord.from_document(
                    {"id": reporter_id, "updated_at": stored},
                ).updated_at
                if current is None or current != as_utc(expected_updated_at):
                    raise StoreConflictError(reporter_id)
                sql += " AND updated_at = ?"
                params.append(stored)
            cursor = self._run(sql, tuple(params))
        if cursor.rowcount == 0:
            # Distinguish a missing row from a lost race
            self.get(reporter_id)
            raise StoreConflictError(reporter_id)
        return self.get(reporter_id)

    def close(self) -> None:
        self._db.close()

    def _stored_updated_at(self, reporter_id: str) -> Any:
        try:
            row = self._db.fetch_one(
                "SELECT updated_at FROM reporters WHERE id = ?", (reporter_id,),
            )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read reporter {reporter_id}: {exc}") from exc
        if row is None:
            raise NotFoundError(reporter_id)
        return row["updated_at"]

    def _run(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
        try:
            return self._db.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"Database write failed: {exc}") from exc
