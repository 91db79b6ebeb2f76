"""Shared test fixtures for the reporter trust engine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.models import (
    AuditEvent,
    AuditEventType,
    ReporterTrustRecord,
    RiskLevel,
)
from src.store.memory import InMemoryTrustRecordStore
from src.trust.administration import TrustAdministration

# Fixed "now" so tenure buckets are deterministic
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def memory_store() -> InMemoryTrustRecordStore:
    return InMemoryTrustRecordStore()


@pytest.fixture
def admin(memory_store: InMemoryTrustRecordStore, mock_audit_logger: MagicMock) -> TrustAdministration:
    return TrustAdministration(memory_store, mock_audit_logger, clock=lambda: NOW)


@pytest.fixture
def trust_db_path(tmp_path: Path) -> str:
    return str(tmp_path / "trust.db")


# --- Factory functions for test data ---


def make_reporter(**kwargs: object) -> ReporterTrustRecord:
    """Factory for ReporterTrustRecord with sensible defaults."""
    defaults: dict[str, object] = {
        "id": "reporter-1",
        "name": "Thandi Nkosi",
        "email": "thandi@example.org",
        "phone": "0821234567",
        "report_count": 10,
        "verified_reports": 8,
        "false_reports": 0,
        "trust_score": 0,
        "created_at": days_ago(90),
    }
    defaults.update(kwargs)
    return ReporterTrustRecord(**defaults)  # type: ignore[arg-type]


def make_audit_event(**kwargs: object) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, object] = {
        "event_type": AuditEventType.TRUST_OVERRIDE,
        "action": "override:reporter-1",
        "result": "success",
        "risk_level": RiskLevel.HIGH,
        "details": {"reporter_id": "reporter-1"},
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]


def logged_events(mock_logger: MagicMock, event_type: AuditEventType) -> list[AuditEvent]:
    return [
        call[0][0] for call in mock_logger.log.call_args_list
        if call[0][0].event_type == event_type
    ]
