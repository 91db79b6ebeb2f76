"""End-to-end trust administration flow against SQLite and a real audit log."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app, create_app_from_env
from src.audit.logger import AuditLogger, validate_audit_chain
from src.models import AuditEventType
from src.store.sqlite_store import SqliteTrustRecordStore
from src.trust.administration import TrustAdministration
from tests.conftest import NOW, days_ago, make_reporter

TOKEN = "integration-token"


@pytest.fixture
def store(tmp_path: Path):
    store = SqliteTrustRecordStore(str(tmp_path / "trust.db"))
    store.add(make_reporter(id="r1", name="Naledi", created_at=days_ago(400)))
    store.add(make_reporter(id="r2", name="Pieter", report_count=5, verified_reports=1,
                            false_reports=3, created_at=days_ago(5)))
    yield store
    store.close()


@pytest.fixture
def audit_log(tmp_path: Path) -> Path:
    return tmp_path / "audit" / "trust.jsonl"


def test_override_recalculate_flag_round_trip(store, audit_log):
    admin = TrustAdministration(store, AuditLogger(str(audit_log)), clock=lambda: NOW)

    admin.manual_override("r1", 95, "Council-verified reporter", actor="admin-1")
    assert store.get("r1").trust_score == 95

    # 10 + 40 + 16 + 10 tenure points at 400 days
    assert admin.recalculate("r1").trust_score == 76

    # 10 + 5 + 4 = 19 before penalty; penalty stops at the floor of 5
    assert admin.recalculate("r2").trust_score == 5

    admin.set_flag("r2", True, "Repeated false reports", actor="admin-1")
    flagged = store.get("r2")
    assert flagged.flagged is True
    assert flagged.flag_reason == "Repeated false reports"

    assert validate_audit_chain(audit_log).valid

    history = admin.history("r1")
    assert [e.event_type for e in history] == [
        AuditEventType.TRUST_OVERRIDE,
        AuditEventType.TRUST_RECALCULATED,
    ]
    assert history[0].details["previous_score"] == 0
    assert history[1].details["previous_score"] == 95


def test_bulk_recalculation_is_audited(store, audit_log):
    admin = TrustAdministration(store, AuditLogger(str(audit_log)), clock=lambda: NOW)

    assert admin.recalculate_all(actor="nightly") == 2

    entries = [json.loads(line) for line in audit_log.read_text().splitlines()]
    assert entries[-1]["event_type"] == "trust_bulk_recalculation"
    assert entries[-1]["details"] == {"updated": 2, "failed": []}
    assert entries[-1]["user_id"] == "nightly"
    assert validate_audit_chain(audit_log).valid


def test_audit_chain_survives_rotation(store, audit_log):
    admin = TrustAdministration(
        store, AuditLogger(str(audit_log), max_bytes=200, backup_count=3), clock=lambda: NOW,
    )
    for score in (10, 20, 30, 40):
        admin.manual_override("r1", score, "calibration")

    assert Path(f"{audit_log}.1").exists()
    assert validate_audit_chain(audit_log).valid


@pytest.mark.asyncio
async def test_api_against_sqlite(store, audit_log):
    audit_logger = AuditLogger(str(audit_log))
    app = create_app(TOKEN, TrustAdministration(store, audit_logger), audit_logger)
    headers = {"authorization": f"Bearer {TOKEN}"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.post(
            "/reporters/r2/flag", json={"reason": "Photos reused", "actor": "admin-2"},
            headers=headers,
        )
        assert resp.status_code == 200

        resp = await client.get("/reporters", params={"flag": "flagged"}, headers=headers)
        assert [r["id"] for r in resp.json()["items"]] == ["r2"]

        resp = await client.get("/reporters/r2/history", headers=headers)
        assert resp.json()[0]["event_type"] == "reporter_flagged"

        resp = await client.get("/reporters", headers={"authorization": "Bearer nope"})
        assert resp.status_code == 403

    events = list(audit_logger.events())
    assert events[-1].event_type == AuditEventType.AUTH_FAILURE


@pytest.mark.asyncio
async def test_create_app_from_env(monkeypatch, tmp_path: Path):
    db_path = tmp_path / "env.db"
    seeded = SqliteTrustRecordStore(str(db_path))
    for i in range(7):
        seeded.add(make_reporter(id=f"r{i}", name=f"Reporter {i}"))
    seeded.close()

    monkeypatch.setenv("ADMIN_TOKEN", TOKEN)
    monkeypatch.setenv("TRUST_DB_PATH", str(db_path))
    monkeypatch.setenv("TRUST_PAGE_SIZE", "5")
    monkeypatch.delenv("AUDIT_LOG_PATH", raising=False)

    app = create_app_from_env()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/reporters", headers={"authorization": f"Bearer {TOKEN}"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["per_page"] == 5
        assert len(body["items"]) == 5
        assert body["total"] == 7
        assert body["total_pages"] == 2

        resp = await client.get("/reporters")
        assert resp.status_code == 401
