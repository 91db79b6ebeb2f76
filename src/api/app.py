"""FastAPI admin application for reporter trust management."""

from __future__ import annotations

import os

from fastapi import FastAPI

from src.api.auth_middleware import AuthMiddleware
from src.api.trust_routes import create_trust_router
from src.audit.logger import AuditLogger
from src.store.sqlite_store import SqliteTrustRecordStore
from src.trust.administration import TrustAdministration
from src.trust.query import DEFAULT_PAGE_SIZE


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    token = os.environ["ADMIN_TOKEN"]
    db_path = os.environ.get("TRUST_DB_PATH", "data/trust.db")
    audit_log = os.environ.get("AUDIT_LOG_PATH")
    page_size = int(os.environ.get("TRUST_PAGE_SIZE", str(DEFAULT_PAGE_SIZE)))

    audit_logger = AuditLogger.from_env(audit_log) if audit_log else None
    admin = TrustAdministration(SqliteTrustRecordStore(db_path), audit_logger)
    return create_app(token, admin, audit_logger, page_size=page_size)


def create_app(
    token: str,
    admin: TrustAdministration,
    audit_logger: AuditLogger | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> FastAPI:
    """Create the admin API with bearer-token auth."""
    app = FastAPI(docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(create_trust_router(admin, page_size=page_size))
    app.add_middleware(AuthMiddleware, token=token, audit_logger=audit_logger)

    return app
