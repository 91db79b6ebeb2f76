"""ASGI middleware requiring the admin Bearer token."""

from __future__ import annotations

import hmac
import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from src.audit.logger import AuditLogger
from src.models import AuditEvent, AuditEventType, RiskLevel

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/health"}

# Names the administrator acting through a shared token
ACTOR_HEADER = "x-admin-actor"

_REJECTION_RISK = {
    "missing_token": RiskLevel.MEDIUM,
    "invalid_format": RiskLevel.MEDIUM,
    "invalid_token": RiskLevel.HIGH,
}


def request_actor(request: Request) -> str | None:
    """Administrator resolved by AuthMiddleware for this request, if any."""
    return request.scope.get("state", {}).get("actor")


class AuthMiddleware:
    """Rejects admin API requests without a valid token (constant-time compare).

    Accepted requests carry the ``X-Admin-Actor`` header value into
    ``request.state.actor`` so trust transitions can attribute the change.
    Only rejections are audited here.
    """

    def __init__(
        self,
        app: ASGIApp,
        token: str,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.app = app
        self._token = token.encode()
        self.audit_logger = audit_logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        if request.url.path in PUBLIC_PATHS:
            await self.app(scope, receive, send)
            return

        actor = request.headers.get(ACTOR_HEADER, "").strip() or None
        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Bearer "):
            reason = "missing_token" if not auth_header else "invalid_format"
            self._audit_rejection(request, actor, reason)
            await JSONResponse({"error": "Authentication required"}, status_code=401)(
                scope, receive, send,
            )
            return

        if not hmac.compare_digest(auth_header[7:].encode(), self._token):
            self._audit_rejection(request, actor, "invalid_token")
            await JSONResponse({"error": "Access denied"}, status_code=403)(scope, receive, send)
            return

        scope.setdefault("state", {})["actor"] = actor
        await self.app(scope, receive, send)

    def _audit_rejection(self, request: Request, actor: str | None, reason: str) -> None:
        if not self.audit_logger:
            return
        try:
            self.audit_logger.log(AuditEvent(
                event_type=AuditEventType.AUTH_FAILURE,
                source_ip=request.client.host if request.client else None,
                user_id=actor,
                action=f"{request.method} {request.url.path}",
                result="failure",
                risk_level=_REJECTION_RISK[reason],
                details={"reason": reason},
            ))
        except OSError:
            logger.exception("Failed to audit rejected request to %s", request.url.path)
