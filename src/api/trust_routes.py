"""Admin API endpoints for reporter trust management."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.api.auth_middleware import request_actor
from src.models import TrustTier
from src.trust.administration import TrustAdministration
from src.trust.classifier import classify
from src.trust.errors import (
    InvalidArgumentError,
    NotFoundError,
    StoreConflictError,
    StoreError,
    TrustEngineError,
)
from src.trust.query import (
    DEFAULT_PAGE_SIZE,
    FlagFilter,
    SortDirection,
    SortField,
    compute_stats,
    filter_reporters,
    paginate,
)

logger = logging.getLogger(__name__)


class OverrideRequest(BaseModel):
    score: int
    reason: str = ""
    actor: str | None = None


class FlagRequest(BaseModel):
    reason: str = ""
    actor: str | None = None


class ActorRequest(BaseModel):
    actor: str | None = None


def _actor(
    request: Request,
    body: ActorRequest | FlagRequest | OverrideRequest | None,
) -> str | None:
    if body is not None and body.actor:
        return body.actor
    return request_actor(request)


def _error_response(exc: TrustEngineError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        return JSONResponse({"error": str(exc)}, status_code=404)
    if isinstance(exc, InvalidArgumentError):
        return JSONResponse({"error": str(exc)}, status_code=400)
    if isinstance(exc, StoreConflictError):
        return JSONResponse({"error": str(exc)}, status_code=409)
    if isinstance(exc, StoreError):
        logger.warning("Trust store failure: %s", exc)
        return JSONResponse({"error": "Storage unavailable"}, status_code=503)
    logger.exception("Unexpected trust engine error")
    return JSONResponse({"error": "Internal error"}, status_code=500)


def create_trust_router(
    admin: TrustAdministration,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> APIRouter:
    """Create the reporter trust API router."""
    router = APIRouter(prefix="/reporters")

    @router.get("")
    async def list_reporters(
        search: str = "",
        tier: TrustTier | None = None,
        flag: FlagFilter = FlagFilter.ALL,
        sort: SortField = SortField.NAME,
        direction: SortDirection = SortDirection.ASC,
        page: int = Query(default=1, ge=1),
        per_page: int = Query(default=page_size, ge=1, le=500),
    ) -> JSONResponse:
        try:
            records = admin.store.list_all()
        except TrustEngineError as exc:
            return _error_response(exc)
        filtered = filter_reporters(
            records, search=search, tier=tier, flag=flag, sort=sort, direction=direction,
        )
        result = paginate(filtered, page=page, per_page=per_page)
        return JSONResponse(result.model_dump(mode="json"))

    @router.get("/stats")
    async def stats() -> JSONResponse:
        try:
            records = admin.store.list_all()
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse(compute_stats(records).model_dump(mode="json"))

    @router.post("/recalculate")
    async def recalculate_all(request: Request, body: ActorRequest | None = None) -> JSONResponse:
        actor = _actor(request, body)
        try:
            results = admin.run_recalculation(actor=actor)
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse({
            "updated": sum(1 for r in results if r.success),
            "failed": [r.model_dump() for r in results if not r.success],
        })

    @router.get("/{reporter_id}")
    async def get_reporter(reporter_id: str) -> JSONResponse:
        try:
            record = admin.get(reporter_id)
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse({
            "record": record.model_dump(mode="json"),
            "classification": classify(record.trust_score).model_dump(mode="json"),
            "breakdown": admin.breakdown(record).model_dump(),
        })

    @router.get("/{reporter_id}/history")
    async def history(reporter_id: str) -> JSONResponse:
        try:
            admin.get(reporter_id)
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse([e.model_dump(mode="json") for e in admin.history(reporter_id)])

    @router.post("/{reporter_id}/override")
    async def override(reporter_id: str, body: OverrideRequest, request: Request) -> JSONResponse:
        try:
            record = admin.manual_override(
                reporter_id, body.score, body.reason, actor=_actor(request, body),
            )
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse(record.model_dump(mode="json"))

    @router.post("/{reporter_id}/recalculate")
    async def recalculate(
        reporter_id: str, request: Request, body: ActorRequest | None = None,
    ) -> JSONResponse:
        try:
            record = admin.recalculate(reporter_id, actor=_actor(request, body))
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse(record.model_dump(mode="json"))

    @router.post("/{reporter_id}/flag")
    async def flag(reporter_id: str, body: FlagRequest, request: Request) -> JSONResponse:
        try:
            record = admin.set_flag(reporter_id, True, body.reason, actor=_actor(request, body))
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse(record.model_dump(mode="json"))

    @router.post("/{reporter_id}/unflag")
    async def unflag(
        reporter_id: str, request: Request, body: ActorRequest | None = None,
    ) -> JSONResponse:
        try:
            record = admin.set_flag(reporter_id, False, actor=_actor(request, body))
        except TrustEngineError as exc:
            return _error_response(exc)
        return JSONResponse(record.model_dump(mode="json"))

    return router
