"""Trust administration: overrides, recalculation and flagging of reporters."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

from src.audit.logger import AuditLogger
from src.models import (
    AuditEvent,
    AuditEventType,
    RecalculationResult,
    ReporterTrustRecord,
    RiskLevel,
    ScoreBreakdown,
)
from src.store.base import TrustRecordStore
from src.trust.errors import InvalidArgumentError, NotFoundError, StoreError
from src.trust.score import MAX_SCORE, MIN_SCORE, compute_breakdown

logger = logging.getLogger(__name__)

AUTO_RECALCULATION_REASON = "Automatic recalculation"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _require_reason(reason: str | None, what: str) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise InvalidArgumentError(f"A reason is required to {what}")
    return cleaned


class TrustAdministration:
    """Applies audited trust state transitions to one reporter at a time.

    Out-of-range manual scores are rejected, never clamped. Each successful
    transition is written through the store and, when an audit logger is
    configured, recorded as an AuditEvent.
    """

    def __init__(
        self,
        store: TrustRecordStore,
        audit_logger: AuditLogger | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.audit_logger = audit_logger
        self._clock = clock

    def get(self, reporter_id: str) -> ReporterTrustRecord:
        return self.store.get(reporter_id)

    def history(self, reporter_id: str) -> list[AuditEvent]:
        """Audited trust changes for a reporter; empty when auditing is off."""
        if not self.audit_logger:
            return []
        return self.audit_logger.history(reporter_id)

    def breakdown(self, record: ReporterTrustRecord) -> ScoreBreakdown:
        """Score the record's current counters without persisting anything."""
        return compute_breakdown(
            record.report_count,
            record.verified_reports,
            record.false_reports,
            record.created_at,
            self._clock(),
        )

    def manual_override(
        self,
        reporter_id: str,
        new_score: int,
        reason: str,
        actor: str | None = None,
    ) -> ReporterTrustRecord:
        reason = _require_reason(reason, "override a trust score")
        if isinstance(new_score, bool) or not isinstance(new_score, int):
            raise InvalidArgumentError(f"Trust score must be an integer, got {new_score!r}")
        if not MIN_SCORE <= new_score <= MAX_SCORE:
            raise InvalidArgumentError(
                f"Trust score must be between {MIN_SCORE} and {MAX_SCORE}, got {new_score}"
            )

        previous = self.store.get(reporter_id)
        updated = self.store.update(reporter_id, {
            "trust_score": new_score,
            "trust_reason": reason,
            "updated_at": self._clock(),
        })

        self._audit(
            AuditEventType.TRUST_OVERRIDE,
            action=f"override:{reporter_id}",
            actor=actor,
            risk_level=RiskLevel.HIGH,
            details={
                "reporter_id": reporter_id,
                "previous_score": previous.trust_score,
                "new_score": new_score,
                "reason": reason,
            },
        )
        return updated

    def recalculate(self, reporter_id: str, actor: str | None = None) -> ReporterTrustRecord:
        """Recompute the score from the reporter's counters and tenure.

        The write is conditional on updated_at being unchanged since the read,
        so a concurrent modification raises StoreConflictError.
        """
        record = self.store.get(reporter_id)
        new_score = self.breakdown(record).score
        updated = self.store.update(
            reporter_id,
            {
                "trust_score": new_score,
                "trust_reason": AUTO_RECALCULATION_REASON,
                "updated_at": self._clock(),
            },
            expected_updated_at=record.updated_at,
        )

        self._audit(
            AuditEventType.TRUST_RECALCULATED,
            action=f"recalculate:{reporter_id}",
            actor=actor,
            risk_level=RiskLevel.LOW,
            details={
                "reporter_id": reporter_id,
                "previous_score": record.trust_score,
                "new_score": new_score,
                "reason": AUTO_RECALCULATION_REASON,
            },
        )
        return updated

    def iter_recalculations(self, actor: str | None = None) -> Iterator[RecalculationResult]:
        """Lazily recalculate every reporter known when the sweep starts.

        Per-record failures are yielded as unsuccessful results; the sweep
        carries on past them. Updates already applied stay committed if the
        caller stops iterating early.
        """
        for record in self.store.list_all():
            try:
                updated = self.recalculate(record.id, actor=actor)
            except (NotFoundError, StoreError) as exc:
                logger.warning("Skipping trust recalculation for %s: %s", record.id, exc)
                yield RecalculationResult(
                    reporter_id=record.id,
                    success=False,
                    previous_score=record.trust_score,
                    error=str(exc),
                )
                continue
            yield RecalculationResult(
                reporter_id=record.id,
                success=True,
                previous_score=record.trust_score,
                new_score=updated.trust_score,
            )

    def run_recalculation(self, actor: str | None = None) -> list[RecalculationResult]:
        """Drain a full recalculation sweep and audit its outcome.

        Raises StoreError when the store cannot list reporters at all.
        """
        try:
            results = list(self.iter_recalculations(actor=actor))
        except StoreError as exc:
            # Per-record errors are handled in the generator; this is list_all
            logger.error("Trust recalculation sweep could not list reporters: %s", exc)
            self._audit(
                AuditEventType.TRUST_BULK_RECALCULATION,
                action="recalculate_all",
                actor=actor,
                risk_level=RiskLevel.MEDIUM,
                result="failure",
                details={"updated": 0, "error": str(exc)},
            )
            raise
        updated = sum(1 for r in results if r.success)
        failed = [r.reporter_id for r in results if not r.success]
        logger.info("Recalculated trust for %d of %d reporters", updated, len(results))

        self._audit(
            AuditEventType.TRUST_BULK_RECALCULATION,
            action="recalculate_all",
            actor=actor,
            risk_level=RiskLevel.MEDIUM,
            result="partial" if failed else "success",
            details={"updated": updated, "failed": failed},
        )
        return results

    def recalculate_all(self, actor: str | None = None) -> int:
        """Recalculate every reporter; returns how many were updated.

        Returns 0 when the store cannot list reporters at all.
        """
        try:
            results = self.run_recalculation(actor=actor)
        except StoreError:
            return 0
        return sum(1 for r in results if r.success)

    def set_flag(
        self,
        reporter_id: str,
        flagged: bool,
        reason: str = "",
        actor: str | None = None,
    ) -> ReporterTrustRecord:
        """Flag (reason required) or unflag (reason discarded) a reporter."""
        flag_reason = _require_reason(reason, "flag a reporter") if flagged else ""

        previous = self.store.get(reporter_id)
        updated = self.store.update(reporter_id, {
            "flagged": flagged,
            "flag_reason": flag_reason,
            "updated_at": self._clock(),
        })

        event_type = (
            AuditEventType.REPORTER_FLAGGED if flagged else AuditEventType.REPORTER_UNFLAGGED
        )
        self._audit(
            event_type,
            action=f"{'flag' if flagged else 'unflag'}:{reporter_id}",
            actor=actor,
            risk_level=RiskLevel.MEDIUM,
            details={
                "reporter_id": reporter_id,
                "previously_flagged": previous.flagged,
                "reason": flag_reason,
            },
        )
        return updated

    def _audit(
        self,
        event_type: AuditEventType,
        action: str,
        actor: str | None,
        risk_level: RiskLevel,
        details: dict[str, object],
        result: str = "success",
    ) -> None:
        if not self.audit_logger:
            return
        try:
            self.audit_logger.log(AuditEvent(
                event_type=event_type,
                user_id=actor,
                action=action,
                result=result,
                risk_level=risk_level,
                details=details,
            ))
        except OSError:
            # The store write has already committed
            logger.exception("Failed to write audit event %s for %s", event_type.value, action)
