"""Shared Pydantic data models for the reporter trust engine."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# --- Enums ---


class TrustTier(str, Enum):
    NEW = "new"
    BASIC = "basic"
    RELIABLE = "reliable"
    TRUSTED = "trusted"
    VERIFIED = "verified"


class AuditEventType(str, Enum):
    AUTH_FAILURE = "auth_failure"
    TRUST_OVERRIDE = "trust_override"
    TRUST_RECALCULATED = "trust_recalculated"
    TRUST_BULK_RECALCULATION = "trust_bulk_recalculation"
    REPORTER_FLAGGED = "reporter_flagged"
    REPORTER_UNFLAGGED = "reporter_unflagged"


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Helpers ---


LEGACY_FLAG_REASON = "(no reason recorded)"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _coerce_counter(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, number)


# --- Reporter Models ---


class ReporterTrustRecord(BaseModel):
    """Trust state of one reporter.

    The counters are owned by the reporting subsystem and only read here.
    """

    id: str = Field(min_length=1)
    name: str = ""
    email: str = ""
    phone: str = ""
    report_count: int = 0
    verified_reports: int = 0
    false_reports: int = 0
    trust_score: int = Field(default=0, ge=0, le=100)
    trust_reason: str = ""
    flagged: bool = False
    flag_reason: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("report_count", "verified_reports", "false_reports", mode="before")
    @classmethod
    def _normalize_counter(cls, value: Any) -> int:
        return _coerce_counter(value)

    @field_validator("name", "email", "phone", "trust_reason", "flag_reason", mode="before")
    @classmethod
    def _normalize_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_flag_reason(self) -> ReporterTrustRecord:
        if self.flagged and not self.flag_reason.strip():
            raise ValueError("flag_reason is required when flagged is true")
        if not self.flagged and self.flag_reason:
            raise ValueError("flag_reason must be empty when flagged is false")
        return self

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> ReporterTrustRecord:
        """Build a record from a loosely-typed stored document.

        Missing, null or negative counters read as 0 and a missing or
        out-of-range score is clamped into [0, 100]. A stale flag_reason on
        an unflagged reporter is dropped; a flagged reporter without one
        gets LEGACY_FLAG_REASON.
        """
        doc = dict(data)
        raw_score = doc.get("trust_score")
        try:
            score = int(raw_score) if raw_score is not None else 0
        except (TypeError, ValueError):
            score = 0
        doc["trust_score"] = max(0, min(100, score))
        doc["flagged"] = bool(doc.get("flagged") or False)
        if not doc["flagged"]:
            doc["flag_reason"] = ""
        elif not str(doc.get("flag_reason") or "").strip():
            doc["flag_reason"] = LEGACY_FLAG_REASON
        return cls.model_validate(doc)

    @property
    def accuracy(self) -> float:
        if self.report_count <= 0:
            return 0.0
        return self.verified_reports / self.report_count


# --- Scoring Models ---


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenure_days: int = Field(ge=1)
    base: int
    verified_bonus: int = Field(ge=0, le=50)
    accuracy_bonus: int = Field(ge=0)
    tenure_bonus: int = Field(ge=0, le=10)
    penalty: int
    score: int = Field(ge=0, le=100)


class TrustClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier: TrustTier
    label: str
    color: str


# --- Administration Models ---


class RecalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reporter_id: str
    success: bool
    previous_score: int | None = None
    new_score: int | None = None
    error: str | None = None


# --- Query Models ---


class ReporterPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[ReporterTrustRecord]
    page: int = Field(ge=1)
    per_page: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class TrustStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    average_trust: float = Field(ge=0)
    average_reports: float = Field(ge=0)
    high_trust: int = Field(ge=0)
    flagged: int = Field(ge=0)
    distribution: dict[TrustTier, int]


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    source_ip: str | None = None
    user_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "partial"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
