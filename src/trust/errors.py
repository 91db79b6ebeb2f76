"""Exceptions raised by the trust engine and its record stores."""

from __future__ import annotations


class TrustEngineError(Exception):
    """Base class for trust engine failures."""


class NotFoundError(TrustEngineError):
    """Raised when no trust record exists for a reporter id."""

    def __init__(self, reporter_id: str) -> None:
        self.reporter_id = reporter_id
        super().__init__(f"Reporter not found: {reporter_id}")


class InvalidArgumentError(TrustEngineError):
    """Raised when a required reason is missing or a score is out of range."""


class StoreError(TrustEngineError):
    """Opaque failure reported by the persistence layer."""


class StoreConflictError(StoreError):
    """Raised when a record changed between read and conditional write."""

    def __init__(self, reporter_id: str) -> None:
        self.reporter_id = reporter_id
        super().__init__(f"Reporter {reporter_id} was modified concurrently")
