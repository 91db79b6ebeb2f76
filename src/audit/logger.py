"""Audit trail for trust changes: hash-chained JSON Lines with rotation."""

from __future__ import annotations

import fcntl
import hashlib
import json
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from src.models import AuditEvent


def _line_hash(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _last_line(path: Path) -> str | None:
    if not path.exists():
        return None
    text = path.read_text().strip()
    return text.split("\n")[-1] if text else None


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every line's prev_hash matches the SHA-256 of the line before it.

    After rotation the first line chains to the last line of ``<log>.1``.
    """
    lines = log_path.read_text().strip().split("\n")
    if not lines or lines == [""]:
        return ChainValidationResult(valid=True)

    previous = _last_line(log_path.parent / f"{log_path.name}.1")
    for number, line in enumerate(lines, start=1):
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            return ChainValidationResult(valid=False, broken_at_line=number)
        expected = _line_hash(previous) if previous is not None else None
        if entry.get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        previous = line

    return ChainValidationResult(valid=True)


class AuditLogger:
    """Append-only audit log of trust overrides, recalculations and flags."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        # Resume the chain from the current file, or from the newest backup
        # when rotation left the current file empty
        self._last_line: str | None = (
            _last_line(self.log_path) or _last_line(self._backup_path(1))
        )

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        max_bytes = int(os.environ.get("AUDIT_LOG_MAX_BYTES", "10485760"))
        backup_count = int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", "5"))
        return cls(log_path=log_path, max_bytes=max_bytes, backup_count=backup_count)

    def _backup_path(self, index: int) -> Path:
        return self.log_path.parent / f"{self.log_path.name}.{index}"

    def _maybe_rotate(self) -> None:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return

        oldest = self._backup_path(self._backup_count)
        if oldest.exists():
            oldest.unlink()
        for i in range(self._backup_count - 1, 0, -1):
            if self._backup_path(i).exists():
                self._backup_path(i).rename(self._backup_path(i + 1))
        self.log_path.rename(self._backup_path(1))

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        data = json.loads(event.model_dump_json())
        data["prev_hash"] = _line_hash(self._last_line) if self._last_line is not None else None
        line = json.dumps(data, separators=(",", ":"))

        lock_file = self.log_path.parent / f".{self.log_path.name}.lock"
        with open(lock_file, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                self._maybe_rotate()
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)

        self._last_line = line

    def events(self) -> Iterator[AuditEvent]:
        """Yield events from the current log file, oldest first."""
        if not self.log_path.exists():
            return
        with open(self.log_path) as f:
            for line in f:
                if not line.strip():
                    continue
                data = json.loads(line)
                data.pop("prev_hash", None)
                yield AuditEvent.model_validate(data)

    def history(self, reporter_id: str) -> list[AuditEvent]:
        """Events in the current log file that concern one reporter."""
        return [
            e for e in self.events()
            if e.details is not None and e.details.get("reporter_id") == reporter_id
        ]
