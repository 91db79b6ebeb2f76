#!/usr/bin/env python3
"""Integrity audit for the reporter trust engine.

Checks the audit log hash chain, rotation settings and the stored trust
records' invariants.

Exit codes:
    0  no findings, or informational findings only
    1  findings that need action

Usage:
    python scripts/audit.py [--db PATH] [--audit-log PATH] [--format json|text]
"""

from __future__ import annotations

import argparse
import json
import os
import sqlite3
import sys
from dataclasses import asdict, dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.audit.logger import validate_audit_chain  # noqa: E402


@dataclass
class Finding:
    check: str
    severity: str  # critical, high, medium, low, info
    message: str
    remediation: str


def log_integrity(log_path: Path) -> list[Finding]:
    """Check rotation settings and the audit log hash chain."""
    findings: list[Finding] = []

    if not os.environ.get("AUDIT_LOG_MAX_BYTES"):
        findings.append(Finding(
            check="log_integrity",
            severity="info",
            message="AUDIT_LOG_MAX_BYTES not configured; default rotation size applies",
            remediation="Set AUDIT_LOG_MAX_BYTES environment variable (e.g., 10485760 for 10MB)",
        ))

    if not log_path.exists():
        findings.append(Finding(
            check="log_integrity",
            severity="medium",
            message=f"Audit log not found at {log_path}",
            remediation="Set AUDIT_LOG_PATH so trust changes are recorded",
        ))
        return findings

    result = validate_audit_chain(log_path)
    if not result.valid:
        findings.append(Finding(
            check="log_integrity",
            severity="critical",
            message=f"Audit log hash chain broken at line {result.broken_at_line}",
            remediation="Investigate tampering; rotate log and restore from trusted backup",
        ))
    return findings


def record_invariants(db_path: Path) -> list[Finding]:
    """Check stored scores are in range and flag reasons match flag state."""
    if not db_path.exists():
        return [Finding(
            check="record_invariants",
            severity="low",
            message=f"Trust database not found at {db_path}",
            remediation="Point --db (or TRUST_DB_PATH) at the trust database",
        )]

    conn = sqlite3.connect(str(db_path))
    try:
        out_of_range = conn.execute(
            "SELECT COUNT(*) FROM reporters WHERE trust_score < 0 OR trust_score > 100",
        ).fetchone()[0]
        flag_mismatch = conn.execute(
            """SELECT COUNT(*) FROM reporters
               WHERE (flagged = 1 AND TRIM(flag_reason) = '')
                  OR (flagged = 0 AND flag_reason != '')""",
        ).fetchone()[0]
    finally:
        conn.close()

    findings: list[Finding] = []
    if out_of_range:
        findings.append(Finding(
            check="record_invariants",
            severity="high",
            message=f"{out_of_range} reporter(s) have a trust score outside 0-100",
            remediation="Run `trust recalculate-all` or override the affected scores",
        ))
    if flag_mismatch:
        findings.append(Finding(
            check="record_invariants",
            severity="medium",
            message=f"{flag_mismatch} reporter(s) have a flag reason inconsistent with flag state",
            remediation="Re-flag with a reason or unflag the affected reporters",
        ))
    return findings


def exit_code(findings: list[Finding]) -> int:
    """1 when any finding needs action; informational findings never fail the audit."""
    return 1 if any(f.severity != "info" for f in findings) else 0


def print_report(findings: list[Finding], fmt: str = "text") -> None:
    if fmt == "json":
        print(json.dumps([asdict(f) for f in findings], indent=2))
        return
    if not findings:
        print("No findings.")
        return
    for f in findings:
        print(f"[{f.severity.upper()}] {f.check}: {f.message}")
        print(f"    fix: {f.remediation}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Reporter trust engine integrity audit")
    parser.add_argument("--db", default=os.environ.get("TRUST_DB_PATH", "data/trust.db"))
    parser.add_argument(
        "--audit-log", default=os.environ.get("AUDIT_LOG_PATH", "data/audit.jsonl"),
    )
    parser.add_argument("--format", choices=["text", "json"], default="text")
    args = parser.parse_args()

    findings = log_integrity(Path(args.audit_log)) + record_invariants(Path(args.db))
    print_report(findings, fmt=args.format)
    return exit_code(findings)


if __name__ == "__main__":
    sys.exit(main())
