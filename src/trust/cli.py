"""Click CLI for reporter trust administration."""

from __future__ import annotations

import json

import click

from src.audit.logger import AuditLogger
from src.models import TrustTier
from src.store.sqlite_store import SqliteTrustRecordStore
from src.trust.administration import TrustAdministration
from src.trust.classifier import classify
from src.trust.errors import TrustEngineError
from src.trust.query import (
    DEFAULT_PAGE_SIZE,
    FlagFilter,
    SortDirection,
    SortField,
    compute_stats,
    filter_reporters,
    paginate,
)


def _admin(ctx: click.Context) -> TrustAdministration:
    return ctx.obj["admin"]


@click.group()
@click.option("--db", default="data/trust.db", envvar="TRUST_DB_PATH", help="Trust database path.")
@click.option("--audit-log", default=None, envvar="AUDIT_LOG_PATH", help="Audit log file path.")
@click.option("--actor", default="cli-user", help="Administrator recorded in the audit trail.")
@click.pass_context
def cli(ctx: click.Context, db: str, audit_log: str | None, actor: str) -> None:
    """Reporter trust administration CLI."""
    ctx.ensure_object(dict)
    audit_logger = AuditLogger.from_env(audit_log) if audit_log else None
    ctx.obj["admin"] = TrustAdministration(SqliteTrustRecordStore(db), audit_logger)
    ctx.obj["actor"] = actor


@cli.command()
@click.argument("reporter_id")
@click.pass_context
def show(ctx: click.Context, reporter_id: str) -> None:
    """Show a reporter's trust record, tier and score breakdown."""
    admin = _admin(ctx)
    try:
        record = admin.get(reporter_id)
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    output = {
        "record": json.loads(record.model_dump_json()),
        "classification": classify(record.trust_score).model_dump(mode="json"),
        "breakdown": admin.breakdown(record).model_dump(),
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.argument("reporter_id")
@click.pass_context
def history(ctx: click.Context, reporter_id: str) -> None:
    """Show audited trust changes for a reporter (needs --audit-log)."""
    events = _admin(ctx).history(reporter_id)
    click.echo(json.dumps([e.model_dump(mode="json") for e in events], indent=2))


@cli.command("list")
@click.option("--search", default="", help="Match name, email or phone.")
@click.option("--tier", type=click.Choice([t.value for t in TrustTier]), default=None)
@click.option("--flag", type=click.Choice([f.value for f in FlagFilter]), default="all")
@click.option("--sort", type=click.Choice([s.value for s in SortField]), default="name")
@click.option("--direction", type=click.Choice([d.value for d in SortDirection]), default="asc")
@click.option("--page", type=int, default=1)
@click.option("--per-page", type=int, default=DEFAULT_PAGE_SIZE)
@click.pass_context
def list_reporters(
    ctx: click.Context,
    search: str,
    tier: str | None,
    flag: str,
    sort: str,
    direction: str,
    page: int,
    per_page: int,
) -> None:
    """List reporters with filters and pagination."""
    admin = _admin(ctx)
    try:
        records = admin.store.list_all()
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    filtered = filter_reporters(
        records,
        search=search,
        tier=TrustTier(tier) if tier else None,
        flag=FlagFilter(flag),
        sort=SortField(sort),
        direction=SortDirection(direction),
    )
    try:
        result = paginate(filtered, page=page, per_page=per_page)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    output = {
        "page": result.page,
        "total_pages": result.total_pages,
        "total": result.total,
        "items": [
            {
                "id": r.id,
                "name": r.name,
                "trust_score": r.trust_score,
                "tier": classify(r.trust_score).label,
                "flagged": r.flagged,
            }
            for r in result.items
        ],
    }
    click.echo(json.dumps(output, indent=2))


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show trust statistics and tier distribution."""
    try:
        records = _admin(ctx).store.list_all()
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(compute_stats(records).model_dump_json(indent=2))


@cli.command()
@click.argument("reporter_id")
@click.argument("score", type=int)
@click.option("--reason", required=True, help="Why the score is being overridden.")
@click.pass_context
def override(ctx: click.Context, reporter_id: str, score: int, reason: str) -> None:
    """Manually set a reporter's trust score (0-100)."""
    try:
        record = _admin(ctx).manual_override(reporter_id, score, reason, actor=ctx.obj["actor"])
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Trust score for {reporter_id} set to {record.trust_score}")


@cli.command()
@click.argument("reporter_id")
@click.pass_context
def recalculate(ctx: click.Context, reporter_id: str) -> None:
    """Recalculate one reporter's trust score from their activity."""
    try:
        record = _admin(ctx).recalculate(reporter_id, actor=ctx.obj["actor"])
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Trust score for {reporter_id} recalculated: {record.trust_score}")


@cli.command("recalculate-all")
@click.pass_context
def recalculate_all(ctx: click.Context) -> None:
    """Recalculate trust scores for every reporter."""
    updated = _admin(ctx).recalculate_all(actor=ctx.obj["actor"])
    click.echo(f"Recalculated trust levels for {updated} reporters")


@cli.command()
@click.argument("reporter_id")
@click.option("--reason", required=True, help="Why the reporter is suspicious.")
@click.pass_context
def flag(ctx: click.Context, reporter_id: str, reason: str) -> None:
    """Flag a reporter for suspicious activity."""
    try:
        _admin(ctx).set_flag(reporter_id, True, reason, actor=ctx.obj["actor"])
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Reporter flagged: {reporter_id}")


@cli.command()
@click.argument("reporter_id")
@click.pass_context
def unflag(ctx: click.Context, reporter_id: str) -> None:
    """Remove a reporter's suspicious-activity flag."""
    try:
        _admin(ctx).set_flag(reporter_id, False, actor=ctx.obj["actor"])
    except TrustEngineError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Flag removed: {reporter_id}")
