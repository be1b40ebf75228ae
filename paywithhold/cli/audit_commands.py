"""Audit log CLI commands.

Read-only inspection of the audit log, plus delivery of records left
pending in the write-ahead spool.
"""

import json

import click

from paywithhold.sdk import (
    JsonlAuditSink,
    OutboxAuditSink,
    PersistenceError,
    get_audit_log_path,
    get_audit_spool_path,
    iter_states,
)


@click.group()
def audit():
    """Inspect the withholding audit log."""
    pass


@audit.command("list")
@click.option("--employee", "employee_id", help="Only records for this employee.")
@click.option("--limit", type=int, default=20, show_default=True, help="Most recent N records (0 = all).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              show_default=True)
def audit_list(employee_id, limit, output_format):
    """List audit records, oldest first."""
    log_path = get_audit_log_path()
    records = JsonlAuditSink(log_path).read_records(employee_id=employee_id)
    if limit:
        records = records[-limit:]

    if output_format == "json":
        click.echo(json.dumps(
            [r.model_dump(mode="json", by_alias=True) for r in records], indent=2
        ))
        return

    if not records:
        click.echo(f"No audit records in {log_path}")
        return

    for r in records:
        result = r.result
        click.echo(
            f"{r.timestamp.isoformat()}  {r.employee_id:<12} "
            f"{','.join(r.states_involved):<12} "
            f"gross {result.gross_pay:>10}  net {result.net_pay:>10}  "
            f"by {r.performed_by or 'system'}"
        )
    click.echo()
    click.echo(f"{len(records)} record(s); states: {', '.join(iter_states(records))}")


@audit.command("flush")
def audit_flush():
    """Deliver spooled audit records that have not reached the audit log."""
    spool_path = get_audit_spool_path()
    if spool_path is None:
        raise click.ClickException("audit_spool is not set; nothing to flush")

    outbox = OutboxAuditSink(spool_path, JsonlAuditSink(get_audit_log_path()))
    try:
        count = outbox.flush()
    except PersistenceError as e:
        raise click.ClickException(e.message)
    click.echo(f"Delivered {count} pending audit record(s).")
