"""Settlement commands."""

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.errors import NothingToSettle
from walletledger.domain.settlement import SettlementBatcher
from walletledger.utils.date_parser import parse_datetime


@click.group()
def settle_group():
    """Settle pending revenue into the operating account."""
    pass


@settle_group.command("run")
@click.argument("revenue_ids", nargs=-1, type=int)
@click.option("--all", "settle_all", is_flag=True, help="Settle every pending revenue record")
@click.option("--batch-ref", help="Batch reference (generated if omitted)")
@click.option("--date", "settlement_date", help="Settlement date (default now)")
@click.option("--notes", help="Notes stamped on each settled record")
@click.pass_context
def run_settlement(
    ctx,
    revenue_ids: tuple[int, ...],
    settle_all: bool,
    batch_ref: str | None,
    settlement_date: str | None,
    notes: str | None,
):
    """Settle REVENUE_IDS (or --all pending records) as one batch.

    Records that are already settled are skipped, so re-running a batch is
    safe.

    Examples:
        walletledger settle run 1 2 3
        walletledger settle run --all --notes "Weekly sweep"
    """
    if not revenue_ids and not settle_all:
        click.echo("Error: Give revenue ids or --all", err=True)
        ctx.exit(1)
        return

    batcher = SettlementBatcher(ctx.obj["db"])
    try:
        when = parse_datetime(settlement_date) if settlement_date else None
        if settle_all:
            result = batcher.settle_pending(batch_ref=batch_ref, settlement_date=when, notes=notes)
        else:
            result = batcher.settle_batch(revenue_ids, batch_ref=batch_ref, settlement_date=when, notes=notes)
    except NothingToSettle as e:
        click.echo(f"Nothing to settle: {e}")
        click.echo(f"Settled: {e.settled_count}")
        return
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Settlement batch {result.batch_ref}")
    click.echo(f"Settled: {result.settled_count}")
    click.echo(f"Total: {result.total_amount} {result.currency}")


@settle_group.command("list")
@click.option("--batch-ref", help="Only this batch")
@click.pass_context
def list_batches(ctx, batch_ref: str | None):
    """List settlement batches."""
    batcher = SettlementBatcher(ctx.obj["db"])
    batches = batcher.list_batches(batch_ref=batch_ref)
    if not batches:
        click.echo("No settlement batches found.")
        return

    click.echo("\nSettlement batches:")
    click.echo("-" * 80)
    for b in batches:
        when = f"{b.settlement_date:%Y-%m-%d %H:%M}" if b.settlement_date else "-"
        click.echo(f"{b.batch_ref:28s} | {when} | {b.count:3d} records | {b.total_amount:>10} {b.currency}")


def register_commands(cli):
    """Register settlement commands with main CLI."""
    cli.add_command(settle_group, name="settle")
