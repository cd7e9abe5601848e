"""Ledger commands."""

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.entities import ACCOUNT_BUCKETS, ENTRY_TYPES
from walletledger.domain.ledger import LedgerJournal


@click.group()
def ledger_group():
    """Inspect the ledger."""
    pass


@ledger_group.command("show")
@click.argument("entry_id", metavar="ENTRY_ID")
@click.pass_context
def show_entry(ctx, entry_id: str):
    """Show a ledger entry."""
    journal = LedgerJournal(ctx.obj["db"])
    try:
        entry = journal.get_entry(entry_id)
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Ledger entry {entry.entry_id}")
    click.echo(f"  Reference: {entry.transaction_ref}")
    click.echo(f"  Date: {entry.entry_date}")
    click.echo(f"  Account: {entry.account}")
    click.echo(f"  Debit / credit: {entry.debit} / {entry.credit} {entry.currency}")
    click.echo(f"  Type: {entry.entry_type}")
    if entry.description:
        click.echo(f"  Description: {entry.description}")
    if entry.notes:
        click.echo(f"  Notes: {entry.notes}")
    if entry.settlement_batch:
        click.echo(f"  Settlement batch: {entry.settlement_batch}")


@ledger_group.command("list")
@click.option("--ref", "transaction_ref", help="Only entries for this transaction or revenue reference")
@click.option("--account", type=click.Choice(ACCOUNT_BUCKETS))
@click.option("--type", "entry_type", type=click.Choice(ENTRY_TYPES))
@click.option("--limit", type=int, default=50, show_default=True)
@click.option("--offset", type=int, default=0)
@click.pass_context
def list_entries(
    ctx,
    transaction_ref: str | None,
    account: str | None,
    entry_type: str | None,
    limit: int,
    offset: int,
):
    """List ledger entries, newest first."""
    journal = LedgerJournal(ctx.obj["db"])
    entries = journal.list_entries(
        transaction_ref=transaction_ref,
        account=account,
        entry_type=entry_type,
        limit=limit,
        offset=offset,
    )
    if not entries:
        click.echo("No ledger entries found.")
        return

    click.echo("\nLedger:")
    click.echo("-" * 100)
    for e in entries:
        click.echo(
            f"{e.entry_id:34s} | {e.transaction_ref:34s} | {e.account:9s} | "
            f"Dr {e.debit:>9} | Cr {e.credit:>9} | {e.entry_type}"
        )


def register_commands(cli):
    """Register ledger commands with main CLI."""
    cli.add_command(ledger_group, name="ledger")
