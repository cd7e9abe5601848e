"""Transaction commands."""

import json

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.entities import TRANSACTION_STATUSES, TRANSACTION_TYPES
from walletledger.domain.transaction import TransactionPoster, TransactionRequest


def _show(transaction) -> None:
    click.echo(f"Transaction {transaction.transaction_ref} ({transaction.status})")
    click.echo(f"  Date: {transaction.transaction_date}")
    click.echo(f"  Type: {transaction.transaction_type}")
    click.echo(f"  From: {transaction.sender.name or transaction.sender.id} ({transaction.sender.role})")
    click.echo(f"  To: {transaction.receiver.name or transaction.receiver.id} ({transaction.receiver.role})")
    click.echo(f"  Amount: {transaction.transfer_amount} {transaction.currency}")
    for fee in transaction.fees:
        click.echo(f"  Fee: {fee.fee_amount} {fee.currency} {fee.fee_type} [{fee.revenue_status}]")
    if transaction.notes:
        click.echo(f"  Notes: {transaction.notes}")


@click.group()
def transaction_group():
    """Post and inspect transactions."""
    pass


@transaction_group.command("post")
@click.argument("payload_file", type=click.File("r"), metavar="FILE")
@click.pass_context
def post_transaction(ctx, payload_file):
    """Post a transaction from a JSON payload (use - for stdin).

    The payload carries transactionType, transferAmount, sender, receiver
    and an optional fees list of {feeAmount, feeType, description}.

    Examples:
        walletledger transaction post payment.json
        echo '{"transferAmount": 100, ...}' | walletledger transaction post -
    """
    poster = TransactionPoster(ctx.obj["db"])
    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as e:
        click.echo(f"Error: Invalid JSON: {e}", err=True)
        ctx.exit(1)
        return

    try:
        transaction = poster.post_transaction(TransactionRequest.from_payload(payload))
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Posted transaction {transaction.transaction_ref} ({transaction.status})")


@transaction_group.command("show")
@click.argument("transaction_ref", metavar="REFERENCE")
@click.pass_context
def show_transaction(ctx, transaction_ref: str):
    """Show a transaction."""
    poster = TransactionPoster(ctx.obj["db"])
    try:
        _show(poster.get_transaction(transaction_ref))
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--status", type=click.Choice(TRANSACTION_STATUSES))
@click.option("--type", "transaction_type", type=click.Choice(TRANSACTION_TYPES))
@click.option("--limit", type=int, default=50, show_default=True)
@click.option("--offset", type=int, default=0)
@click.pass_context
def list_transactions(ctx, status: str | None, transaction_type: str | None, limit: int, offset: int):
    """List transactions, newest first."""
    poster = TransactionPoster(ctx.obj["db"])
    transactions = poster.list_transactions(
        status=status, transaction_type=transaction_type, limit=limit, offset=offset
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo("\nTransactions:")
    click.echo("-" * 96)
    for t in transactions:
        click.echo(
            f"{t.transaction_ref:34s} | {t.transaction_date:%Y-%m-%d %H:%M} | {t.transaction_type:10s} | "
            f"{t.transfer_amount:>10} {t.currency} | fee {t.total_fee:>7} | {t.status}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
