"""Revenue commands."""

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.entities import REVENUE_STATUSES
from walletledger.domain.revenue import RevenueRecognizer, RevenueRequest
from walletledger.utils.amount_parser import parse_amount


@click.group()
def revenue_group():
    """Record and inspect fee revenue."""
    pass


@revenue_group.command("record")
@click.argument("amount", metavar="AMOUNT")
@click.option("--type", "revenue_type", default="transaction_fee", show_default=True)
@click.option("--transaction-ref", help="Originating transaction reference")
@click.option("--status", type=click.Choice(REVENUE_STATUSES), default="pending", show_default=True)
@click.option("--currency", default="USD", show_default=True)
@click.option("--description", help="Description")
@click.pass_context
def record_revenue(
    ctx,
    amount: str,
    revenue_type: str,
    transaction_ref: str | None,
    status: str,
    currency: str,
    description: str | None,
):
    """Recognize AMOUNT of fee revenue.

    Examples:
        walletledger revenue record 3.00 --transaction-ref TXN-20240115103000-1A2B3C4D
        walletledger revenue record 2.99 --type service_fee --status settled
    """
    recognizer = RevenueRecognizer(ctx.obj["db"])
    try:
        request = RevenueRequest(
            amount=parse_amount(amount),
            revenue_type=revenue_type,
            currency=currency.upper(),
            status=status,
            associated_transaction_ref=transaction_ref,
            description=description,
            region=ctx.obj["settings"].region,
        )
        record = recognizer.record_revenue(request)
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Recorded revenue {record.revenue_ref} (ID: {record.id}, {record.status})")


@revenue_group.command("list")
@click.option("--status", type=click.Choice(REVENUE_STATUSES))
@click.pass_context
def list_revenue(ctx, status: str | None):
    """List revenue records."""
    recognizer = RevenueRecognizer(ctx.obj["db"])
    records = recognizer.list_revenues(status=status)
    if not records:
        click.echo("No revenue records found.")
        return

    click.echo("\nRevenue:")
    click.echo("-" * 96)
    for r in records:
        batch = f" | batch {r.settlement_batch}" if r.settlement_batch else ""
        click.echo(
            f"ID: {r.id:4d} | {r.revenue_ref:38s} | {r.amount:>9} {r.currency} | {r.status}{batch}"
        )


def register_commands(cli):
    """Register revenue commands with main CLI."""
    cli.add_command(revenue_group, name="revenue")
