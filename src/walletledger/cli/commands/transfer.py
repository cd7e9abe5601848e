"""Transfer command."""

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.transfer import TransferService
from walletledger.utils.amount_parser import parse_amount


@click.command("transfer")
@click.argument("sender", metavar="SENDER")
@click.argument("receiver", metavar="RECEIVER")
@click.argument("amount", metavar="AMOUNT")
@click.option("--description", help="Note stored on the transaction")
@click.pass_context
def transfer(ctx, sender: str, receiver: str, amount: str, description: str | None):
    """Transfer AMOUNT from SENDER's wallet to RECEIVER's wallet.

    The sender pays the fee selected for its tier on top of AMOUNT.

    Examples:
        walletledger transfer alice bob 100
        walletledger transfer alice shop-42 "$1,250.00" --description "Invoice 17"
    """
    settings = ctx.obj["settings"]
    service = TransferService(ctx.obj["db"], region=settings.region, tolerance=settings.balance_tolerance)
    try:
        result = service.transfer(sender, receiver, parse_amount(amount), description=description)
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Transfer {result.transaction_ref} completed")
    click.echo(f"  Amount: {result.amount}")
    click.echo(f"  Fee: {result.fee_amount} ({result.fee_type})")
    click.echo(f"  Sender balance: {result.sender_balance}")


def register_commands(cli):
    """Register transfer command with main CLI."""
    cli.add_command(transfer)
