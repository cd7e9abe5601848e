"""Wallet management commands."""

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.entities import OWNER_TYPES, TIERS
from walletledger.domain.errors import EligibilityError
from walletledger.domain.wallet import WalletService, effective_monthly_count
from walletledger.domain.wallet_guard import WalletGuard
from walletledger.utils.amount_parser import parse_amount


def _show(wallet) -> None:
    status = "active" if wallet.is_active else "inactive"
    click.echo(f"Wallet {wallet.id}: {wallet.owner_ref} ({wallet.owner_type}, {status})")
    click.echo(f"  Balance: {wallet.balance} {wallet.currency}")
    click.echo(f"  Tier: {wallet.tier}")
    click.echo(f"  Transactions this month: {effective_monthly_count(wallet)}")


@click.group()
def wallet_group():
    """Manage wallets."""
    pass


@wallet_group.command("create")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.option("--type", "owner_type", type=click.Choice(OWNER_TYPES), default="user", show_default=True)
@click.option("--tier", type=click.Choice(TIERS, case_sensitive=False), default="STANDARD", show_default=True)
@click.option("--currency", default="USD", show_default=True, help="ISO currency code")
@click.option("--balance", default="0", help="Opening balance")
@click.pass_context
def create_wallet(ctx, owner_ref: str, owner_type: str, tier: str, currency: str, balance: str):
    """Create a wallet for a user, merchant or driver.

    Examples:
        walletledger wallet create alice
        walletledger wallet create shop-42 --type merchant --tier PREMIUM --balance 500
    """
    service = WalletService(ctx.obj["db"])
    try:
        wallet_id = service.create_wallet(
            owner_ref=owner_ref,
            owner_type=owner_type,
            tier=tier,
            currency=currency,
            initial_balance=parse_amount(balance),
        )
        click.echo(f"Created wallet for '{owner_ref}' (ID: {wallet_id})")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("show")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.pass_context
def show_wallet(ctx, owner_ref: str):
    """Show a wallet."""
    service = WalletService(ctx.obj["db"])
    try:
        _show(service.get_wallet(owner_ref))
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("list")
@click.option("--tier", type=click.Choice(TIERS, case_sensitive=False), help="Only wallets of this tier")
@click.pass_context
def list_wallets(ctx, tier: str | None):
    """List wallets."""
    service = WalletService(ctx.obj["db"])
    wallets = service.list_wallets(tier=tier)
    if not wallets:
        click.echo("No wallets found.")
        return

    click.echo("\nWallets:")
    click.echo("-" * 72)
    for w in wallets:
        status = "active" if w.is_active else "inactive"
        click.echo(
            f"ID: {w.id:4d} | {w.owner_ref:20s} | {w.tier:8s} | "
            f"{w.balance:>12} {w.currency} | {status}"
        )


@wallet_group.command("deposit")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.argument("amount", metavar="AMOUNT")
@click.pass_context
def deposit(ctx, owner_ref: str, amount: str):
    """Credit AMOUNT to a wallet."""
    service = WalletService(ctx.obj["db"])
    try:
        wallet = service.deposit(owner_ref, parse_amount(amount))
        click.echo(f"Deposited {amount} into '{owner_ref}'. New balance: {wallet.balance} {wallet.currency}")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("activate")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.pass_context
def activate(ctx, owner_ref: str):
    """Re-activate a wallet."""
    service = WalletService(ctx.obj["db"])
    try:
        service.set_active(owner_ref, True)
        click.echo(f"Activated wallet '{owner_ref}'")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("deactivate")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.pass_context
def deactivate(ctx, owner_ref: str):
    """Deactivate a wallet. Inactive wallets cannot transact."""
    service = WalletService(ctx.obj["db"])
    try:
        service.set_active(owner_ref, False)
        click.echo(f"Deactivated wallet '{owner_ref}'")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("set-tier")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.argument("tier", type=click.Choice(TIERS, case_sensitive=False))
@click.pass_context
def set_tier(ctx, owner_ref: str, tier: str):
    """Move a wallet to another tier."""
    service = WalletService(ctx.obj["db"])
    try:
        wallet = service.set_tier(owner_ref, tier)
        click.echo(f"Wallet '{owner_ref}' is now {wallet.tier}")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@wallet_group.command("check")
@click.argument("owner_ref", metavar="OWNER_REF")
@click.argument("amount", metavar="AMOUNT")
@click.option("--type", "transaction_type", default="transfer", show_default=True, help="Transaction type to price")
@click.pass_context
def check(ctx, owner_ref: str, amount: str, transaction_type: str):
    """Check whether a wallet may send AMOUNT, and at what fee.

    Nothing is reserved; the answer can change before a transfer runs.

    Examples:
        walletledger wallet check alice 250
        walletledger wallet check alice 100 --type withdrawal
    """
    settings = ctx.obj["settings"]
    guard = WalletGuard(ctx.obj["db"], region=settings.region, tolerance=settings.balance_tolerance)
    try:
        eligibility = guard.check_eligibility(owner_ref, parse_amount(amount), transaction_type)
    except EligibilityError as e:
        click.echo(f"Not eligible ({e.reason}): {e}")
        ctx.exit(1)
        return
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    currency = eligibility.wallet.currency
    click.echo(f"Eligible: '{owner_ref}' can send {amount} ({transaction_type})")
    click.echo(f"  Fee: {eligibility.fee_amount} {currency} ({eligibility.fee_type})")
    click.echo(f"  Total: {eligibility.total_amount} {currency}")
    click.echo(f"  Balance: {eligibility.wallet.balance} {currency}")


def register_commands(cli):
    """Register wallet commands with main CLI."""
    cli.add_command(wallet_group, name="wallet")
