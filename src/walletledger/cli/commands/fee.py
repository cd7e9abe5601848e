"""Fee rule commands."""

from decimal import Decimal

import click

from walletledger.cli.error_handling import CLI_ERRORS, handle_domain_error
from walletledger.domain.entities import (
    ANY_TRANSACTION_TYPE,
    CALCULATION_TYPES,
    DEFAULT_TIER,
    FEE_TYPES,
    TIERS,
    TRANSACTION_TYPES,
    FeeBracket,
    FeeRule,
    FixedFee,
    HybridFee,
    PercentageFee,
    TieredFee,
)
from walletledger.domain.errors import ValidationError
from walletledger.domain.fee_catalog import FeeCatalog
from walletledger.domain.wallet import WalletService
from walletledger.utils.amount_parser import parse_amount
from walletledger.utils.date_parser import parse_datetime


def parse_bracket(text: str) -> FeeBracket:
    """Parse a bracket given as MIN:MAX[:FIXED[:RATE]].

    Raises:
        ValidationError: If the bracket is malformed
    """
    parts = text.split(":")
    if len(parts) < 2 or len(parts) > 4:
        raise ValidationError(f"Bracket '{text}' must look like MIN:MAX[:FIXED[:RATE]]")
    try:
        values = [parse_amount(p) if p.strip() else Decimal("0") for p in parts]
    except ValueError as e:
        raise ValidationError(f"Bracket '{text}': {e}")
    values += [Decimal("0")] * (4 - len(values))
    return FeeBracket(
        min_amount=values[0],
        max_amount=values[1],
        fixed_amount=values[2],
        percentage_rate=values[3],
    )


def build_calculation(calculation: str, fixed: str | None, rate: str | None, brackets: tuple[str, ...]):
    """Build a calculation variant from CLI options.

    Raises:
        ValidationError: If an option the calculation needs is missing
    """

    def need(value, option):
        if value is None:
            raise ValidationError(f"--{option} is required for {calculation} fees")
        return parse_amount(value)

    if calculation == "fixed":
        return FixedFee(amount=need(fixed, "fixed"))
    if calculation == "percentage":
        return PercentageFee(rate=need(rate, "rate"))
    if calculation == "hybrid":
        return HybridFee(fixed_amount=need(fixed, "fixed"), rate=need(rate, "rate"))
    if not brackets:
        raise ValidationError("--bracket is required for tiered fees")
    return TieredFee(brackets=tuple(parse_bracket(b) for b in brackets))


def describe_calculation(rule: FeeRule) -> str:
    """One-line human description of a rule's calculation."""
    calc = rule.calculation
    if isinstance(calc, FixedFee):
        return f"fixed {calc.amount}"
    if isinstance(calc, PercentageFee):
        return f"{calc.rate}%"
    if isinstance(calc, HybridFee):
        return f"{calc.fixed_amount} + {calc.rate}%"
    return f"tiered ({len(calc.brackets)} brackets)"


@click.group()
def fee_group():
    """Manage fee rules and price transactions."""
    pass


@fee_group.command("add")
@click.argument("name")
@click.option("--fee-type", type=click.Choice(FEE_TYPES), default="transaction_fee", show_default=True)
@click.option(
    "--transaction-type",
    type=click.Choice(TRANSACTION_TYPES + (ANY_TRANSACTION_TYPE,)),
    default="transfer",
    show_default=True,
)
@click.option("--calculation", type=click.Choice(CALCULATION_TYPES), required=True)
@click.option("--fixed", help="Fixed amount (fixed and hybrid fees)")
@click.option("--rate", help="Percentage rate, e.g. 2.5 (percentage and hybrid fees)")
@click.option("--bracket", "brackets", multiple=True, help="Tiered bracket MIN:MAX[:FIXED[:RATE]]; repeatable")
@click.option("--min-fee", default="0", help="Minimum fee (0 = none)")
@click.option("--max-fee", default="0", help="Maximum fee (0 = none)")
@click.option("--currency", default="USD", show_default=True)
@click.option("--tier", "tiers", multiple=True, help="Applicable tier or ALL; repeatable (default ALL)")
@click.option("--region", "regions", multiple=True, help="Applicable region or GLOBAL; repeatable (default GLOBAL)")
@click.option("--start", help="Effective start (default now)")
@click.option("--end", help="Effective end (default open-ended)")
@click.option("--description", help="Description")
@click.option("--inactive", is_flag=True, help="Create the rule deactivated")
@click.pass_context
def add_rule(
    ctx,
    name: str,
    fee_type: str,
    transaction_type: str,
    calculation: str,
    fixed: str | None,
    rate: str | None,
    brackets: tuple[str, ...],
    min_fee: str,
    max_fee: str,
    currency: str,
    tiers: tuple[str, ...],
    regions: tuple[str, ...],
    start: str | None,
    end: str | None,
    description: str | None,
    inactive: bool,
):
    """Create a fee rule.

    Examples:
        walletledger fee add "Standard transfer" --calculation percentage --rate 2.5 --min-fee 1 --max-fee 75 --tier STANDARD
        walletledger fee add "Flat withdrawal" --transaction-type withdrawal --fee-type withdrawal_fee --calculation fixed --fixed 1.00
        walletledger fee add "Tiered" --calculation tiered --bracket 0:100:1 --bracket 100.01:1000:0:2
    """
    catalog = FeeCatalog(ctx.obj["db"])
    try:
        rule = FeeRule(
            name=name,
            fee_type=fee_type,
            transaction_type=transaction_type,
            calculation=build_calculation(calculation, fixed, rate, brackets),
            currency=currency.upper(),
            minimum_fee=parse_amount(min_fee),
            maximum_fee=parse_amount(max_fee),
            applicable_tiers=tiers or ("ALL",),
            applicable_regions=regions or ("GLOBAL",),
            is_active=not inactive,
            effective_start=parse_datetime(start) if start else None,
            effective_end=parse_datetime(end) if end else None,
            description=description,
        )
        rule_id = catalog.create_rule(rule)
        click.echo(f"Created fee rule '{name}' (ID: {rule_id})")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@fee_group.command("list")
@click.option("--type", "transaction_type", help="Only rules for this transaction type (plus 'all' rules)")
@click.option("--active-only", is_flag=True, help="Hide inactive rules")
@click.pass_context
def list_rules(ctx, transaction_type: str | None, active_only: bool):
    """List fee rules."""
    catalog = FeeCatalog(ctx.obj["db"])
    rules = catalog.list_rules(transaction_type=transaction_type, include_inactive=not active_only)
    if not rules:
        click.echo("No fee rules found.")
        return

    click.echo("\nFee rules:")
    click.echo("-" * 80)
    for rule in rules:
        status = "active" if rule.is_active else "inactive"
        click.echo(
            f"ID: {rule.id:3d} | {rule.name:28s} | {rule.transaction_type:10s} | "
            f"{describe_calculation(rule):18s} | {','.join(rule.applicable_tiers)} | {status}"
        )


@fee_group.command("show")
@click.argument("rule_id", type=int)
@click.pass_context
def show_rule(ctx, rule_id: int):
    """Show a fee rule in full."""
    catalog = FeeCatalog(ctx.obj["db"])
    try:
        rule = catalog.require_rule(rule_id)
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Fee rule {rule.id}: {rule.name} ({'active' if rule.is_active else 'inactive'})")
    click.echo(f"  Fee type: {rule.fee_type}")
    click.echo(f"  Transaction type: {rule.transaction_type}")
    click.echo(f"  Calculation: {describe_calculation(rule)}")
    if isinstance(rule.calculation, TieredFee):
        for b in rule.calculation.brackets:
            click.echo(f"    {b.min_amount} - {b.max_amount}: {b.fixed_amount} + {b.percentage_rate}%")
    click.echo(f"  Minimum / maximum fee: {rule.minimum_fee} / {rule.maximum_fee} {rule.currency}")
    click.echo(f"  Tiers: {', '.join(rule.applicable_tiers)}")
    click.echo(f"  Regions: {', '.join(rule.applicable_regions)}")
    click.echo(f"  Effective: {rule.effective_start} to {rule.effective_end or 'open'}")
    if rule.description:
        click.echo(f"  Description: {rule.description}")


@fee_group.command("deactivate")
@click.argument("rule_id", type=int)
@click.pass_context
def deactivate_rule(ctx, rule_id: int):
    """Deactivate a fee rule."""
    catalog = FeeCatalog(ctx.obj["db"])
    try:
        catalog.deactivate_rule(rule_id)
        click.echo(f"Deactivated fee rule {rule_id}")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@fee_group.command("activate")
@click.argument("rule_id", type=int)
@click.pass_context
def activate_rule(ctx, rule_id: int):
    """Re-activate a fee rule."""
    catalog = FeeCatalog(ctx.obj["db"])
    try:
        catalog.activate_rule(rule_id)
        click.echo(f"Activated fee rule {rule_id}")
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)


@fee_group.command("estimate")
@click.argument("amount")
@click.option("--type", "transaction_type", default="transfer", show_default=True)
@click.option("--tier", type=click.Choice(TIERS, case_sensitive=False), help="Tier to price for [default: STANDARD]")
@click.option("--wallet", "owner_ref", help="Price for this wallet's tier")
@click.option("--region", help="Region (defaults to the configured region)")
@click.pass_context
def estimate(ctx, amount: str, transaction_type: str, tier: str | None, owner_ref: str | None, region: str | None):
    """Price a transaction of AMOUNT without executing it.

    Examples:
        walletledger fee estimate 1000
        walletledger fee estimate 250 --type withdrawal --tier PREMIUM
        walletledger fee estimate 250 --wallet alice
    """
    catalog = FeeCatalog(ctx.obj["db"])
    region = (region or ctx.obj["settings"].region).upper()
    try:
        if owner_ref is not None:
            if tier is not None:
                raise ValidationError("Use either --tier or --wallet, not both")
            tier = WalletService(ctx.obj["db"]).get_wallet(owner_ref).tier
        quote = catalog.estimate(transaction_type, parse_amount(amount), (tier or DEFAULT_TIER).upper(), region)
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Fee: {quote.fee_amount} {quote.currency} ({quote.fee_type}, {quote.calculation_type})")
    click.echo(f"Total: {quote.total_amount} {quote.currency}")
    if quote.description:
        click.echo(f"Rule: {quote.description}")


@fee_group.command("init-defaults")
@click.pass_context
def init_defaults(ctx):
    """Install the default fee rule set (skips rules that already exist)."""
    catalog = FeeCatalog(ctx.obj["db"])
    try:
        created = catalog.install_defaults()
    except CLI_ERRORS as e:
        handle_domain_error(ctx, e)
        return
    if not created:
        click.echo("Default fee rules already installed.")
        return
    click.echo(f"Installed {len(created)} default fee rules.")


def register_commands(cli):
    """Register fee commands with main CLI."""
    cli.add_command(fee_group, name="fee")
