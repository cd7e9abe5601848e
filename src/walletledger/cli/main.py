"""Main CLI entry point."""

import logging

import click

from walletledger.config import load_settings
from walletledger.database.factories import create_sqlite_database

# Import and register all commands at module level
from walletledger.cli.commands import (
    fee,
    ledger,
    revenue,
    settle,
    transaction,
    transfer,
    wallet,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides WALLETLEDGER_DB_PATH environment variable)",
    envvar="WALLETLEDGER_DB_PATH",
)
@click.option(
    "--region",
    help="Region used for fee selection (overrides WALLETLEDGER_REGION, default GLOBAL)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (overrides WALLETLEDGER_LOG_LEVEL, default WARNING)",
)
@click.pass_context
def cli(ctx, db_path: str | None, region: str | None, log_level: str | None):
    """Walletledger - mobile wallet ledger.

    Price, post and settle wallet transactions with tier-aware fees and a
    double-entry ledger.
    """
    ctx.ensure_object(dict)
    settings = load_settings().with_overrides(
        database_path=db_path,
        region=region.upper() if region else None,
        log_level=log_level.upper() if log_level else None,
    )
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
wallet.register_commands(cli)
fee.register_commands(cli)
transfer.register_commands(cli)
transaction.register_commands(cli)
revenue.register_commands(cli)
settle.register_commands(cli)
ledger.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
