"""CLI error handling helpers."""

import click

from walletledger.domain.errors import DomainError, PersistenceError

# Errors rendered as "Error: ..." with exit status 1
CLI_ERRORS = (DomainError, PersistenceError, ValueError)


def handle_domain_error(ctx: click.Context, error: Exception) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)
