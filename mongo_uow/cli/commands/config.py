"""
Config command for CLI.

Shows the effective connection settings and whether they validate.
"""

import sys

import click

from ...exceptions import ConfigurationError
from ..utils import build_config, echo_failure, echo_success


@click.command()
@click.option("--host", default=None, help="MongoDB host (overrides MONGO_HOST)")
@click.option("--port", type=int, default=None, help="MongoDB port (overrides MONGO_PORT)")
@click.option("--database", default=None, help="Database name (overrides MONGO_DATABASE)")
def config(host: str | None, port: int | None, database: str | None) -> None:
    """
    Show the effective connection string and validate it.

    The password is masked.

    Examples:
        mongo-uow config
        mongo-uow config --host db.internal --database shop
    """
    cfg = build_config(host, port, database)
    click.echo(f"Connection: {cfg.redacted_connection_string()}")
    click.echo(f"Database:   {cfg.database}")
    click.echo(f"Pool:       {cfg.min_pool_size}-{cfg.max_pool_size}")
    click.echo(f"Timeout:    {cfg.timeout}s")

    try:
        cfg.validate()
    except ConfigurationError as e:
        echo_failure(f"Configuration is invalid: {e.message}")
        sys.exit(1)
    echo_success("Configuration is valid")
