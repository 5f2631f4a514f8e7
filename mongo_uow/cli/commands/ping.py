"""
Ping command for CLI.
"""

import sys

import click

from ...config import MongoConfig
from ...database import connect
from ...exceptions import ConfigurationError, DatabaseConnectionError
from ..utils import build_config, echo_failure, echo_success, run_async


async def _ping(cfg: MongoConfig) -> None:
    client = await connect(cfg)
    client.close()


@click.command()
@click.option("--host", default=None, help="MongoDB host (overrides MONGO_HOST)")
@click.option("--port", type=int, default=None, help="MongoDB port (overrides MONGO_PORT)")
@click.option("--database", default=None, help="Database name (overrides MONGO_DATABASE)")
def ping(host: str | None, port: int | None, database: str | None) -> None:
    """
    Connect to MongoDB and round-trip a ping.

    Examples:
        mongo-uow ping
        mongo-uow ping --host localhost --port 27017
    """
    cfg = build_config(host, port, database)
    try:
        cfg.validate()
        run_async(_ping(cfg))
    except (ConfigurationError, DatabaseConnectionError) as e:
        echo_failure(str(e))
        sys.exit(1)
    echo_success(f"Connected to {cfg.redacted_connection_string()}")
