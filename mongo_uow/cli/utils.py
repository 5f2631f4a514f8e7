"""
Utility functions for CLI commands.

This module provides shared utilities for CLI operations.
"""

import asyncio
import json
from collections.abc import Awaitable
from typing import TypeVar

import click

from ..config import MongoConfig
from ..domain import BaseEntity
from ..utils import clean_mongo_doc

R = TypeVar("R")


def build_config(
    host: str | None = None,
    port: int | None = None,
    database: str | None = None,
) -> MongoConfig:
    """
    Build a configuration from environment variables plus command-line overrides.

    Args:
        host: Overrides MONGO_HOST
        port: Overrides MONGO_PORT
        database: Overrides MONGO_DATABASE

    Raises:
        click.ClickException: If an environment variable holds a malformed number
    """
    try:
        return MongoConfig(host=host, port=port, database=database)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration value: {e}") from e


def run_async(coro: Awaitable[R]) -> R:
    """Run a coroutine to completion from a synchronous click command."""
    return asyncio.run(coro)


def echo_success(message: str) -> None:
    click.echo(click.style(message, fg="green"))


def echo_failure(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)


def echo_section(title: str) -> None:
    click.echo()
    click.echo(click.style(title, bold=True))
    click.echo("=" * len(title))


def format_entity(entity: BaseEntity) -> str:
    """Render an entity as its stored document in one line of JSON."""
    return f"{type(entity).__name__} {json.dumps(clean_mongo_doc(entity.to_document()))}"
