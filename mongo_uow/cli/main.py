"""
Entry point for the ``mongo-uow`` command.
"""

import logging

import click

from .. import __version__
from .commands import config, demo, ping


@click.group()
@click.version_option(__version__, prog_name="mongo-uow")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """MongoDB Unit of Work tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(config)
cli.add_command(ping)
cli.add_command(demo)


if __name__ == "__main__":
    cli()
