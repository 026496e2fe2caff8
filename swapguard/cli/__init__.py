"""
`swapguard` operator command line.

The library modules never configure logging; the command line is the
one place that does, through the group-level --log-level option.
"""

import logging

import click

from swapguard.cli.verify import verify_command

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.version_option(package_name="swapguard")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Level for swapguard.* log records written to stderr.",
)
def cli(log_level: str) -> None:
    """
    Operator tooling for a SwapGuard gateway.

    \b
    Examples:
      swapguard verify .swapguard/audit
      swapguard --log-level debug verify audit.jsonl --format json
    """
    logging.basicConfig(
        level=  getattr(logging, log_level.upper()),
        format= "%(levelname)-7s %(name)s: %(message)s",
    )


cli.add_command(verify_command)
