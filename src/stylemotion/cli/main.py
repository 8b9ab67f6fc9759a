"""Stylemotion CLI entry point: Click group with subcommands."""

import logging

import click

from stylemotion import __version__


@click.group()
@click.version_option(version=__version__, prog_name="stylemotion")
@click.option("-v", "--verbose", is_flag=True, help="Log engine lifecycle and diagnostics.")
def cli(verbose: bool) -> None:
    """Stylemotion - resolve styles and play keyframe animations on a virtual clock."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# Import and register subcommands
from stylemotion.cli.debug import debug  # noqa: E402
from stylemotion.cli.sample import sample  # noqa: E402

cli.add_command(debug)
cli.add_command(sample)
