"""Stockpilot CLI -- terminal interface for the research loop.

This module is NEVER imported from stockpilot/__init__.py.
It is only loaded via the ``stockpilot`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install stockpilot[cli]"
    ) from None


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log loop progress to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Stockpilot: multi-round, tool-calling equity research."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# Register subcommands after cli group is defined
from stockpilot.cli.commands.providers import providers  # noqa: E402
from stockpilot.cli.commands.tools import tools  # noqa: E402
from stockpilot.cli.commands.chat import chat  # noqa: E402

cli.add_command(providers)
cli.add_command(tools)
cli.add_command(chat)
