"""stockpilot tools -- list the research tools offered to the model."""

from __future__ import annotations

import click

from stockpilot.cli.formatting import format_error, format_tools, get_console


@click.command()
@click.option(
    "--profile",
    "profile_name",
    default=None,
    type=click.Choice(["full", "core"], case_sensitive=False),
    help="Only show the tools of this profile.",
)
def tools(profile_name: str | None) -> None:
    """Show tool definitions and their required arguments."""
    from stockpilot.toolkit import get_all_tools, get_profile

    console = get_console()
    try:
        definitions = get_all_tools()
        if profile_name:
            definitions = get_profile(profile_name.lower()).filter_tools(definitions)
        format_tools(definitions, console)
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
