"""stockpilot providers -- show configured model providers."""

from __future__ import annotations

import click

from stockpilot.cli.formatting import format_error, format_providers, get_console


@click.command()
def providers() -> None:
    """List model providers, their models, and whether they are configured."""
    from stockpilot.llm.providers import ProviderRegistry

    console = get_console()
    try:
        registry = ProviderRegistry.from_env()
        format_providers(registry.profiles, console)
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
