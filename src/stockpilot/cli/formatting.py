"""Rich formatting helpers for the Stockpilot CLI.

Provides functions that format provider profiles, tool definitions and
chat responses for terminal display. Rich auto-detects TTY and degrades
gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from stockpilot.llm.providers import ProviderProfile
    from stockpilot.toolkit.models import ToolDefinition


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_providers(profiles: list[ProviderProfile], console: Console) -> None:
    """Display provider profiles as a table."""
    if not profiles:
        console.print("[dim]No providers.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Provider", style="cyan")
    table.add_column("Status")
    table.add_column("Models")
    table.add_column("Details", style="dim")

    for profile in profiles:
        status = "[green]available[/green]" if profile.available else "[red]unavailable[/red]"
        table.add_row(
            escape(profile.id),
            status,
            escape(", ".join(profile.models)),
            escape(profile.details or ""),
        )

    console.print(table)


def format_tools(tools: list[ToolDefinition], console: Console) -> None:
    """Display tool definitions with their required arguments."""
    if not tools:
        console.print("[dim]No tools.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tool", style="cyan")
    table.add_column("Required", style="yellow")
    table.add_column("Description")

    for tool in tools:
        table.add_row(
            escape(tool.name),
            escape(", ".join(tool.required)),
            escape(tool.description),
        )

    console.print(table)
    console.print(f"[dim]{len(tools)} tool(s)[/dim]")


def format_response(body: dict[str, Any], console: Console) -> None:
    """Display a chat response as markdown followed by a stats line."""
    console.print(Markdown(body.get("response", "")))
    stats = body.get("stats") or {}
    console.print(
        f"[dim]{escape(body.get('provider', ''))}/{escape(body.get('model', ''))}"
        f" | rounds: {stats.get('rounds', 0)}"
        f" | tool calls: {stats.get('toolCalls', 0)}"
        f" | tools offered: {stats.get('toolsProvided', 0)}[/dim]",
        highlight=False,
    )


def format_error(message: str, console: Console, details: str | None = None) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    if details:
        console.print(f"[dim]{escape(details)}[/dim]", highlight=False)
