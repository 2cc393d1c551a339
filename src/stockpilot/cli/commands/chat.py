"""stockpilot chat -- ask research questions from the terminal."""

from __future__ import annotations

import importlib

import click

from stockpilot.cli.formatting import format_error, format_response, get_console

_EXIT_WORDS = {"exit", "quit"}


def _load_backend(reference: str) -> object:
    """Import ``module:attr`` and return the data service it names.

    A callable attribute is treated as a factory and called with no
    arguments.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter("expected 'module:attribute'", param_hint="--backend")
    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {reference!r}: {e}", param_hint="--backend") from e
    return target() if callable(target) else target


@click.command()
@click.option(
    "--backend",
    required=True,
    envvar="STOCKPILOT_BACKEND",
    help="Data service as 'module:attribute' (a factory or an instance).",
)
@click.option("--provider", default=None, help="Provider id (default: first configured).")
@click.option("--model", default=None, help="Model id, or 'auto' for the provider's primary.")
@click.option("-m", "--message", default=None, help="Ask one question and exit.")
@click.option("--route/--no-route", default=False, help="Answer simple price questions without the model.")
def chat(
    backend: str,
    provider: str | None,
    model: str | None,
    message: str | None,
    route: bool,
) -> None:
    """Chat with the research assistant.

    With --message, answers one question and exits with status 1 on
    failure. Otherwise starts a prompt loop; type 'exit' or 'quit' to leave.
    """
    from stockpilot.api import handle_chat
    from stockpilot.llm.providers import ProviderRegistry
    from stockpilot.orchestrator import Orchestrator, OrchestratorConfig, default_router
    from stockpilot.session import InMemorySessionStore

    console = get_console()
    service = _load_backend(backend)
    config = OrchestratorConfig()
    registry = ProviderRegistry.from_env(timeout=config.model_timeout)
    orchestrator = Orchestrator(
        registry,
        InMemorySessionStore(),
        service,
        config=config,
        router=default_router() if route else None,
    )

    def ask(text: str, session_id: str | None) -> tuple[int, dict]:
        payload = {"message": text, "sessionId": session_id, "model": model, "provider": provider}
        status, body = handle_chat(orchestrator, payload)
        if status == 200:
            format_response(body, console)
        else:
            format_error(body["error"], console, body.get("details"))
        return status, body

    try:
        if message is not None:
            status, _ = ask(message, None)
            if status != 200:
                raise SystemExit(1)
            return

        session_id: str | None = None
        while True:
            try:
                text = click.prompt("you", prompt_suffix="> ").strip()
            except click.Abort:
                console.print()
                break
            if text.lower() in _EXIT_WORDS:
                break
            if not text:
                continue
            status, body = ask(text, session_id)
            if status == 200:
                session_id = body["sessionId"]
    finally:
        registry.close()
