"""ToolDispatcher: runs model-requested tool calls against the data service.

``execute()`` looks a tool up by name, binds its arguments, calls the
matching method on the data service, and returns a ``ToolResult``. It
never raises: unknown tools, bad arguments and service exceptions all come
back as failed results, which the model reads like any other tool output.

``execute_batch()`` runs every call of a round concurrently on a thread
pool and returns once all of them have finished or timed out.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any

from stockpilot.exceptions import RequestCancelledError
from stockpilot.models.messages import ToolCall
from stockpilot.toolkit.models import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class ToolDispatcher:
    """Resolves tool names and executes tool calls.

    Usage::

        dispatcher = ToolDispatcher(timeout=30)
        results = dispatcher.execute_batch(tool_calls, service)
        for result in results:
            print(result.tool_call_id, result.success)
    """

    def __init__(
        self,
        definitions: list[ToolDefinition] | None = None,
        *,
        timeout: float = 60.0,
        max_workers: int = 16,
    ) -> None:
        if definitions is None:
            from stockpilot.toolkit.definitions import get_all_tools

            definitions = get_all_tools()
        self._tools: dict[str, ToolDefinition] = {d.name: d for d in definitions}
        self._timeout = timeout
        self._max_workers = max(1, max_workers)

    @property
    def timeout(self) -> float:
        return self._timeout

    def list_definitions(self, allowed: list[str] | None = None) -> list[ToolDefinition]:
        """Return tool definitions, filtered to ``allowed`` names when given."""
        tools = list(self._tools.values())
        if allowed is None:
            return tools
        allowed_set = set(allowed)
        return [t for t in tools if t.name in allowed_set]

    def available_tools(self) -> list[str]:
        return list(self._tools.keys())

    def execute(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None,
        service: object,
        *,
        tool_call_id: str = "",
    ) -> ToolResult:
        """Execute a tool by name with the given arguments.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Arguments as sent by the model (wire names).
            service: The data service exposing one method per operation.
            tool_call_id: Id of the originating tool call.

        Returns:
            ToolResult with success/failure status and data/error.
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            return self._failure(tool_call_id, tool_name, f"Unknown tool: {tool_name}")

        arguments = dict(arguments or {})
        missing = [name for name in tool.required if arguments.get(name) in (None, "")]
        if missing:
            return self._failure(
                tool_call_id,
                tool_name,
                f"Missing required argument(s): {', '.join(missing)}",
            )

        operation = getattr(service, tool.operation, None)
        if not callable(operation):
            return self._failure(
                tool_call_id,
                tool_name,
                f"Tool '{tool_name}' is not supported by the data service",
            )

        # Only schema-declared arguments reach the service.
        kwargs = {
            _to_snake(name): value
            for name, value in arguments.items()
            if name in tool.properties and value is not None
        }
        try:
            result = operation(**kwargs)
        except Exception as exc:
            logger.debug("Tool %s failed: %s", tool_name, exc, exc_info=True)
            return self._failure(tool_call_id, tool_name, f"{type(exc).__name__}: {exc}")

        if isinstance(result, Mapping) and isinstance(result.get("success"), bool):
            if result["success"]:
                return ToolResult(
                    tool_call_id=tool_call_id,
                    tool_name=tool_name,
                    success=True,
                    data=result.get("data"),
                )
            return self._failure(
                tool_call_id, tool_name, str(result.get("error") or "Tool reported failure")
            )
        return ToolResult(
            tool_call_id=tool_call_id, tool_name=tool_name, success=True, data=result
        )

    def execute_batch(
        self,
        calls: list[ToolCall],
        service: object,
        *,
        cancel: threading.Event | None = None,
    ) -> list[ToolResult]:
        """Execute every call concurrently and wait for all of them.

        Results are returned in the order of ``calls`` and each carries the
        id of its call. Each call's timeout runs from the moment a worker
        picks it up, so calls queued behind ``max_workers`` are not charged
        for their wait. A call still running when its timeout elapses
        produces a failed result; its thread is abandoned. A call that never
        gets a worker, because earlier calls hang, fails once the batch has
        had time for every wave of workers to run out its timeout.

        Raises:
            RequestCancelledError: If ``cancel`` is set while waiting.
        """
        if not calls:
            return []

        workers = min(len(calls), self._max_workers)
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="stockpilot-tool")
        started: dict[int, float] = {}
        slots: dict[Future, int] = {}
        try:
            for index, call in enumerate(calls):
                future = pool.submit(self._run_timed, started, index, call, service)
                slots[future] = index
            waves = -(-len(calls) // workers)
            done = self._wait(slots, started, waves, cancel)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        results: list[ToolResult] = []
        for future, index in slots.items():
            call = calls[index]
            if future in done:
                results.append(future.result())
                continue
            if index in started:
                logger.warning("Tool %s (%s) timed out after %ss", call.name, call.id, self._timeout)
                error = f"Tool timed out after {self._timeout:g}s"
            else:
                logger.warning("Tool %s (%s) never got a worker", call.name, call.id)
                error = "Tool did not start: every worker was busy with calls that timed out"
            results.append(self._failure(call.id, call.name, error))
        return results

    def _run_timed(
        self, started: dict[int, float], index: int, call: ToolCall, service: object
    ) -> ToolResult:
        started[index] = time.monotonic()
        return self.execute(call.name, call.arguments, service, tool_call_id=call.id)

    def _wait(
        self,
        slots: dict[Future, int],
        started: dict[int, float],
        waves: int,
        cancel: threading.Event | None,
    ) -> set[Future]:
        ceiling = time.monotonic() + self._timeout * waves
        pending = set(slots)
        done: set[Future] = set()
        while pending:
            if cancel is not None and cancel.is_set():
                raise RequestCancelledError("Request cancelled during tool execution")
            now = time.monotonic()
            if now >= ceiling:
                break
            deadlines = []
            queued = False
            for future in list(pending):
                begun = started.get(slots[future])
                if begun is None:
                    queued = True
                elif now - begun >= self._timeout and not future.done():
                    pending.discard(future)
                else:
                    deadlines.append(begun + self._timeout)
            if not pending:
                break
            step = min(deadlines + [ceiling]) - now
            if queued or cancel is not None:
                step = min(step, _POLL_INTERVAL)
            finished, pending = wait(pending, timeout=max(step, 0), return_when=FIRST_COMPLETED)
            done |= finished
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError("Request cancelled during tool execution")
        return done

    @staticmethod
    def _failure(tool_call_id: str, tool_name: str, error: str) -> ToolResult:
        return ToolResult(
            tool_call_id=tool_call_id, tool_name=tool_name, success=False, error=error
        )
