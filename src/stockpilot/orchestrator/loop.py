"""Research orchestration loop.

Provides the Orchestrator class that answers one chat request by running
a tool-calling loop against a model provider:

1. load the session's history and append the user's message
2. call the model on the compacted history, with the research tools
3. if the model asked for tools, run the whole batch concurrently, feed
   the (compacted) results back, and go to 2
4. otherwise return the model's answer

Provider failures get one retry per round, chosen by the failure's class.
The full history is written back to the session store on every terminal
outcome; a cancelled request keeps only its completed rounds.
"""

from __future__ import annotations

import functools
import json
import logging
import re
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, Callable, NoReturn

from stockpilot.compaction.history import compact_history
from stockpilot.compaction.payload import compact_payload
from stockpilot.exceptions import (
    ProtocolViolationError,
    RequestCancelledError,
    StockpilotError,
)
from stockpilot.llm.classifier import classify_exception
from stockpilot.llm.client import OpenAIClient
from stockpilot.llm.errors import LLMPayloadTooLargeError, LLMRateLimitError
from stockpilot.models.messages import Message, ToolCall, to_openai_messages
from stockpilot.orchestrator.config import OrchestratorConfig, OrchestratorState
from stockpilot.orchestrator.fallback import FallbackChain
from stockpilot.orchestrator.models import ChatResult, ChatStats, RoundRecord, RoundState
from stockpilot.prompts.research import (
    EMPTY_RESPONSE_TEXT,
    RESEARCH_SYSTEM_PROMPT,
    ROUND_BUDGET_EXHAUSTED_TEXT,
)
from stockpilot.toolkit.dispatcher import ToolDispatcher
from stockpilot.toolkit.models import ToolDefinition, ToolResult
from stockpilot.toolkit.profiles import get_profile

if TYPE_CHECKING:
    from stockpilot.llm.providers import ProviderRegistry
    from stockpilot.models.api import ChatRequest
    from stockpilot.orchestrator.router import RouteMatch, Router
    from stockpilot.session import SessionStore

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.05

ROUTER_PROVIDER = "router"

_CALL_TAG = re.compile(r"<\s*(?:tool_call|function_call)\b", re.IGNORECASE)
_CODE_FENCE = re.compile(r"^```[\w-]*\s*(.*?)\s*```$", re.DOTALL)


def looks_like_tool_call(text: str | None) -> bool:
    """Return True if ``text`` is a serialized tool-call request, not prose.

    Matches JSON objects (or arrays of them) shaped like a function call,
    with or without a surrounding code fence, and ``<tool_call>`` /
    ``<function_call>`` tags. Prose that merely mentions a tool does not
    match.
    """
    if not text:
        return False
    stripped = text.strip()
    if _CALL_TAG.search(stripped):
        return True
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    if not stripped.startswith(("{", "[")):
        return False
    try:
        parsed = json.loads(stripped)
    except ValueError:
        return False
    items = parsed if isinstance(parsed, list) else [parsed]
    return bool(items) and all(_is_call_shape(item) for item in items)


def _is_call_shape(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    if "tool_calls" in obj or "function" in obj:
        return True
    return "name" in obj and ("arguments" in obj or "parameters" in obj)


def _raise_rate_limited(exc: LLMRateLimitError) -> NoReturn:
    """Re-raise a terminal rate limit with the wait estimate in its message."""
    estimate = exc.wait_estimate
    if estimate is None:
        raise exc
    raise LLMRateLimitError(f"{exc} {estimate}", retry_after=exc.retry_after) from exc


def _latest_user_index(history: list[Message]) -> int:
    for index in range(len(history) - 1, -1, -1):
        if history[index].role == "user":
            return index
    raise StockpilotError("History has no user message")


def _tool_message(result: ToolResult, payload: Any) -> Message:
    return Message.tool(
        result.tool_call_id,
        json.dumps(payload, ensure_ascii=False, default=str),
    )


class Orchestrator:
    """Runs the research loop for chat requests.

    One orchestrator serves many requests, including concurrent ones; all
    per-request state lives in a ``RoundState``.

    Usage::

        registry = ProviderRegistry.from_env()
        orch = Orchestrator(registry, InMemorySessionStore(), service)
        result = orch.run(ChatRequest(message="Compare AAPL and MSFT"))
        print(result.response, result.stats.rounds)
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        sessions: SessionStore,
        service: object,
        *,
        config: OrchestratorConfig | None = None,
        dispatcher: ToolDispatcher | None = None,
        router: Router | None = None,
    ) -> None:
        self._providers = providers
        self._sessions = sessions
        self._service = service
        self._config = config or OrchestratorConfig()
        self._dispatcher = dispatcher or ToolDispatcher(
            timeout=self._config.tool_timeout,
            max_workers=self._config.max_tool_workers,
        )
        self._router = router

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    def run(
        self,
        request: ChatRequest,
        *,
        cancel: threading.Event | None = None,
    ) -> ChatResult:
        """Answer one chat request.

        Args:
            request: The validated chat request.
            cancel: Optional event; setting it abandons the request.

        Returns:
            ChatResult with the answer and stats. When the round budget
            runs out the result is a soft failure with ``exhausted=True``.

        Raises:
            LLMClientError: A provider failure that its retry did not fix.
            ProtocolViolationError: The model wrote a tool call as text.
            RequestCancelledError: ``cancel`` was set.
        """
        session_id = request.session_id or uuid.uuid4().hex
        history = self._load_history(session_id)
        history.append(Message.user(request.message))

        if self._router is not None:
            match = self._router.match(request.message)
            allowed = self._config.allowed_tools
            if match is not None and allowed is not None and match.rule.tool_name not in allowed:
                logger.info(
                    "Route %s skipped: tool %s is not allowed", match.rule.name, match.rule.tool_name
                )
                match = None
            if match is not None:
                return self._run_routed(match, session_id, history, cancel)

        chain = FallbackChain(self._providers.candidates(request.provider, request.model))
        provider_id, model = chain.current
        state = RoundState(model=model, provider=provider_id)

        try:
            result = self._loop(session_id, history, chain, state, cancel)
        except RequestCancelledError:
            if state.completed_length:
                self._sessions.set(session_id, history[: state.completed_length])
            logger.info("Request cancelled in round %d (session %s)", state.rounds, session_id)
            raise
        except StockpilotError as exc:
            logger.debug("Round %d: %s %s", state.rounds, OrchestratorState.TERMINAL_ERROR.value, exc)
            self._sessions.set(session_id, history)
            raise
        self._sessions.set(session_id, history)
        return result

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _loop(
        self,
        session_id: str,
        history: list[Message],
        chain: FallbackChain,
        state: RoundState,
        cancel: threading.Event | None,
    ) -> ChatResult:
        config = self._config
        while state.model_calls < config.max_rounds:
            self._check_cancel(cancel)
            state.rounds += 1
            logger.debug("Round %d: %s", state.rounds, OrchestratorState.ROUND_START.value)

            reply = self._call_model(history, chain, state, cancel)
            history.append(reply)

            if reply.has_tool_calls:
                calls = list(reply.tool_calls or [])
                logger.info(
                    "Round %d: dispatching %d tool call(s): %s",
                    state.rounds,
                    len(calls),
                    ", ".join(c.name for c in calls),
                )
                results = self._dispatcher.execute_batch(calls, self._service, cancel=cancel)
                for result in results:
                    payload = compact_payload(result.to_payload(), config.payload_limits)
                    history.append(_tool_message(result, payload))
                state.tool_calls += len(calls)
                state.completed_length = len(history)
                self._notify(
                    RoundRecord(
                        round=state.rounds,
                        model=state.model,
                        provider=state.provider,
                        tool_calls=len(calls),
                        tool_names=tuple(c.name for c in calls),
                    )
                )
                continue

            content = reply.content or ""
            if looks_like_tool_call(content):
                logger.warning(
                    "Model %s/%s wrote a tool call as text", state.provider, state.model
                )
                raise ProtocolViolationError(content)

            state.completed_length = len(history)
            self._notify(
                RoundRecord(
                    round=state.rounds,
                    model=state.model,
                    provider=state.provider,
                    tool_calls=0,
                    phase=OrchestratorState.TERMINAL_RESPONSE,
                )
            )
            return ChatResult(
                response=content if content.strip() else EMPTY_RESPONSE_TEXT,
                session_id=session_id,
                model=state.model,
                provider=state.provider,
                stats=self._stats(state),
            )

        logger.warning(
            "Round budget of %d model call(s) exhausted (session %s)",
            config.max_rounds,
            session_id,
        )
        return ChatResult(
            response=ROUND_BUDGET_EXHAUSTED_TEXT,
            session_id=session_id,
            model=state.model,
            provider=state.provider,
            stats=self._stats(state),
            exhausted=True,
        )

    def _run_routed(
        self,
        match: RouteMatch,
        session_id: str,
        history: list[Message],
        cancel: threading.Event | None,
    ) -> ChatResult:
        """Answer with the matched rule's tool call, without the model."""
        call = ToolCall(
            id=f"route_{uuid.uuid4().hex[:12]}",
            name=match.rule.tool_name,
            arguments=match.arguments,
        )
        result = self._dispatcher.execute_batch([call], self._service, cancel=cancel)[0]
        payload = compact_payload(result.to_payload(), self._config.payload_limits)
        answer = match.render(result)

        history.append(Message.assistant(None, [call]))
        history.append(_tool_message(result, payload))
        history.append(Message.assistant(answer))
        self._sessions.set(session_id, history)

        return ChatResult(
            response=answer,
            session_id=session_id,
            model=match.rule.name,
            provider=ROUTER_PROVIDER,
            stats=ChatStats(rounds=0, tool_calls=1, tools_provided=0),
            routed=True,
        )

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    def _call_model(
        self,
        history: list[Message],
        chain: FallbackChain,
        state: RoundState,
        cancel: threading.Event | None,
    ) -> Message:
        """Call the model once, plus at most one retry picked by the failure."""
        messages, tools = self._payload(history, state)
        try:
            return self._invoke(messages, tools, state, cancel)
        except LLMRateLimitError as exc:
            if state.model_calls >= self._config.max_rounds:
                _raise_rate_limited(exc)
            candidate = chain.advance()
            if candidate is None:
                _raise_rate_limited(exc)
            logger.warning(
                "%s on %s/%s, retrying with %s/%s",
                type(exc).__name__,
                state.provider,
                state.model,
                candidate[0],
                candidate[1],
            )
            state.provider, state.model = candidate
            try:
                return self._invoke(messages, tools, state, cancel)
            except LLMRateLimitError as retry_exc:
                _raise_rate_limited(retry_exc)
        except LLMPayloadTooLargeError:
            if state.payload_reduced or state.model_calls >= self._config.max_rounds:
                raise
            logger.warning(
                "Payload too large for %s/%s, retrying with a minimal payload",
                state.provider,
                state.model,
            )
            state.payload_reduced = True
            messages, tools = self._payload(history, state, minimal=True)
            return self._invoke(messages, tools, state, cancel)

    def _invoke(
        self,
        messages: list[Message],
        tools: list[ToolDefinition],
        state: RoundState,
        cancel: threading.Event | None,
    ) -> Message:
        self._check_cancel(cancel)
        state.model_calls += 1
        logger.debug("Round %d: %s", state.rounds, OrchestratorState.MODEL_CALL.value)
        state.tools_provided = len(tools)
        logger.info(
            "Round %d: calling %s/%s (%d messages, %d tools)",
            state.rounds,
            state.provider,
            state.model,
            len(messages),
            len(tools),
        )

        options: dict[str, Any] = {}
        if self._config.temperature is not None:
            options["temperature"] = self._config.temperature
        if self._config.max_tokens is not None:
            options["max_tokens"] = self._config.max_tokens

        try:
            client = self._providers.client(state.provider)
            call = functools.partial(
                client.chat,
                to_openai_messages(messages),
                model=state.model,
                tools=[t.to_openai() for t in tools] or None,
                **options,
            )
            if cancel is None:
                response = call()
            else:
                response = self._run_cancellable(call, cancel)
            return self._assistant_message(OpenAIClient.extract_message(response))
        except StockpilotError:
            raise
        except Exception as exc:
            raise classify_exception(exc) from exc

    @staticmethod
    def _run_cancellable(call: Callable[[], dict], cancel: threading.Event) -> dict:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stockpilot-model")
        try:
            future = pool.submit(call)
            while True:
                if cancel.is_set():
                    raise RequestCancelledError("Request cancelled during model call")
                done, _ = wait([future], timeout=_POLL_INTERVAL)
                if done:
                    return future.result()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _payload(
        self,
        history: list[Message],
        state: RoundState,
        *,
        minimal: bool = False,
    ) -> tuple[list[Message], list[ToolDefinition]]:
        """Build the messages and tools for one model call.

        The normal payload is the compacted history with every allowed
        tool. The minimal payload is the system message and the latest
        user message with the reduced tool profile; once a request has
        fallen back to it, later rounds send the system message and the
        current exchange only.
        """
        tools = self._dispatcher.list_definitions(self._config.allowed_tools)
        if not (minimal or state.payload_reduced):
            messages = history
        else:
            tools = get_profile(self._config.reduced_profile).filter_tools(tools)
            start = _latest_user_index(history)
            if minimal:
                messages = [history[0], history[start]]
            else:
                messages = [history[0], *history[start:]]
        compacted = compact_history(
            messages,
            keep_exchanges=self._config.keep_exchanges,
            max_chars=self._config.max_message_chars,
        )
        return compacted, tools

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_history(self, session_id: str) -> list[Message]:
        history = list(self._sessions.get(session_id))
        if not history or history[0].role != "system":
            history.insert(0, Message.system(self._config.system_prompt or RESEARCH_SYSTEM_PROMPT))
        return history

    @staticmethod
    def _assistant_message(raw: dict) -> Message:
        return Message.from_openai(
            {
                "role": "assistant",
                "content": raw.get("content"),
                "tool_calls": raw.get("tool_calls"),
            }
        )

    @staticmethod
    def _check_cancel(cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError("Request cancelled")

    @staticmethod
    def _stats(state: RoundState) -> ChatStats:
        return ChatStats(
            rounds=state.rounds,
            tool_calls=state.tool_calls,
            tools_provided=state.tools_provided,
        )

    def _notify(self, record: RoundRecord) -> None:
        callback = self._config.on_round
        if callback is None:
            return
        try:
            callback(record)
        except Exception:
            logger.warning("on_round callback failed", exc_info=True)
