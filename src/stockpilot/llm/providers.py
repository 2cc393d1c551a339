"""Model provider profiles and the provider registry.

A provider is an OpenAI-compatible endpoint with its own credential and an
ordered list of candidate models (primary first). The registry owns the
profiles, builds one client per provider on first use, and computes the
fallback order used when a model is rate limited.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from stockpilot.llm.client import OpenAIClient
from stockpilot.llm.errors import LLMConfigError
from stockpilot.llm.protocols import LLMClient

logger = logging.getLogger(__name__)

AUTO_MODEL = "auto"

GITHUB_PROVIDER = "github"
OPENAI_PROXY_PROVIDER = "openai-proxy"

GITHUB_MODELS_BASE_URL = "https://models.github.ai/inference"
GITHUB_DEFAULT_MODEL = "openai/gpt-4.1"
GITHUB_FALLBACK_MODELS = (
    "openai/gpt-4.1",
    "anthropic/claude-sonnet-4-6",
    "google/gemini-3-flash",
)
GITHUB_TOKEN_VARS = ("GITHUB_TOKEN", "GH_TOKEN", "COPILOT_GITHUB_TOKEN")

OPENAI_PROXY_BASE_URL = "https://api.openai.com/v1"
OPENAI_PROXY_DEFAULT_MODELS = ("gpt-4.1", "gpt-4.1-mini", "gpt-4o-mini", "gpt-5-mini")
OPENAI_KEY_VARS = ("OPENAI_API_KEY", "OPENAI_TOKEN")


@dataclass(frozen=True)
class ProviderProfile:
    """A model-serving endpoint and its candidate models.

    Attributes:
        id: Provider identifier (e.g. "github").
        label: Display name.
        models: Candidate model ids, primary first.
        available: Whether a credential is configured.
        base_url: Chat-completions base URL.
        api_key: Credential; excluded from repr.
        details: Remediation text shown when the provider is unavailable.
    """

    id: str
    label: str
    models: tuple[str, ...]
    available: bool
    base_url: str
    api_key: str | None = field(default=None, repr=False)
    details: str | None = None

    @property
    def primary_model(self) -> str | None:
        return self.models[0] if self.models else None


ClientFactory = Callable[[ProviderProfile], LLMClient]


def _first_env(environ: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def _unique(items: list[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for item in items:
        if item and item not in seen:
            seen[item] = None
    return tuple(seen)


def parse_model_list(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a comma-separated model list, falling back to ``default``."""
    models = _unique([item.strip() for item in (raw or "").split(",")])
    return models or default


class ProviderRegistry:
    """Registry of provider profiles and their lazily-built clients.

    Usage::

        registry = ProviderRegistry.from_env()
        chain = registry.candidates("github", "auto")
        client = registry.client(chain[0][0])
    """

    def __init__(
        self,
        profiles: list[ProviderProfile],
        *,
        client_factory: ClientFactory | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._profiles: dict[str, ProviderProfile] = {p.id: p for p in profiles}
        self._clients: dict[str, LLMClient] = {}
        self._owned: set[str] = set()
        self._lock = threading.Lock()
        self._timeout = timeout
        self._client_factory = client_factory or self._default_factory

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        timeout: float = 120.0,
    ) -> ProviderRegistry:
        """Build the GitHub Models and OpenAI proxy profiles from the environment."""
        env = os.environ if environ is None else environ

        github_token = _first_env(env, GITHUB_TOKEN_VARS)
        primary = env.get("COPILOT_MODEL") or GITHUB_DEFAULT_MODEL
        github = ProviderProfile(
            id=GITHUB_PROVIDER,
            label="GitHub Models",
            models=_unique([primary, *GITHUB_FALLBACK_MODELS]),
            available=github_token is not None,
            base_url=env.get("GITHUB_MODELS_BASE_URL") or GITHUB_MODELS_BASE_URL,
            api_key=github_token,
            details=None if github_token else (
                "Set GITHUB_TOKEN to a personal access token with "
                "'Models: read' permission."
            ),
        )

        openai_key = _first_env(env, OPENAI_KEY_VARS)
        proxy = ProviderProfile(
            id=OPENAI_PROXY_PROVIDER,
            label="OpenAI Proxy",
            models=parse_model_list(env.get("OPENAI_PROXY_MODELS"), OPENAI_PROXY_DEFAULT_MODELS),
            available=openai_key is not None,
            base_url=env.get("OPENAI_PROXY_BASE_URL") or OPENAI_PROXY_BASE_URL,
            api_key=openai_key,
            details=None if openai_key else "Set OPENAI_API_KEY in your environment.",
        )
        return cls([github, proxy], timeout=timeout)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    @property
    def profiles(self) -> list[ProviderProfile]:
        return list(self._profiles.values())

    def get(self, provider_id: str) -> ProviderProfile:
        """Return a profile by id.

        Raises:
            LLMConfigError: If the provider is unknown.
        """
        profile = self._profiles.get(provider_id)
        if profile is None:
            raise LLMConfigError(
                f"Unknown provider '{provider_id}'. "
                f"Available: {list(self._profiles.keys())}"
            )
        return profile

    def available(self) -> list[ProviderProfile]:
        return [p for p in self._profiles.values() if p.available]

    def resolve(self, provider_id: str | None) -> ProviderProfile:
        """Return the requested provider, or the first available one.

        Raises:
            LLMConfigError: If the provider is unknown or not configured,
                or no provider is configured at all.
        """
        if provider_id:
            profile = self.get(provider_id)
            if not profile.available:
                raise LLMConfigError(
                    f"Provider '{profile.id}' is not configured. {profile.details or ''}".strip()
                )
            return profile
        available = self.available()
        if not available:
            raise LLMConfigError("No model provider is configured.")
        return available[0]

    def candidates(self, provider_id: str | None, model: str | None = None) -> list[tuple[str, str]]:
        """Return the ordered fallback chain of ``(provider_id, model)`` pairs.

        The requested model comes first (the provider's primary when
        ``model`` is None or ``"auto"``), then that provider's remaining
        models, then the models of every other available provider.
        """
        profile = self.resolve(provider_id)
        first = profile.primary_model if model in (None, "", AUTO_MODEL) else model
        chain: list[tuple[str, str]] = []
        for candidate in _unique([first or "", *profile.models]):
            chain.append((profile.id, candidate))
        for other in self.available():
            if other.id == profile.id:
                continue
            chain.extend((other.id, m) for m in other.models)
        return chain

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def register_client(self, provider_id: str, client: LLMClient) -> None:
        """Use ``client`` for ``provider_id`` instead of building one."""
        with self._lock:
            self._clients[provider_id] = client
            self._owned.discard(provider_id)

    def client(self, provider_id: str) -> LLMClient:
        """Return the client for a provider, building it on first use."""
        with self._lock:
            client = self._clients.get(provider_id)
            if client is None:
                profile = self.get(provider_id)
                client = self._client_factory(profile)
                self._clients[provider_id] = client
                self._owned.add(provider_id)
                logger.debug("Built client for provider %s", provider_id)
            return client

    def close(self) -> None:
        """Close every client the registry built itself."""
        with self._lock:
            for provider_id in list(self._owned):
                self._clients.pop(provider_id).close()
            self._owned.clear()

    def _default_factory(self, profile: ProviderProfile) -> LLMClient:
        if not profile.api_key:
            raise LLMConfigError(
                f"Provider '{profile.id}' has no credential. {profile.details or ''}".strip()
            )
        return OpenAIClient(
            api_key=profile.api_key,
            base_url=profile.base_url,
            default_model=profile.primary_model or GITHUB_DEFAULT_MODEL,
            timeout=self._timeout,
        )
