"""Tests for provider profiles, the provider registry and the fallback chain."""

from __future__ import annotations

import pytest

from stockpilot.llm import LLMConfigError, OpenAIClient
from stockpilot.llm.providers import (
    GITHUB_MODELS_BASE_URL,
    GITHUB_PROVIDER,
    OPENAI_PROXY_DEFAULT_MODELS,
    OPENAI_PROXY_PROVIDER,
    ProviderProfile,
    ProviderRegistry,
    parse_model_list,
)
from stockpilot.orchestrator import FallbackChain
from tests.conftest import FakeLLMClient, make_profiles


def _registry(**kwargs) -> ProviderRegistry:
    return ProviderRegistry(make_profiles(), **kwargs)


class TestFromEnv:
    def test_no_credentials(self):
        registry = ProviderRegistry.from_env({})
        assert [p.id for p in registry.profiles] == [GITHUB_PROVIDER, OPENAI_PROXY_PROVIDER]
        assert registry.available() == []
        assert registry.get(GITHUB_PROVIDER).details

    def test_github_token_and_model_override(self):
        registry = ProviderRegistry.from_env(
            {"GH_TOKEN": "gh-123", "COPILOT_MODEL": "openai/gpt-5"}
        )
        github = registry.get(GITHUB_PROVIDER)
        assert github.available
        assert github.api_key == "gh-123"
        assert github.primary_model == "openai/gpt-5"
        assert github.base_url == GITHUB_MODELS_BASE_URL
        assert len(set(github.models)) == len(github.models)

    def test_api_key_not_in_repr(self):
        registry = ProviderRegistry.from_env({"GITHUB_TOKEN": "secret-token"})
        assert "secret-token" not in repr(registry.get(GITHUB_PROVIDER))

    def test_openai_proxy(self):
        registry = ProviderRegistry.from_env(
            {
                "OPENAI_TOKEN": "sk-1",
                "OPENAI_PROXY_MODELS": " gpt-4.1 , ,gpt-4o-mini,gpt-4.1",
                "OPENAI_PROXY_BASE_URL": "http://proxy.local/v1",
            }
        )
        proxy = registry.get(OPENAI_PROXY_PROVIDER)
        assert proxy.available
        assert proxy.models == ("gpt-4.1", "gpt-4o-mini")
        assert proxy.base_url == "http://proxy.local/v1"
        assert [p.id for p in registry.available()] == [OPENAI_PROXY_PROVIDER]

    def test_parse_model_list_default(self):
        assert parse_model_list("", OPENAI_PROXY_DEFAULT_MODELS) == OPENAI_PROXY_DEFAULT_MODELS
        assert parse_model_list(None, ("a",)) == ("a",)


class TestResolve:
    def test_first_available_by_default(self):
        assert _registry().resolve(None).id == "alpha"

    def test_unknown_provider(self):
        with pytest.raises(LLMConfigError, match="Unknown provider"):
            _registry().resolve("gamma")

    def test_unconfigured_provider(self):
        registry = ProviderRegistry.from_env({})
        with pytest.raises(LLMConfigError, match="not configured"):
            registry.resolve(GITHUB_PROVIDER)

    def test_nothing_configured(self):
        with pytest.raises(LLMConfigError, match="No model provider"):
            ProviderRegistry.from_env({}).resolve(None)


class TestCandidates:
    def test_primary_first_then_other_providers(self):
        assert _registry().candidates(None, "auto") == [
            ("alpha", "alpha-large"),
            ("alpha", "alpha-small"),
            ("beta", "beta-1"),
        ]

    def test_requested_model_first(self):
        assert _registry().candidates("alpha", "alpha-small") == [
            ("alpha", "alpha-small"),
            ("alpha", "alpha-large"),
            ("beta", "beta-1"),
        ]

    def test_custom_model_prepended(self):
        chain = _registry().candidates("beta", "beta-experimental")
        assert chain[:2] == [("beta", "beta-experimental"), ("beta", "beta-1")]
        assert chain[2:] == [("alpha", "alpha-large"), ("alpha", "alpha-small")]

    def test_unavailable_providers_skipped(self):
        profiles = make_profiles()
        profiles.append(
            ProviderProfile(id="gamma", label="Gamma", models=("g-1",), available=False, base_url="http://g")
        )
        chain = ProviderRegistry(profiles).candidates(None, None)
        assert all(provider != "gamma" for provider, _ in chain)


class TestClients:
    def test_client_built_once(self):
        built = []

        def factory(profile):
            built.append(profile.id)
            return FakeLLMClient()

        registry = _registry(client_factory=factory)
        assert registry.client("alpha") is registry.client("alpha")
        assert built == ["alpha"]

    def test_close_only_closes_built_clients(self):
        built = FakeLLMClient()
        injected = FakeLLMClient()
        registry = _registry(client_factory=lambda profile: built)
        registry.register_client("beta", injected)
        registry.client("alpha")
        registry.close()
        assert built.closed
        assert not injected.closed

    def test_default_factory_builds_openai_client(self):
        registry = _registry(timeout=5.0)
        client = registry.client("alpha")
        assert isinstance(client, OpenAIClient)
        assert client.base_url == "http://alpha.test"
        registry.close()

    def test_default_factory_requires_credential(self):
        registry = ProviderRegistry(
            [ProviderProfile(id="x", label="X", models=("m",), available=True, base_url="http://x")]
        )
        with pytest.raises(LLMConfigError, match="no credential"):
            registry.client("x")


class TestFallbackChain:
    def test_advance_in_order(self):
        chain = FallbackChain([("a", "1"), ("a", "2"), ("b", "3")])
        assert chain.current == ("a", "1")
        assert chain.advance() == ("a", "2")
        assert chain.advance() == ("b", "3")
        assert chain.advance() is None
        assert chain.current == ("b", "3")
        assert chain.tried == [("a", "1"), ("a", "2"), ("b", "3")]

    def test_never_repeats_a_tried_candidate(self):
        chain = FallbackChain([("a", "1"), ("a", "2"), ("a", "1"), ("b", "3")])
        assert chain.advance() == ("a", "2")
        assert chain.remaining() == [("b", "3")]
        assert chain.advance() == ("b", "3")
        assert chain.advance() is None

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            FallbackChain([])
