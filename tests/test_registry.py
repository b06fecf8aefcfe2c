"""Tests for AdapterRegistry and the built-in adapter set."""

from unittest.mock import MagicMock

import pytest

from conftest import EchoAdapter
from text_image_prompt_tools.errors import AdapterNotFoundError, ModelDiscoveryUnsupportedError, ProviderError
from text_image_prompt_tools.providers.anthropic import AnthropicAdapter
from text_image_prompt_tools.providers.base import Model, ModelConfig, Provider
from text_image_prompt_tools.providers.ollama import OLLAMA_PROVIDER
from text_image_prompt_tools.providers.registry import (
    BUILTIN_PROVIDERS,
    AdapterRegistry,
    create_adapter,
    create_default_registry,
)

STATIC_PROVIDER = Provider(
    id="static",
    name="Static",
    requires_api_key=False,
    default_base_url="http://localhost",
    supports_dynamic_models=False,
)


def _config(provider: Provider) -> ModelConfig:
    model = Model(id="m", name="m", provider_id=provider.id)
    return ModelConfig(id=f"{provider.id}-m", name="m", provider=provider, model=model, connection={"api_key": "k"})


class DiscoveringAdapter(EchoAdapter):
    def __init__(self, provider, result=None, error=None):
        super().__init__(provider=provider, models=[Model(id="static-1", name="s", provider_id=provider.id)])
        self.discover = MagicMock(return_value=result or [], side_effect=error)

    def get_models_async(self, config):
        return self.discover(config)


# ===========================================================================
# Lookup
# ===========================================================================

class TestRegistryLookup:

    def test_default_registry_has_every_builtin(self):
        registry = create_default_registry()
        assert registry.provider_ids() == BUILTIN_PROVIDERS
        for provider_id in BUILTIN_PROVIDERS:
            assert registry.get_adapter(provider_id).get_provider().id == provider_id

    def test_unknown_adapter_raises(self):
        registry = AdapterRegistry()
        with pytest.raises(AdapterNotFoundError, match="nope"):
            registry.get_adapter("nope")

    def test_create_adapter_rejects_unknown_id(self):
        with pytest.raises(AdapterNotFoundError):
            create_adapter("nope")

    def test_static_models_of_unknown_provider_is_empty(self):
        registry = AdapterRegistry()
        assert registry.get_static_models("nope") == []
        assert registry.get_provider("nope") is None

    def test_static_model_ids_unique_per_provider(self):
        registry = create_default_registry()
        for provider_id in registry.provider_ids():
            ids = [m.id for m in registry.get_static_models(provider_id)]
            assert len(ids) == len(set(ids)), provider_id
            assert all(m.provider_id == provider_id for m in registry.get_static_models(provider_id))

    def test_register_replaces_existing(self, echo_adapter):
        registry = AdapterRegistry()
        registry.register(EchoAdapter())
        registry.register(echo_adapter)
        assert registry.get_adapter("openai") is echo_adapter
        assert "openai" in registry


# ===========================================================================
# Dynamic model listing
# ===========================================================================

class TestDynamicModels:

    def test_no_config_returns_empty_without_calling(self):
        adapter = DiscoveringAdapter(OLLAMA_PROVIDER)
        registry = AdapterRegistry()
        registry.register(adapter)

        assert registry.get_models("ollama") == []
        adapter.discover.assert_not_called()

    def test_provider_without_dynamic_models_returns_empty(self):
        adapter = DiscoveringAdapter(STATIC_PROVIDER)
        registry = AdapterRegistry()
        registry.register(adapter)

        assert registry.get_models("static", _config(STATIC_PROVIDER)) == []
        adapter.discover.assert_not_called()

    def test_adapter_without_discovery_returns_empty(self):
        registry = AdapterRegistry()
        registry.register(EchoAdapter(provider=OLLAMA_PROVIDER))
        assert registry.get_models("ollama", _config(OLLAMA_PROVIDER)) == []

    def test_discovered_models_passed_through(self):
        live = [Model(id="llama3:8b", name="llama3:8b", provider_id="ollama")]
        adapter = DiscoveringAdapter(OLLAMA_PROVIDER, result=live)
        registry = AdapterRegistry()
        registry.register(adapter)

        assert registry.get_models("ollama", _config(OLLAMA_PROVIDER)) == live

    def test_discovery_error_is_not_replaced_by_static_list(self):
        adapter = DiscoveringAdapter(OLLAMA_PROVIDER, error=ProviderError("HTTP 401: bad key", status_code=401))
        registry = AdapterRegistry()
        registry.register(adapter)

        with pytest.raises(ProviderError, match="401"):
            registry.get_models("ollama", _config(OLLAMA_PROVIDER))

    def test_anthropic_discovery_unsupported(self):
        registry = AdapterRegistry()
        registry.register(AnthropicAdapter(client_factory=MagicMock()))
        config = _config(registry.get_provider("anthropic"))

        with pytest.raises(ModelDiscoveryUnsupportedError):
            registry.get_models("anthropic", config)
