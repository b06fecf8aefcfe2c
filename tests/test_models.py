"""Tests for model configurations, model managers and ModelService."""

from unittest.mock import MagicMock

import pytest

from conftest import EchoAdapter, gpt4o_model
from text_image_prompt_tools.errors import ConfigurationError, ProviderError
from text_image_prompt_tools.models import (
    MemoryModelManager,
    ModelService,
    StoredModelManager,
    create_model_config,
)
from text_image_prompt_tools.providers.base import Model, ModelConfig
from text_image_prompt_tools.providers.ollama import OLLAMA_PROVIDER, OllamaAdapter
from text_image_prompt_tools.providers.openai import OPENAI_PROVIDER
from text_image_prompt_tools.providers.registry import AdapterRegistry


class TestCreateModelConfig:

    def test_id_and_default_name(self):
        config = create_model_config(OPENAI_PROVIDER, gpt4o_model(), {"api_key": "sk-1"})
        assert config.id == "openai-gpt-4o"
        assert config.name == "OpenAI GPT-4o"
        assert config.base_url == "https://api.openai.com/v1"

    def test_missing_required_key(self):
        with pytest.raises(ConfigurationError, match="api_key"):
            create_model_config(OPENAI_PROVIDER, gpt4o_model(), {"api_key": None})

    def test_wrong_field_type(self):
        with pytest.raises(ConfigurationError, match="base_url"):
            create_model_config(OPENAI_PROVIDER, gpt4o_model(), {"api_key": "k", "base_url": 8080})

    def test_ollama_needs_no_key(self):
        model = Model(id="llava", name="llava", provider_id="ollama")
        config = create_model_config(OLLAMA_PROVIDER, model, {"base_url": "http://gpu-box:11434/v1"})
        assert config.api_key is None
        assert config.base_url == "http://gpu-box:11434/v1"


class TestModelManagers:

    @pytest.fixture(params=["memory", "stored"])
    def manager(self, request, storage):
        if request.param == "memory":
            return MemoryModelManager()
        return StoredModelManager(storage)

    def test_save_get_delete(self, manager, openai_config):
        manager.save_model(openai_config)
        assert manager.get_model("openai-gpt-4o").model.id == "gpt-4o"

        manager.delete_model("openai-gpt-4o")
        assert manager.get_model("openai-gpt-4o") is None

    def test_save_replaces_same_id(self, manager, openai_config, text_only_config):
        manager.save_model(openai_config)
        manager.save_model(text_only_config)
        openai_config.name = "Renamed"
        manager.save_model(openai_config)

        assert [c.id for c in manager.get_all_models()] == ["openai-gpt-4o", "openai-gpt-3.5-turbo"]
        assert manager.get_model("openai-gpt-4o").name == "Renamed"

    def test_enabled_filter(self, manager, openai_config, text_only_config):
        text_only_config.enabled = False
        manager.save_model(openai_config)
        manager.save_model(text_only_config)
        assert [c.id for c in manager.get_enabled_models()] == ["openai-gpt-4o"]

    def test_stored_round_trip_keeps_capabilities(self, storage, openai_config):
        StoredModelManager(storage).save_model(openai_config)

        loaded = StoredModelManager(storage).get_model("openai-gpt-4o")
        assert isinstance(loaded, ModelConfig)
        assert loaded.model.capabilities == openai_config.model.capabilities
        assert loaded.provider.connection_schema.required == ("api_key",)


class TestModelService:

    def test_resolve_static_model(self, registry):
        service = ModelService(registry)
        assert service.resolve_model("openai", "gpt-4o") == gpt4o_model()

    def test_resolve_unknown_model_builds_default(self):
        registry = AdapterRegistry()
        registry.register(OllamaAdapter(http_get=MagicMock()))

        model = ModelService(registry).resolve_model("ollama", "llava-phi3")

        assert model.id == "llava-phi3"
        assert model.provider_id == "ollama"
        assert model.capabilities.supports_vision is True

    def test_connection_ok(self):
        response = MagicMock()
        response.json.return_value = {"models": [{"name": "llama3"}, {"name": "llava"}]}
        registry = AdapterRegistry()
        registry.register(OllamaAdapter(http_get=MagicMock(return_value=response)))

        ok, message = ModelService(registry).test_connection("ollama")

        assert ok is True
        assert message == "Connected, 2 models available"

    def test_connection_failure_reports_message(self):
        registry = AdapterRegistry()
        registry.register(OllamaAdapter(http_get=MagicMock(side_effect=ProviderError("HTTP 401: denied"))))

        ok, message = ModelService(registry).test_connection("ollama")

        assert ok is False
        assert "401" in message

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            ModelService(AdapterRegistry()).fetch_models("nope")

    def test_fetch_models_without_discovery_is_empty(self):
        registry = AdapterRegistry()
        registry.register(EchoAdapter(provider=OLLAMA_PROVIDER))
        assert ModelService(registry).fetch_models("ollama") == []
