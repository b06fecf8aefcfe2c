"""Shared fixtures.

No test talks to a real vendor: SDK clients are MagicMock objects handed to
the adapters through their client factories, and service-level tests use
``EchoAdapter`` registered under the "openai" provider id.
"""

import base64
import io
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from PIL import Image

from text_image_prompt_tools.app import build_services
from text_image_prompt_tools.config import Settings
from text_image_prompt_tools.models import create_model_config
from text_image_prompt_tools.providers.base import (
    LLMResponse,
    Message,
    Model,
    ModelCapabilities,
    ModelConfig,
    ProviderAdapter,
)
from text_image_prompt_tools.providers.openai import OPENAI_MODELS, OPENAI_PROVIDER
from text_image_prompt_tools.providers.registry import AdapterRegistry
from text_image_prompt_tools.storage import MemoryStorageProvider, StorageAdapter


class EchoAdapter(ProviderAdapter):
    """Returns the last user message text, padded with whitespace."""

    def __init__(self, provider=OPENAI_PROVIDER, models=None):
        self.provider = provider
        self.models = list(models if models is not None else OPENAI_MODELS)
        self.calls: list[tuple[list[Message], ModelConfig]] = []

    def get_provider(self):
        return self.provider

    def get_models(self):
        return list(self.models)

    def guess_vision_support(self, model_id: str) -> bool:
        return "vision" in model_id

    def _reply(self, messages: list[Message]) -> str:
        users = [m for m in messages if m.role == "user"]
        return users[-1].text() if users else ""

    def send_message(self, messages, config):
        self.calls.append((messages, config))
        return LLMResponse(content=f"  {self._reply(messages)}  \n", model=config.model.id)

    def _stream_deltas(self, messages, config) -> Iterator[str]:
        self.calls.append((messages, config))
        text = self._reply(messages)
        for i in range(0, len(text), 4):
            yield text[i : i + 4]


def make_png_data_uri(width: int = 32, height: int = 18, mode: str = "RGB") -> str:
    img = Image.new(mode, (width, height), color="red" if mode == "RGB" else None)
    output = io.BytesIO()
    img.save(output, format="PNG")
    return "data:image/png;base64," + base64.b64encode(output.getvalue()).decode("ascii")


def gpt4o_model() -> Model:
    return next(m for m in OPENAI_MODELS if m.id == "gpt-4o")


@pytest.fixture
def storage():
    return StorageAdapter(MemoryStorageProvider())


@pytest.fixture
def echo_adapter():
    return EchoAdapter()


@pytest.fixture
def registry(echo_adapter):
    registry = AdapterRegistry()
    registry.register(echo_adapter)
    return registry


@pytest.fixture
def openai_config():
    return create_model_config(OPENAI_PROVIDER, gpt4o_model(), {"api_key": "sk-test"})


@pytest.fixture
def text_only_config():
    model = Model(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        provider_id="openai",
        capabilities=ModelCapabilities(supports_vision=False),
    )
    return create_model_config(OPENAI_PROVIDER, model, {"api_key": "sk-test"})


@pytest.fixture
def services(tmp_path, storage, registry, openai_config, text_only_config):
    services = build_services(
        settings=Settings(data_dir=tmp_path, default_model=None),
        storage=storage,
        registry=registry,
    )
    services.model_manager.save_model(openai_config)
    services.model_manager.save_model(text_only_config)
    return services


@pytest.fixture
def png_data_uri():
    return make_png_data_uri()


@pytest.fixture
def mock_openai_client():
    """OpenAI SDK client whose chat completion says hello."""
    client = MagicMock()
    choice = MagicMock()
    choice.message.content = "GPT says hello"
    response = MagicMock()
    response.choices = [choice]
    response.usage = MagicMock(prompt_tokens=80, completion_tokens=40, total_tokens=120)
    client.chat.completions.create.return_value = response
    return client
