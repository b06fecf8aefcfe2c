"""Ollama local model adapter.

Chat goes through Ollama's OpenAI-compatible ``/v1`` endpoint; model
discovery uses the daemon's own ``/api/tags`` route.
"""

import logging
from typing import Callable, Optional

import httpx
from openai import OpenAI, OpenAIError

from ..errors import MalformedResponseError, ProviderError
from .base import ConnectionSchema, LLMResponse, Message, Model, ModelCapabilities, ModelConfig, Provider
from .openai_compatible import ClientFactory, OpenAICompatibleAdapter

logger = logging.getLogger(__name__)

OLLAMA_PROVIDER = Provider(
    id="ollama",
    name="Ollama",
    description="Ollama Local Models (OpenAI Compatible)",
    requires_api_key=False,
    default_base_url="http://127.0.0.1:11434/v1",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=(),
        optional=("base_url",),
        field_types={"base_url": "string"},
    ),
)

# The SDK requires a non-empty key; Ollama ignores it.
OLLAMA_API_KEY = "ollama"

TAGS_TIMEOUT = 10.0

VISION_MARKERS = ("vision", "llava")


def _local(model_id, name, vision):
    return Model(
        id=model_id,
        name=name,
        description=name,
        provider_id="ollama",
        capabilities=ModelCapabilities(supports_tools=False, supports_vision=vision, max_context_length=128000),
    )


OLLAMA_MODELS = [
    _local("llama3.2", "Llama 3.2", False),
    _local("llama3.1", "Llama 3.1", False),
    _local("llama3", "Llama 3", False),
    _local("llama3.2-vision", "Llama 3.2 Vision", True),
    _local("llava", "LLaVA", True),
    _local("qwen2.5", "Qwen 2.5", False),
    _local("qwen2.5-vision", "Qwen 2.5 Vision", True),
]


class OllamaAdapter(OpenAICompatibleAdapter):
    PROVIDER = OLLAMA_PROVIDER
    MODELS = OLLAMA_MODELS

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        http_get: Optional[Callable[..., httpx.Response]] = None,
    ) -> None:
        """Initialize adapter.

        Args:
            client_factory: Builds the OpenAI SDK client for chat calls
            http_get: Callable used for the tags request (default ``httpx.get``)
        """
        super().__init__(client_factory)
        self._http_get = http_get or httpx.get

    def _create_client(self, config: ModelConfig) -> OpenAI:
        return OpenAI(api_key=OLLAMA_API_KEY, base_url=config.base_url)

    def send_message(self, messages: list[Message], config: ModelConfig) -> LLMResponse:
        try:
            return super().send_message(messages, config)
        except OpenAIError as e:
            raise ProviderError(
                f"Ollama API error: {e}", status_code=getattr(e, "status_code", None)
            ) from e

    @staticmethod
    def tags_url(base_url: str) -> str:
        root = base_url.rstrip("/")
        if root.endswith("/v1"):
            root = root[: -len("/v1")]
        return f"{root}/api/tags"

    def get_models_async(self, config: ModelConfig) -> list[Model]:
        """List locally pulled models from ``/api/tags``."""
        url = self.tags_url(config.base_url)
        logger.debug(f"Listing Ollama models from {url}")

        try:
            response = self._http_get(url, timeout=TAGS_TIMEOUT)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Ollama model listing failed: HTTP {status}")
            raise ProviderError(f"HTTP {status}: {e.response.text}", status_code=status) from e
        except httpx.HTTPError as e:
            logger.error(f"Ollama model listing failed: {e}")
            raise ProviderError(f"Cannot reach Ollama at {url}: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Ollama returned invalid JSON from {url}") from e

        entries = data.get("models") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise MalformedResponseError("Ollama response has no 'models' array")

        models = []
        for entry in entries:
            model_id = entry.get("name") or ""
            details = entry.get("details") or {}
            models.append(
                Model(
                    id=model_id,
                    name=model_id,
                    description=details.get("parent_model") or model_id,
                    provider_id="ollama",
                    capabilities=self._default_capabilities(model_id),
                )
            )

        logger.info(f"Ollama reported {len(models)} models")
        return models

    def guess_vision_support(self, model_id: str) -> bool:
        return any(marker in model_id for marker in VISION_MARKERS)
