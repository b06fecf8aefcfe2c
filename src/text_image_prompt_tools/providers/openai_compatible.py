"""Shared implementation for vendors speaking the OpenAI chat-completions API."""

import logging
from typing import Any, Callable, Iterator, Optional

from openai import APIStatusError, OpenAI

from ..errors import MalformedResponseError, NoResponseError, ProviderError
from .base import (
    LLMResponse,
    Message,
    Model,
    ModelCapabilities,
    ModelConfig,
    Provider,
    ProviderAdapter,
    TokenUsage,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ModelConfig], Any]


class OpenAICompatibleAdapter(ProviderAdapter):
    """Adapter for any vendor exposing ``/chat/completions`` and ``/models``.

    Subclasses set ``PROVIDER`` and ``MODELS`` and override the hooks that
    differ per vendor: message conversion, which listed models to keep, and
    the vision heuristic.
    """

    PROVIDER: Provider
    MODELS: list[Model] = []

    def __init__(self, client_factory: Optional[ClientFactory] = None) -> None:
        """Initialize adapter.

        Args:
            client_factory: Builds an SDK client from a model config.
                Defaults to ``openai.OpenAI`` pointed at the config's base URL.
        """
        self._client_factory = client_factory or self._create_client

    def get_provider(self) -> Provider:
        return self.PROVIDER

    def get_models(self) -> list[Model]:
        return list(self.MODELS)

    def _api_key(self, config: ModelConfig) -> str:
        return config.api_key or ""

    def _create_client(self, config: ModelConfig) -> OpenAI:
        return OpenAI(api_key=self._api_key(config), base_url=config.base_url)

    # -- message conversion -------------------------------------------------

    def _convert_content(self, content: Any) -> Any:
        """Convert one message's content into the vendor's shape.

        Default keeps text and image_url parts and drops unknown part types.
        """
        if isinstance(content, str):
            return content
        return [p for p in content if p.get("type") in ("text", "image_url")]

    def _convert_messages(self, messages: list[Message]) -> list[dict]:
        return [
            {"role": msg.role, "content": self._convert_content(msg.content)}
            for msg in messages
        ]

    def _request_kwargs(self, messages: list[Message], config: ModelConfig) -> dict:
        return {
            "model": config.model.id,
            "messages": self._convert_messages(messages),
            **(config.llm_params or {}),
        }

    # -- chat ---------------------------------------------------------------

    def send_message(self, messages: list[Message], config: ModelConfig) -> LLMResponse:
        client = self._client_factory(config)

        try:
            response = client.chat.completions.create(**self._request_kwargs(messages, config))
        except Exception as e:
            logger.error(f"{self.PROVIDER.name} request failed: {e}")
            raise

        choices = getattr(response, "choices", None) or []
        message = choices[0].message if choices else None
        if message is None or message.content is None:
            raise NoResponseError(f"No response from {self.PROVIDER.name}")

        usage = None
        if getattr(response, "usage", None):
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return LLMResponse(content=message.content, usage=usage, model=config.model.id)

    def _stream_deltas(self, messages: list[Message], config: ModelConfig) -> Iterator[str]:
        client = self._client_factory(config)
        stream = client.chat.completions.create(
            stream=True, **self._request_kwargs(messages, config)
        )
        for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            content = getattr(delta, "content", None) if delta is not None else None
            if content:
                yield content

    # -- model discovery ----------------------------------------------------

    def _include_listed_model(self, model_id: str, config: ModelConfig) -> bool:
        return True

    def _listed_capabilities(self, model_id: str) -> ModelCapabilities:
        return self._default_capabilities(model_id)

    def get_models_async(self, config: ModelConfig) -> list[Model]:
        """Fetch the vendor's live model list via ``GET /models``."""
        client = self._client_factory(config)
        logger.debug(f"Listing {self.PROVIDER.name} models from {config.base_url}")

        try:
            response = client.models.list()
        except APIStatusError as e:
            logger.error(f"{self.PROVIDER.name} model listing failed: {e}")
            raise ProviderError(f"{e.message} (HTTP {e.status_code})", status_code=e.status_code) from e
        except Exception as e:
            logger.error(f"{self.PROVIDER.name} model listing failed: {e}")
            raise

        data = getattr(response, "data", None)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"{self.PROVIDER.name} model listing returned no 'data' array"
            )

        models = [
            Model(
                id=item.id,
                name=item.id,
                description=item.id,
                provider_id=self.PROVIDER.id,
                capabilities=self._listed_capabilities(item.id),
            )
            for item in data
            if self._include_listed_model(item.id, config)
        ]
        logger.info(f"{self.PROVIDER.name} reported {len(models)} models")
        return models
