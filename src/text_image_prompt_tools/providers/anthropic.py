"""Anthropic Claude provider adapter."""

import logging
from typing import Any, Callable, Iterator, Optional

from anthropic import Anthropic

from ..errors import ModelDiscoveryUnsupportedError, NoResponseError
from .base import (
    ConnectionSchema,
    LLMResponse,
    Message,
    Model,
    ModelCapabilities,
    ModelConfig,
    Provider,
    ProviderAdapter,
    TokenUsage,
    split_data_uri,
)

logger = logging.getLogger(__name__)

ANTHROPIC_PROVIDER = Provider(
    id="anthropic",
    name="Anthropic",
    description="Anthropic Claude models",
    requires_api_key=True,
    default_base_url="https://api.anthropic.com",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=("base_url",),
        field_types={"api_key": "string", "base_url": "string"},
    ),
)

DEFAULT_MAX_TOKENS = 4096


def _claude(model_id, name):
    return Model(
        id=model_id,
        name=name,
        description=f"Anthropic {name}",
        provider_id="anthropic",
        capabilities=ModelCapabilities(supports_tools=True, supports_vision=True, max_context_length=200000),
    )


ANTHROPIC_MODELS = [
    _claude("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet"),
    _claude("claude-3-5-haiku-20241022", "Claude 3.5 Haiku"),
    _claude("claude-3-opus-20240229", "Claude 3 Opus"),
    _claude("claude-3-sonnet-20240229", "Claude 3 Sonnet"),
    _claude("claude-3-haiku-20240307", "Claude 3 Haiku"),
]


class AnthropicAdapter(ProviderAdapter):
    """Anthropic Messages API implementation.

    System messages go in the separate ``system`` field and images are sent
    as base64 ``image`` blocks.
    """

    def __init__(self, client_factory: Optional[Callable[[ModelConfig], Any]] = None) -> None:
        self._client_factory = client_factory or self._create_client

    def _create_client(self, config: ModelConfig) -> Anthropic:
        return Anthropic(api_key=config.api_key, base_url=config.base_url)

    def get_provider(self) -> Provider:
        return ANTHROPIC_PROVIDER

    def get_models(self) -> list[Model]:
        return list(ANTHROPIC_MODELS)

    def get_models_async(self, config: ModelConfig) -> list[Model]:
        logger.warning("Anthropic does not expose a model listing endpoint")
        raise ModelDiscoveryUnsupportedError(
            "Anthropic does not support listing models; configure the model id manually"
        )

    def guess_vision_support(self, model_id: str) -> bool:
        return True

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(supports_tools=True, supports_vision=True, max_context_length=200000)

    def _convert_part(self, part: dict) -> Optional[dict]:
        if part.get("type") == "text":
            return {"type": "text", "text": part.get("text", "")}
        if part.get("type") == "image_url" and part.get("image_url"):
            url = part["image_url"]["url"]
            if url.startswith(("http://", "https://")):
                return {"type": "image", "source": {"type": "url", "url": url}}
            media_type, data = split_data_uri(url)
            return {
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": data},
            }
        return None

    def _build_request(self, messages: list[Message], config: ModelConfig) -> dict:
        system_prompt = "\n\n".join(m.text() for m in messages if m.role == "system")

        converted = []
        for msg in messages:
            if msg.role == "system":
                continue
            role = "assistant" if msg.role == "assistant" else "user"
            if isinstance(msg.content, str):
                converted.append({"role": role, "content": msg.content})
            else:
                blocks = [b for b in map(self._convert_part, msg.content) if b is not None]
                converted.append({"role": role, "content": blocks})

        request = {
            "model": config.model.id,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "messages": converted,
            **(config.llm_params or {}),
        }
        if system_prompt:
            request["system"] = system_prompt
        return request

    def send_message(self, messages: list[Message], config: ModelConfig) -> LLMResponse:
        client = self._client_factory(config)

        try:
            response = client.messages.create(**self._build_request(messages, config))
        except Exception as e:
            logger.error(f"Anthropic request failed: {e}")
            raise

        texts = [block.text for block in (response.content or []) if block.type == "text"]
        if not texts:
            raise NoResponseError("No text response from Anthropic")

        usage = None
        if getattr(response, "usage", None):
            usage = TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        return LLMResponse(content="".join(texts), usage=usage, model=config.model.id)

    def _stream_deltas(self, messages: list[Message], config: ModelConfig) -> Iterator[str]:
        client = self._client_factory(config)
        with client.messages.stream(**self._build_request(messages, config)) as stream:
            for text in stream.text_stream:
                yield text
