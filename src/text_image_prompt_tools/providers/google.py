"""Google Gemini provider adapter."""

import base64
import logging
from typing import Any, Iterator, Optional

import google.generativeai as genai

from ..errors import CapabilityError, MalformedResponseError, NoResponseError
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

GEMINI_PROVIDER = Provider(
    id="gemini",
    name="Google Gemini",
    description="Google Gemini API",
    requires_api_key=True,
    default_base_url="https://generativelanguage.googleapis.com",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=(),
        field_types={"api_key": "string"},
    ),
)


def _gemini(model_id, name, context):
    return Model(
        id=model_id,
        name=name,
        description=f"Google {name}",
        provider_id="gemini",
        capabilities=ModelCapabilities(supports_tools=True, supports_vision=True, max_context_length=context),
    )


GEMINI_MODELS = [
    _gemini("gemini-2.0-flash-exp", "Gemini 2.0 Flash", 1000000),
    _gemini("gemini-1.5-pro", "Gemini 1.5 Pro", 2000000),
    _gemini("gemini-1.5-flash", "Gemini 1.5 Flash", 1000000),
    _gemini("gemini-1.5-flash-8b", "Gemini 1.5 Flash 8B", 1000000),
]


def _response_text(response: Any) -> str:
    """Join the text parts of the first candidate ('' when there are none)."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") or "" for part in parts)


class GeminiAdapter(ProviderAdapter):
    """Gemini implementation on the ``google.generativeai`` SDK.

    System messages become the model's ``system_instruction``; assistant
    turns use Gemini's ``model`` role.
    """

    def __init__(self, sdk: Optional[Any] = None) -> None:
        """Initialize adapter.

        Args:
            sdk: Module-like object exposing ``configure``, ``GenerativeModel``
                and ``list_models`` (default: ``google.generativeai``)
        """
        self._sdk = sdk or genai

    def get_provider(self) -> Provider:
        return GEMINI_PROVIDER

    def get_models(self) -> list[Model]:
        return list(GEMINI_MODELS)

    def guess_vision_support(self, model_id: str) -> bool:
        return True

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(supports_tools=True, supports_vision=True, max_context_length=1000000)

    def _get_model(self, config: ModelConfig, system_prompt: Optional[str] = None):
        """Configure the SDK and build a model with the system instruction."""
        self._sdk.configure(api_key=config.api_key or "")
        return self._sdk.GenerativeModel(
            model_name=config.model.id,
            system_instruction=system_prompt or None,
        )

    def _convert_part(self, part: dict) -> Optional[Any]:
        if part.get("type") == "text":
            return part.get("text", "")
        if part.get("type") == "image_url" and part.get("image_url"):
            url = part["image_url"]["url"]
            if not url.startswith("data:"):
                raise CapabilityError(
                    "Gemini expects base64 image data; load the image into a data URI instead of passing a URL"
                )
            mime_type, data = split_data_uri(url)
            return {"mime_type": mime_type, "data": base64.b64decode(data)}
        return None

    def _build_contents(self, messages: list[Message]) -> tuple[str, list[dict]]:
        system_prompt = "\n\n".join(m.text() for m in messages if m.role == "system")

        contents = []
        for msg in messages:
            if msg.role == "system":
                continue
            if isinstance(msg.content, str):
                parts = [msg.content]
            else:
                parts = [p for p in map(self._convert_part, msg.content) if p is not None]
            contents.append({"role": "model" if msg.role == "assistant" else "user", "parts": parts})
        return system_prompt, contents

    def send_message(self, messages: list[Message], config: ModelConfig) -> LLMResponse:
        system_prompt, contents = self._build_contents(messages)
        model = self._get_model(config, system_prompt)

        try:
            response = model.generate_content(
                contents,
                generation_config=config.llm_params or None,
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise

        text = _response_text(response)
        if not text:
            raise NoResponseError("No response from Gemini")

        usage = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata:
            usage = TokenUsage(
                prompt_tokens=metadata.prompt_token_count,
                completion_tokens=metadata.candidates_token_count,
                total_tokens=metadata.total_token_count,
            )

        return LLMResponse(content=text, usage=usage, model=config.model.id)

    def _stream_deltas(self, messages: list[Message], config: ModelConfig) -> Iterator[str]:
        system_prompt, contents = self._build_contents(messages)
        model = self._get_model(config, system_prompt)
        response = model.generate_content(
            contents,
            generation_config=config.llm_params or None,
            stream=True,
        )
        for chunk in response:
            yield _response_text(chunk)

    def get_models_async(self, config: ModelConfig) -> list[Model]:
        """List models that support ``generateContent``."""
        self._sdk.configure(api_key=config.api_key or "")

        try:
            listed = list(self._sdk.list_models())
        except Exception as e:
            logger.error(f"Gemini model listing failed: {e}")
            raise

        models = []
        for item in listed:
            name = getattr(item, "name", None)
            if not name:
                raise MalformedResponseError("Gemini model listing returned an entry without a name")
            methods = getattr(item, "supported_generation_methods", None) or []
            if "generateContent" not in methods:
                continue
            model_id = name.removeprefix("models/")
            models.append(
                Model(
                    id=model_id,
                    name=getattr(item, "display_name", None) or model_id,
                    description=getattr(item, "description", None) or "",
                    provider_id="gemini",
                    capabilities=ModelCapabilities(
                        supports_tools=True,
                        supports_vision=True,
                        max_context_length=getattr(item, "input_token_limit", None) or 1000000,
                    ),
                )
            )

        logger.info(f"Gemini reported {len(models)} models")
        return models
