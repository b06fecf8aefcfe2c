"""OpenAI provider adapter (also used for LM Studio and other custom endpoints)."""

import logging

from openai import OpenAI

from .base import ConnectionSchema, Model, ModelCapabilities, ModelConfig, Provider
from .openai_compatible import OpenAICompatibleAdapter

logger = logging.getLogger(__name__)

OPENAI_PROVIDER = Provider(
    id="openai",
    name="OpenAI",
    description="OpenAI API",
    requires_api_key=True,
    default_base_url="https://api.openai.com/v1",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=("base_url", "organization"),
        field_types={"api_key": "string", "base_url": "string", "organization": "string"},
    ),
)

# Placeholder key for local OpenAI-compatible servers; the SDK refuses an empty key.
LOCAL_SERVER_API_KEY = "lm-studio"


def _model(model_id, name, vision, context, tools=True, reasoning=False):
    return Model(
        id=model_id,
        name=name,
        description=f"OpenAI {name}",
        provider_id="openai",
        capabilities=ModelCapabilities(
            supports_tools=tools,
            supports_vision=vision,
            supports_reasoning=reasoning,
            max_context_length=context,
        ),
    )


OPENAI_MODELS = [
    _model("gpt-4o", "GPT-4o", True, 128000),
    _model("gpt-4o-mini", "GPT-4o Mini", True, 128000),
    _model("gpt-4-turbo", "GPT-4 Turbo", True, 128000),
    _model("gpt-4", "GPT-4", True, 8192),
    _model("gpt-3.5-turbo", "GPT-3.5 Turbo", False, 16385),
    _model("o1-preview", "O1 Preview", False, 200000, tools=False, reasoning=True),
    _model("o1-mini", "O1 Mini", False, 128000, tools=False, reasoning=True),
]


class OpenAIAdapter(OpenAICompatibleAdapter):
    """OpenAI chat completions.

    A custom ``base_url`` turns this into a generic OpenAI-compatible client:
    listing then keeps every model and a missing key is replaced by a
    placeholder.
    """

    PROVIDER = OPENAI_PROVIDER
    MODELS = OPENAI_MODELS

    def _is_custom_base_url(self, config: ModelConfig) -> bool:
        return config.base_url.rstrip("/") != OPENAI_PROVIDER.default_base_url

    def _api_key(self, config: ModelConfig) -> str:
        if config.api_key:
            return config.api_key
        return LOCAL_SERVER_API_KEY if self._is_custom_base_url(config) else ""

    def _create_client(self, config: ModelConfig) -> OpenAI:
        organization = config.connection.get("organization")
        return OpenAI(
            api_key=self._api_key(config),
            base_url=config.base_url,
            organization=organization or None,
        )

    def _include_listed_model(self, model_id: str, config: ModelConfig) -> bool:
        if self._is_custom_base_url(config):
            return True
        return "gpt" in model_id

    def guess_vision_support(self, model_id: str) -> bool:
        model_id = model_id.lower()
        return any(marker in model_id for marker in ("vision", "vl", "4", "llava"))

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(
            supports_tools=True,
            supports_vision=self.guess_vision_support(model_id),
            max_context_length=128000,
        )
