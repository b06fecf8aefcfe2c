"""DeepSeek provider adapter (OpenAI-compatible, text only)."""

from typing import Any

from .base import ConnectionSchema, Model, ModelCapabilities, ModelConfig, Provider
from .openai_compatible import OpenAICompatibleAdapter

DEEPSEEK_PROVIDER = Provider(
    id="deepseek",
    name="DeepSeek",
    description="DeepSeek API (OpenAI Compatible)",
    requires_api_key=True,
    default_base_url="https://api.deepseek.com/v1",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=("base_url",),
        field_types={"api_key": "string", "base_url": "string"},
    ),
)

DEEPSEEK_MODELS = [
    Model(
        id="deepseek-chat",
        name="DeepSeek Chat",
        description="DeepSeek Chat",
        provider_id="deepseek",
        capabilities=ModelCapabilities(supports_tools=True, supports_vision=False, max_context_length=128000),
    ),
    Model(
        id="deepseek-reasoner",
        name="DeepSeek Reasoner",
        description="DeepSeek Reasoner (Reasoning model)",
        provider_id="deepseek",
        capabilities=ModelCapabilities(
            supports_tools=False, supports_vision=False, supports_reasoning=True, max_context_length=128000
        ),
    ),
    Model(
        id="deepseek-coder",
        name="DeepSeek Coder",
        description="DeepSeek Coder",
        provider_id="deepseek",
        capabilities=ModelCapabilities(supports_tools=False, supports_vision=False, max_context_length=128000),
    ),
]


class DeepSeekAdapter(OpenAICompatibleAdapter):
    """DeepSeek models accept text only; multimodal content is flattened."""

    PROVIDER = DEEPSEEK_PROVIDER
    MODELS = DEEPSEEK_MODELS

    def _convert_content(self, content: Any) -> Any:
        if isinstance(content, str):
            return content
        return "\n".join(p.get("text", "") for p in content if p.get("type") == "text")

    def _include_listed_model(self, model_id: str, config: ModelConfig) -> bool:
        return "deepseek" in model_id

    def _listed_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(
            supports_tools="chat" in model_id,
            supports_vision=False,
            supports_reasoning="reasoner" in model_id,
            max_context_length=128000,
        )

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(supports_tools=False, supports_vision=False, max_context_length=64000)
