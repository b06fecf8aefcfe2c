"""SiliconFlow provider adapter (OpenAI-compatible)."""

from .base import ConnectionSchema, Model, ModelCapabilities, Provider
from .openai_compatible import OpenAICompatibleAdapter

SILICONFLOW_PROVIDER = Provider(
    id="siliconflow",
    name="SiliconFlow",
    description="SiliconFlow OpenAI-compatible models",
    requires_api_key=True,
    default_base_url="https://api.siliconflow.cn/v1",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=("base_url",),
        field_types={"api_key": "string", "base_url": "string"},
    ),
)

SILICONFLOW_MODELS = [
    Model(
        id=f"Qwen/Qwen2.5-{size}-Instruct",
        name=f"Qwen2.5-{size}-Instruct",
        description=f"Qwen2.5 {size} via SiliconFlow",
        provider_id="siliconflow",
        capabilities=ModelCapabilities(supports_tools=False, supports_vision=False, max_context_length=128000),
    )
    for size in ("72B", "32B", "14B", "7B")
]


class SiliconFlowAdapter(OpenAICompatibleAdapter):
    PROVIDER = SILICONFLOW_PROVIDER
    MODELS = SILICONFLOW_MODELS

    def guess_vision_support(self, model_id: str) -> bool:
        model_id = model_id.lower()
        return "vl" in model_id or "vision" in model_id
