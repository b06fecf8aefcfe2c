"""Zhipu AI (GLM) provider adapter."""

from typing import Any

from .base import ConnectionSchema, Model, ModelCapabilities, Provider, split_data_uri
from .openai_compatible import OpenAICompatibleAdapter

ZHIPU_PROVIDER = Provider(
    id="zhipu",
    name="Zhipu AI",
    description="Zhipu GLM OpenAI-compatible models",
    requires_api_key=True,
    default_base_url="https://open.bigmodel.cn/api/paas/v4",
    supports_dynamic_models=True,
    connection_schema=ConnectionSchema(
        required=("api_key",),
        optional=("base_url",),
        field_types={"api_key": "string", "base_url": "string"},
    ),
)


def _glm(model_id, name, vision):
    return Model(
        id=model_id,
        name=name,
        description=f"Zhipu {name}",
        provider_id="zhipu",
        capabilities=ModelCapabilities(supports_tools=True, supports_vision=vision, max_context_length=128000),
    )


ZHIPU_MODELS = [
    _glm("glm-4-plus", "GLM-4 Plus", True),
    _glm("glm-4", "GLM-4", True),
    _glm("glm-4-flash", "GLM-4 Flash", True),
    _glm("glm-4-air", "GLM-4 Air", False),
    _glm("glm-4-airx", "GLM-4 AirX", False),
]


class ZhipuAdapter(OpenAICompatibleAdapter):
    """GLM vision endpoints take the bare base64 payload, not a data URI."""

    PROVIDER = ZHIPU_PROVIDER
    MODELS = ZHIPU_MODELS

    def _convert_content(self, content: Any) -> Any:
        if isinstance(content, str):
            return content
        parts = []
        for part in content:
            if part.get("type") == "text":
                parts.append(part)
            elif part.get("type") == "image_url" and part.get("image_url"):
                _, payload = split_data_uri(part["image_url"]["url"])
                parts.append({"type": "image_url", "image_url": {"url": payload}})
        return parts

    def guess_vision_support(self, model_id: str) -> bool:
        return "glm-4" in model_id and "air" not in model_id

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(
            supports_tools=True,
            supports_vision=self.guess_vision_support(model_id),
            max_context_length=128000,
        )
