"""Provider adapters for multi-vendor LLM support."""

from .base import (
    ConnectionSchema,
    LLMResponse,
    Message,
    Model,
    ModelCapabilities,
    ModelConfig,
    Provider,
    ProviderAdapter,
    StreamHandlers,
    TokenUsage,
    image_part,
    text_part,
)
from .registry import AdapterRegistry, create_default_registry

__all__ = [
    "AdapterRegistry",
    "ConnectionSchema",
    "LLMResponse",
    "Message",
    "Model",
    "ModelCapabilities",
    "ModelConfig",
    "Provider",
    "ProviderAdapter",
    "StreamHandlers",
    "TokenUsage",
    "create_default_registry",
    "image_part",
    "text_part",
]
