"""Adapter registry and discovery arbitration."""

import logging
from typing import Optional

from ..errors import AdapterNotFoundError
from .base import Model, ModelConfig, Provider, ProviderAdapter

logger = logging.getLogger(__name__)

# Provider ids shipped with the package, in display order
BUILTIN_PROVIDERS = ["openai", "gemini", "anthropic", "deepseek", "siliconflow", "zhipu", "ollama"]


class AdapterRegistry:
    """Holds one adapter per provider id."""

    def __init__(self) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}

    def register(self, adapter: ProviderAdapter) -> None:
        """Register ``adapter`` under its provider id, replacing any previous one."""
        provider_id = adapter.get_provider().id
        if provider_id in self._adapters:
            logger.debug(f"Replacing adapter for {provider_id}")
        self._adapters[provider_id] = adapter

    def get_adapter(self, provider_id: str) -> ProviderAdapter:
        """Get the adapter for ``provider_id``.

        Raises:
            AdapterNotFoundError: If nothing is registered under that id
        """
        adapter = self._adapters.get(provider_id)
        if adapter is None:
            raise AdapterNotFoundError(f"Provider adapter not found: {provider_id}")
        return adapter

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        adapter = self._adapters.get(provider_id)
        return adapter.get_provider() if adapter else None

    def get_static_models(self, provider_id: str) -> list[Model]:
        adapter = self._adapters.get(provider_id)
        return adapter.get_models() if adapter else []

    def get_models(self, provider_id: str, config: Optional[ModelConfig] = None) -> list[Model]:
        """Get models reported live by the vendor.

        Returns ``[]`` when discovery is not attempted (no config, provider
        without dynamic models, or adapter without discovery). When it is
        attempted, the adapter's result or error is passed through as-is;
        the static list is never substituted.
        """
        adapter = self.get_adapter(provider_id)
        provider = adapter.get_provider()
        discover = getattr(adapter, "get_models_async", None)

        if not (provider.supports_dynamic_models and config is not None and callable(discover)):
            logger.debug(f"Dynamic model listing not attempted for {provider_id}")
            return []

        try:
            models = discover(config)
        except Exception as e:
            logger.error(f"Dynamic model listing failed ({provider_id}): {e}")
            raise

        logger.debug(f"Dynamic model listing for {provider_id} returned {len(models)} models")
        return models

    def list_providers(self) -> list[Provider]:
        return [adapter.get_provider() for adapter in self._adapters.values()]

    def provider_ids(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._adapters


def create_adapter(provider_id: str) -> ProviderAdapter:
    """Create a built-in adapter instance.

    Args:
        provider_id: One of ``BUILTIN_PROVIDERS``

    Returns:
        Adapter instance
    """
    if provider_id == "openai":
        from .openai import OpenAIAdapter
        return OpenAIAdapter()

    elif provider_id == "anthropic":
        from .anthropic import AnthropicAdapter
        return AnthropicAdapter()

    elif provider_id == "gemini":
        from .google import GeminiAdapter
        return GeminiAdapter()

    elif provider_id == "deepseek":
        from .deepseek import DeepSeekAdapter
        return DeepSeekAdapter()

    elif provider_id == "zhipu":
        from .zhipu import ZhipuAdapter
        return ZhipuAdapter()

    elif provider_id == "siliconflow":
        from .siliconflow import SiliconFlowAdapter
        return SiliconFlowAdapter()

    elif provider_id == "ollama":
        from .ollama import OllamaAdapter
        return OllamaAdapter()

    else:
        raise AdapterNotFoundError(f"Unknown provider: {provider_id}")


def create_default_registry() -> AdapterRegistry:
    """Registry with every built-in adapter registered."""
    registry = AdapterRegistry()
    for provider_id in BUILTIN_PROVIDERS:
        registry.register(create_adapter(provider_id))
    return registry
