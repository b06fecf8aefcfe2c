"""Dispatch messages to the adapter behind a saved model configuration."""

import logging

from .errors import ConfigurationError
from .models import ModelManager
from .providers.base import LLMResponse, Message, ModelConfig, StreamHandlers
from .providers.registry import AdapterRegistry

logger = logging.getLogger(__name__)


class LLMService:
    """Resolves a model key to provider + model + connection and delegates.

    No retries: a failed vendor call surfaces immediately.
    """

    def __init__(self, registry: AdapterRegistry, model_manager: ModelManager) -> None:
        self.registry = registry
        self.model_manager = model_manager

    def get_model_config(self, model_key: str) -> ModelConfig:
        """Look up the configuration for ``model_key``.

        Raises:
            ConfigurationError: If the key is blank or unknown
        """
        if not model_key or not model_key.strip():
            raise ConfigurationError("Model key must not be empty")

        config = self.model_manager.get_model(model_key)
        if config is None:
            raise ConfigurationError(f"Model {model_key} does not exist")
        return config

    def send_message(self, messages: list[Message], model_key: str) -> str:
        return self.send_message_structured(messages, model_key).content

    def send_message_structured(self, messages: list[Message], model_key: str) -> LLMResponse:
        config = self.get_model_config(model_key)
        adapter = self.registry.get_adapter(config.provider.id)
        logger.debug(f"Sending {len(messages)} messages to {config.provider.id}/{config.model.id}")
        return adapter.send_message(messages, config)

    def send_message_stream(self, messages: list[Message], model_key: str, handlers: StreamHandlers) -> None:
        config = self.get_model_config(model_key)
        adapter = self.registry.get_adapter(config.provider.id)
        logger.debug(f"Streaming {len(messages)} messages to {config.provider.id}/{config.model.id}")
        adapter.send_message_stream(messages, config, handlers)
