"""Saved model configurations and model discovery."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .errors import ConfigurationError
from .providers.base import Model, ModelCapabilities, ModelConfig, Provider
from .providers.registry import AdapterRegistry
from .storage import StorageAdapter

logger = logging.getLogger(__name__)

MODELS_STORAGE_KEY = "text-image-prompt-tools:models"


def create_model_config(
    provider: Provider,
    model: Model,
    connection: dict,
    name: Optional[str] = None,
    enabled: bool = True,
    llm_params: Optional[dict] = None,
) -> ModelConfig:
    """Build a model configuration keyed ``"<provider>-<model>"``.

    Raises:
        ConfigurationError: If ``connection`` does not satisfy the
            provider's connection schema
    """
    connection = {k: v for k, v in connection.items() if v is not None}
    problems = provider.connection_schema.validate(connection)
    if problems:
        raise ConfigurationError(f"Invalid connection for {provider.name}: {'; '.join(problems)}")

    return ModelConfig(
        id=f"{provider.id}-{model.id}",
        name=name or f"{provider.name} {model.name}",
        enabled=enabled,
        provider=provider,
        model=model,
        connection=connection,
        llm_params=dict(llm_params or {}),
    )


class ModelManager(ABC):
    """Stores model configurations keyed by their id."""

    @abstractmethod
    def get_model(self, model_key: str) -> Optional[ModelConfig]:
        ...

    @abstractmethod
    def get_all_models(self) -> list[ModelConfig]:
        ...

    @abstractmethod
    def save_model(self, config: ModelConfig) -> None:
        ...

    @abstractmethod
    def delete_model(self, model_key: str) -> None:
        ...

    def get_enabled_models(self) -> list[ModelConfig]:
        return [m for m in self.get_all_models() if m.enabled]


class MemoryModelManager(ModelManager):
    def __init__(self, configs: Optional[list[ModelConfig]] = None) -> None:
        self._models: dict[str, ModelConfig] = {c.id: c for c in configs or []}

    def get_model(self, model_key: str) -> Optional[ModelConfig]:
        return self._models.get(model_key)

    def get_all_models(self) -> list[ModelConfig]:
        return list(self._models.values())

    def save_model(self, config: ModelConfig) -> None:
        self._models[config.id] = config

    def delete_model(self, model_key: str) -> None:
        self._models.pop(model_key, None)


class StoredModelManager(ModelManager):
    """Model configurations persisted as one JSON list."""

    def __init__(self, storage: StorageAdapter, key: str = MODELS_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key

    def _load(self) -> list[dict]:
        data = self.storage.get_data(self.key, [])
        return data if isinstance(data, list) else []

    def get_model(self, model_key: str) -> Optional[ModelConfig]:
        for item in self._load():
            if item.get("id") == model_key:
                return ModelConfig.from_dict(item)
        return None

    def get_all_models(self) -> list[ModelConfig]:
        return [ModelConfig.from_dict(item) for item in self._load()]

    def save_model(self, config: ModelConfig) -> None:
        def upsert(existing):
            items = list(existing or [])
            for index, item in enumerate(items):
                if item.get("id") == config.id:
                    items[index] = config.to_dict()
                    return items
            return items + [config.to_dict()]

        self.storage.update_data(self.key, upsert, [])
        logger.debug(f"Saved model config {config.id}")

    def delete_model(self, model_key: str) -> None:
        self.storage.update_data(
            self.key, lambda existing: [i for i in (existing or []) if i.get("id") != model_key], []
        )


class ModelService:
    """Provider/model browsing for configuration screens and the CLI."""

    def __init__(self, registry: AdapterRegistry) -> None:
        self.registry = registry

    def get_providers(self) -> list[Provider]:
        return self.registry.list_providers()

    def _probe_config(self, provider_id: str, api_key: Optional[str], base_url: Optional[str]) -> ModelConfig:
        provider = self.registry.get_provider(provider_id)
        if provider is None:
            raise ConfigurationError(f"Provider {provider_id} does not exist")

        connection = {"api_key": api_key}
        if base_url:
            connection["base_url"] = base_url
        return ModelConfig(
            id="probe",
            name="probe",
            provider=provider,
            model=Model(id="probe-model", name="probe", provider_id=provider_id, capabilities=ModelCapabilities()),
            connection=connection,
        )

    def fetch_models(self, provider_id: str, api_key: Optional[str] = None, base_url: Optional[str] = None) -> list[Model]:
        """Ask the vendor for its live model list (errors propagate)."""
        return self.registry.get_models(provider_id, self._probe_config(provider_id, api_key, base_url))

    def test_connection(
        self, provider_id: str, api_key: Optional[str] = None, base_url: Optional[str] = None
    ) -> tuple[bool, str]:
        """Check credentials by listing models.

        Returns:
            (ok, message)
        """
        try:
            models = self.fetch_models(provider_id, api_key, base_url)
        except Exception as e:
            logger.info(f"Connection test for {provider_id} failed: {e}")
            return False, str(e)
        return True, f"Connected, {len(models)} models available"

    def resolve_model(self, provider_id: str, model_id: str) -> Model:
        """Find ``model_id`` in the static list or synthesize a best-guess one."""
        for model in self.registry.get_static_models(provider_id):
            if model.id == model_id:
                return model
        return self.registry.get_adapter(provider_id).build_default_model(model_id)
