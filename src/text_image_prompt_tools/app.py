"""Construct the service graph once per process."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .extractor import ImageService
from .history import HistoryManager
from .llm import LLMService
from .models import ModelService, StoredModelManager
from .optimizer import PromptService
from .providers import AdapterRegistry, create_default_registry
from .storage import JsonFileStorageProvider, StorageAdapter
from .templates import TemplateManager

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    registry: AdapterRegistry
    storage: StorageAdapter
    model_manager: StoredModelManager
    templates: TemplateManager
    history: HistoryManager
    llm: LLMService
    models: ModelService
    prompts: PromptService
    images: ImageService


def build_services(
    settings: Optional[Settings] = None,
    storage: Optional[StorageAdapter] = None,
    registry: Optional[AdapterRegistry] = None,
) -> Services:
    """Wire every service together.

    Args:
        settings: Defaults to ``Settings()`` read from the environment
        storage: Defaults to JSON files under ``settings.storage_dir``
        registry: Defaults to a registry with every built-in adapter

    Returns:
        Services container
    """
    settings = settings or Settings()
    if storage is None:
        storage = StorageAdapter(JsonFileStorageProvider(settings.storage_dir))
    registry = registry or create_default_registry()

    model_manager = StoredModelManager(storage)
    templates = TemplateManager(storage)
    history = HistoryManager(storage, max_records=settings.history_limit)
    llm = LLMService(registry, model_manager)

    logger.debug(f"Services built with data dir {settings.data_dir}")
    return Services(
        settings=settings,
        registry=registry,
        storage=storage,
        model_manager=model_manager,
        templates=templates,
        history=history,
        llm=llm,
        models=ModelService(registry),
        prompts=PromptService(llm, templates, history),
        images=ImageService(llm, templates, registry, history),
    )
