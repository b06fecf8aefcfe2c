"""User settings and API key lookup."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".text-image-prompt-tools"
KEYS_FILENAME = "keys.env"
DATA_DIR_ENV = "TIPT_DATA_DIR"
DEFAULT_MODEL_ENV = "TIPT_DEFAULT_MODEL"

# Environment variable names per provider, first match wins
API_KEY_ENV_VARS = {
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "deepseek": ("DEEPSEEK_API_KEY",),
    "zhipu": ("ZHIPU_API_KEY",),
    "siliconflow": ("SILICONFLOW_API_KEY",),
    "ollama": (),
}


@dataclass
class Settings:
    """Runtime settings for the CLI and service wiring."""

    data_dir: Path = field(default_factory=lambda: Path(os.environ.get(DATA_DIR_ENV) or DEFAULT_DATA_DIR))
    default_model: Optional[str] = field(default_factory=lambda: os.environ.get(DEFAULT_MODEL_ENV))
    history_limit: int = 50

    @property
    def keys_file(self) -> Path:
        return Path(self.data_dir).expanduser() / KEYS_FILENAME

    @property
    def storage_dir(self) -> Path:
        return Path(self.data_dir).expanduser() / "storage"


def load_keys(keys_file: Path) -> dict[str, str]:
    """Load API keys from a dotenv-format file.

    Args:
        keys_file: Path to ``keys.env``

    Returns:
        Dict mapping provider ids to API keys
    """
    keys: dict[str, str] = {}

    if not keys_file.exists():
        logger.debug(f"Keys file not found: {keys_file}")
        return keys

    values = dotenv_values(keys_file)
    for provider_id, env_names in API_KEY_ENV_VARS.items():
        for name in env_names:
            if values.get(name):
                keys[provider_id] = values[name]
                break

    logger.debug(f"Loaded {len(keys)} API keys from {keys_file}")
    return keys


def resolve_api_key(
    provider_id: str,
    explicit: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """Find an API key for ``provider_id``.

    Looks at the explicit value, then the keys file, then the environment.

    Args:
        provider_id: Provider id such as "openai" or "zhipu"
        explicit: Key given on the command line
        settings: Settings locating the keys file

    Returns:
        API key if found, None otherwise
    """
    if explicit:
        return explicit

    settings = settings or Settings()
    from_file = load_keys(settings.keys_file).get(provider_id)
    if from_file:
        return from_file

    for name in API_KEY_ENV_VARS.get(provider_id, ()):
        value = os.environ.get(name)
        if value:
            return value
    return None
