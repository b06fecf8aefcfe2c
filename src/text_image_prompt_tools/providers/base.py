"""Base classes and contracts for provider adapters."""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

ROLES = ("system", "user", "assistant")

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class ConnectionSchema:
    """Connection fields a provider accepts, with their primitive types."""

    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    field_types: dict[str, str] = field(default_factory=dict)  # name -> "string" | "number" | "boolean"

    def validate(self, connection: dict) -> list[str]:
        """Return a list of problems with ``connection`` (empty when valid)."""
        problems = []
        for name in self.required:
            if connection.get(name) in (None, ""):
                problems.append(f"missing required field '{name}'")

        checks = {
            "string": lambda v: isinstance(v, str),
            "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
            "boolean": lambda v: isinstance(v, bool),
        }
        for name, value in connection.items():
            expected = self.field_types.get(name)
            if value is None or expected not in checks:
                continue
            if not checks[expected](value):
                problems.append(f"field '{name}' should be a {expected}")
        return problems

    def to_dict(self) -> dict:
        return {
            "required": list(self.required),
            "optional": list(self.optional),
            "field_types": dict(self.field_types),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionSchema":
        return cls(
            required=tuple(data.get("required", ())),
            optional=tuple(data.get("optional", ())),
            field_types=dict(data.get("field_types", {})),
        )


@dataclass(frozen=True)
class Provider:
    """Static description of an LLM vendor."""

    id: str
    name: str
    requires_api_key: bool
    default_base_url: str
    supports_dynamic_models: bool
    description: str = ""
    connection_schema: ConnectionSchema = field(default_factory=ConnectionSchema)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["connection_schema"] = self.connection_schema.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Provider":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            requires_api_key=data.get("requires_api_key", True),
            default_base_url=data.get("default_base_url", ""),
            supports_dynamic_models=data.get("supports_dynamic_models", False),
            description=data.get("description", ""),
            connection_schema=ConnectionSchema.from_dict(data.get("connection_schema") or {}),
        )


@dataclass(frozen=True)
class ModelCapabilities:
    supports_tools: bool = False
    supports_vision: Optional[bool] = None  # None means unknown
    supports_reasoning: bool = False
    max_context_length: Optional[int] = None


@dataclass(frozen=True)
class Model:
    """Static description of a model offered by a provider."""

    id: str
    name: str
    provider_id: str
    capabilities: ModelCapabilities = field(default_factory=ModelCapabilities)
    description: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Model":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            provider_id=data["provider_id"],
            capabilities=ModelCapabilities(**(data.get("capabilities") or {})),
            description=data.get("description", ""),
        )


@dataclass
class ModelConfig:
    """A user's saved binding of provider + model + connection settings.

    ``connection`` holds ``api_key`` and ``base_url`` plus any extra
    vendor fields; ``llm_params`` are merged into every call.
    """

    id: str
    name: str
    provider: Provider
    model: Model
    connection: dict = field(default_factory=dict)
    llm_params: dict = field(default_factory=dict)
    enabled: bool = True

    @property
    def api_key(self) -> Optional[str]:
        return self.connection.get("api_key")

    @property
    def base_url(self) -> str:
        return self.connection.get("base_url") or self.provider.default_base_url

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "provider": self.provider.to_dict(),
            "model": self.model.to_dict(),
            "connection": dict(self.connection),
            "llm_params": dict(self.llm_params),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModelConfig":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            enabled=data.get("enabled", True),
            provider=Provider.from_dict(data["provider"]),
            model=Model.from_dict(data["model"]),
            connection=dict(data.get("connection") or {}),
            llm_params=dict(data.get("llm_params") or {}),
        )


# Content parts use the OpenAI chat shape:
#   {"type": "text", "text": str} | {"type": "image_url", "image_url": {"url": str}}
ContentPart = dict


@dataclass
class Message:
    role: str  # "system" | "user" | "assistant"
    content: Union[str, list[ContentPart]]

    def text(self) -> str:
        """Concatenated text of this message, ignoring non-text parts."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.get("text", "") for p in self.content if p.get("type") == "text")

    def image_urls(self) -> list[str]:
        if isinstance(self.content, str):
            return []
        return [
            p["image_url"]["url"]
            for p in self.content
            if p.get("type") == "image_url" and p.get("image_url", {}).get("url")
        ]


def text_part(text: str) -> ContentPart:
    return {"type": "text", "text": text}


def image_part(url: str) -> ContentPart:
    return {"type": "image_url", "image_url": {"url": url}}


def split_data_uri(url: str, default_mime: str = "image/jpeg") -> tuple[str, str]:
    """Split a data URI into (mime_type, base64_payload).

    Anything that is not a data URI is returned unchanged as the payload.
    """
    match = _DATA_URI_RE.match(url)
    if not match:
        return default_mime, url
    return match.group("mime") or default_mime, match.group("data")


@dataclass
class TokenUsage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass
class LLMResponse:
    """Normalized response format from all providers."""

    content: str
    usage: Optional[TokenUsage] = None
    model: str = ""


@dataclass
class StreamHandlers:
    on_chunk: Optional[Callable[[str], None]] = None
    on_complete: Optional[Callable[[str], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None


class ProviderAdapter(ABC):
    """Abstract base class for vendor adapters.

    Each adapter translates the uniform message/model contract into one
    vendor's wire format and back. Adapters that can enumerate models live
    also implement ``get_models_async(config)``; the registry checks for it.
    """

    @abstractmethod
    def get_provider(self) -> Provider:
        ...

    @abstractmethod
    def get_models(self) -> list[Model]:
        """Hard-coded fallback model list (not authoritative)."""
        ...

    @abstractmethod
    def send_message(self, messages: list[Message], config: ModelConfig) -> LLMResponse:
        ...

    @abstractmethod
    def _stream_deltas(self, messages: list[Message], config: ModelConfig) -> Iterator[str]:
        """Yield incremental text deltas from the vendor's streaming API."""
        ...

    def guess_vision_support(self, model_id: str) -> bool:
        """Best-effort guess whether ``model_id`` accepts images.

        Heuristic only: used when neither the vendor nor saved configuration
        says otherwise.
        """
        return False

    def build_default_model(self, model_id: str) -> Model:
        provider = self.get_provider()
        return Model(
            id=model_id,
            name=model_id,
            description=model_id,
            provider_id=provider.id,
            capabilities=self._default_capabilities(model_id),
        )

    def _default_capabilities(self, model_id: str) -> ModelCapabilities:
        return ModelCapabilities(
            supports_tools=False,
            supports_vision=self.guess_vision_support(model_id),
            max_context_length=128000,
        )

    def send_message_stream(
        self,
        messages: list[Message],
        config: ModelConfig,
        handlers: StreamHandlers,
    ) -> None:
        """Stream a completion through ``handlers``.

        ``on_chunk`` fires per delta, then exactly one of ``on_complete``
        (with the concatenated text) or ``on_error``. Errors are re-raised.
        """
        chunks = []
        try:
            for delta in self._stream_deltas(messages, config):
                if not delta:
                    continue
                chunks.append(delta)
                if handlers.on_chunk:
                    handlers.on_chunk(delta)
        except Exception as e:
            logger.error(f"{self.get_provider().name} stream failed: {e}")
            if handlers.on_error:
                handlers.on_error(e)
            raise

        if handlers.on_complete:
            handlers.on_complete("".join(chunks))
