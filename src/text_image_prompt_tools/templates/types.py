"""Template data types and placeholder substitution."""

import re
import time
from dataclasses import dataclass, field, replace
from typing import Mapping

TEMPLATE_TYPES = ("text2image", "image2image", "image2prompt", "optimize")

_PLACEHOLDER_RE = re.compile(r"{{\s*([A-Za-z_][A-Za-z0-9_]*)\s*}}")


def now_ms() -> int:
    return int(time.time() * 1000)


def fill_placeholders(text: str, values: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` tokens whose name is in ``values``.

    Plain token replacement; unknown placeholders are left as they are.
    """
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        return values[name] if name in values else match.group(0)

    return _PLACEHOLDER_RE.sub(substitute, text)


@dataclass
class MessageTemplate:
    role: str
    content: str


@dataclass
class TemplateMetadata:
    version: str = "1.0.0"
    last_modified: int = 0  # epoch milliseconds
    template_type: str = "text2image"
    language: str = "zh"


@dataclass
class Template:
    id: str
    name: str
    content: list[MessageTemplate]
    metadata: TemplateMetadata = field(default_factory=TemplateMetadata)

    def touched(self) -> "Template":
        """Copy with ``last_modified`` set to now."""
        return replace(self, metadata=replace(self.metadata, last_modified=now_ms()))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "content": [{"role": m.role, "content": m.content} for m in self.content],
            "metadata": {
                "version": self.metadata.version,
                "last_modified": self.metadata.last_modified,
                "template_type": self.metadata.template_type,
                "language": self.metadata.language,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Template":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            content=[MessageTemplate(role=m["role"], content=m["content"]) for m in data.get("content", [])],
            metadata=TemplateMetadata(**(data.get("metadata") or {})),
        )
