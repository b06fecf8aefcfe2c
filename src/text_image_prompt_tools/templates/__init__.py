"""Message templates for prompt optimization and image-to-prompt extraction."""

from .defaults import IMAGE_MARKER, STYLE_TEMPLATES, get_builtin_templates, template_id_for_style
from .manager import TemplateManager
from .types import MessageTemplate, Template, TemplateMetadata, fill_placeholders

__all__ = [
    "IMAGE_MARKER",
    "MessageTemplate",
    "STYLE_TEMPLATES",
    "Template",
    "TemplateManager",
    "TemplateMetadata",
    "fill_placeholders",
    "get_builtin_templates",
    "template_id_for_style",
]
