"""Built-in plus user-saved template management."""

import copy
import logging
from typing import Optional

from ..errors import BuiltinTemplateError
from ..storage import StorageAdapter
from .defaults import get_builtin_templates
from .types import Template

logger = logging.getLogger(__name__)

TEMPLATES_STORAGE_KEY = "text-image-prompt-tools:templates"


class TemplateManager:
    """Resolves templates, user-saved first, built-in second.

    Built-ins are read once at construction and cannot be deleted. User
    templates are stored as one id -> template JSON object and may shadow a
    built-in id.
    """

    def __init__(self, storage: StorageAdapter, key: str = TEMPLATES_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self._builtin = {t.id: t for t in get_builtin_templates()}

    def _user_templates(self) -> dict[str, Template]:
        data = self.storage.get_data(self.key, {})
        if not isinstance(data, dict):
            return {}
        return {template_id: Template.from_dict(item) for template_id, item in data.items()}

    def is_builtin_template(self, template_id: str) -> bool:
        return template_id in self._builtin

    def get_template(self, template_id: str) -> Optional[Template]:
        user = self._user_templates()
        if template_id in user:
            return user[template_id]
        builtin = self._builtin.get(template_id)
        return copy.deepcopy(builtin) if builtin else None

    def get_all_templates(self) -> list[Template]:
        merged = {tid: copy.deepcopy(t) for tid, t in self._builtin.items()}
        merged.update(self._user_templates())
        return list(merged.values())

    def get_templates_by_type(self, template_type: str) -> list[Template]:
        return [t for t in self.get_all_templates() if t.metadata.template_type == template_type]

    def save_template(self, template: Template) -> Template:
        """Persist ``template`` with a fresh ``last_modified``; returns the saved copy."""
        saved = template.touched()

        def put(existing):
            templates = dict(existing or {})
            templates[saved.id] = saved.to_dict()
            return templates

        self.storage.update_data(self.key, put, {})
        logger.debug(f"Saved template {saved.id}")
        return saved

    def delete_template(self, template_id: str) -> None:
        """Delete a user template.

        Raises:
            BuiltinTemplateError: If ``template_id`` names a built-in template
        """
        if self.is_builtin_template(template_id):
            raise BuiltinTemplateError(f"Cannot delete built-in template: {template_id}")

        def drop(existing):
            templates = dict(existing or {})
            templates.pop(template_id, None)
            return templates

        self.storage.update_data(self.key, drop, {})
