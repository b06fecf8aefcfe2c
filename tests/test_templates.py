"""Tests for template lookup, persistence and placeholder filling."""

import pytest

from text_image_prompt_tools.errors import BuiltinTemplateError
from text_image_prompt_tools.templates import (
    STYLE_TEMPLATES,
    MessageTemplate,
    Template,
    TemplateManager,
    TemplateMetadata,
    fill_placeholders,
    get_builtin_templates,
    template_id_for_style,
)
from text_image_prompt_tools.templates.defaults import BUILTIN_LAST_MODIFIED


@pytest.fixture
def manager(storage):
    return TemplateManager(storage)


def _template(template_id="mine", content="opt: {{prompt}}", template_type="text2image"):
    return Template(
        id=template_id,
        name="Mine",
        content=[MessageTemplate(role="user", content=content)],
        metadata=TemplateMetadata(template_type=template_type),
    )


class TestPlaceholders:

    def test_fill_prompt(self):
        assert fill_placeholders("opt: {{prompt}}", {"prompt": "a cat"}) == "opt: a cat"

    def test_whitespace_inside_braces(self):
        assert fill_placeholders("{{ prompt }}!", {"prompt": "x"}) == "x!"

    def test_unknown_placeholder_left_alone(self):
        assert fill_placeholders("{{other}} {{prompt}}", {"prompt": "x"}) == "{{other}} x"

    def test_value_is_not_reinterpreted(self):
        assert fill_placeholders("{{prompt}}", {"prompt": "{{prompt}} $1"}) == "{{prompt}} $1"


class TestBuiltins:

    def test_every_style_has_a_builtin(self):
        ids = {t.id for t in get_builtin_templates()}
        for template_id in STYLE_TEMPLATES.values():
            assert template_id in ids
        assert "image2prompt-general" in ids

    def test_unknown_style_falls_back_to_general(self):
        assert template_id_for_style("baroque") == "text2image-general-optimize"

    def test_builtins_carry_fixed_timestamp(self):
        assert all(t.metadata.last_modified == BUILTIN_LAST_MODIFIED for t in get_builtin_templates())


class TestTemplateManager:

    def test_builtin_cannot_be_deleted(self, manager):
        with pytest.raises(BuiltinTemplateError):
            manager.delete_template("text2image-general-optimize")
        assert manager.get_template("text2image-general-optimize") is not None

    def test_save_refreshes_timestamp(self, manager):
        saved = manager.save_template(_template())

        assert saved.metadata.last_modified > 0
        assert manager.get_template("mine").metadata.last_modified == saved.metadata.last_modified

    def test_user_template_shadows_builtin(self, manager):
        manager.save_template(_template("text2image-general-optimize", "custom {{prompt}}"))

        template = manager.get_template("text2image-general-optimize")
        assert template.content[0].content == "custom {{prompt}}"
        merged = [t for t in manager.get_all_templates() if t.id == "text2image-general-optimize"]
        assert len(merged) == 1
        assert merged[0].content[0].content == "custom {{prompt}}"

    def test_delete_user_template(self, manager):
        manager.save_template(_template())
        manager.delete_template("mine")
        assert manager.get_template("mine") is None

    def test_missing_template_is_none(self, manager):
        assert manager.get_template("nope") is None

    def test_builtin_copies_are_independent(self, manager):
        first = manager.get_template("image2prompt-general")
        first.content[0].content = "mutated"
        assert manager.get_template("image2prompt-general").content[0].content != "mutated"

    def test_by_type(self, manager):
        manager.save_template(_template("mine-i2p", template_type="image2prompt"))

        ids = {t.id for t in manager.get_templates_by_type("image2prompt")}
        assert ids == {"image2prompt-general", "mine-i2p"}
