"""Tests for the tipt command line."""

import pytest
from click.testing import CliRunner
from PIL import Image

from text_image_prompt_tools.cli import cli
from text_image_prompt_tools.history import new_prompt_record


@pytest.fixture
def run(services):
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(cli, list(args), obj=services, input=input)

    return invoke


def test_optimize(run, echo_adapter):
    result = run("optimize", "a cat in rain", "-m", "openai-gpt-4o", "--style", "creative")

    assert result.exit_code == 0, result.output
    assert "a cat in rain" in result.output
    assert len(echo_adapter.calls) == 1


def test_optimize_stream(run):
    result = run("optimize", "a lighthouse", "-m", "openai-gpt-4o", "--stream")

    assert result.exit_code == 0, result.output
    assert "a lighthouse" in result.output


def test_optimize_without_model(run):
    result = run("optimize", "a cat")

    assert result.exit_code == 1
    assert "No model given" in result.output


def test_optimize_unknown_model(run):
    result = run("optimize", "a cat", "-m", "openai-missing")

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_extract_from_file(run, tmp_path, echo_adapter):
    path = tmp_path / "photo.png"
    Image.new("RGB", (160, 90), color="green").save(path, format="PNG")

    result = run("extract", str(path), "-m", "openai-gpt-4o", "-i", "keep it short")

    assert result.exit_code == 0, result.output
    assert "160x90 (16:9)" in result.output
    messages, _ = echo_adapter.calls[0]
    assert messages[-1].image_urls()[0].startswith("data:image/jpeg;base64,")
    assert "keep it short" in messages[-1].text()


def test_extract_rejects_text_only_model(run, tmp_path, echo_adapter):
    path = tmp_path / "photo.png"
    Image.new("RGB", (16, 16)).save(path, format="PNG")

    result = run("extract", str(path), "-m", "openai-gpt-3.5-turbo")

    assert result.exit_code == 1
    assert "does not support image input" in result.output
    assert echo_adapter.calls == []


def test_models_add_show_remove(run, services):
    result = run("models", "add", "openai", "gpt-4o-mini", "--api-key", "sk-test-12345678")
    assert result.exit_code == 0, result.output
    assert "openai-gpt-4o-mini" in result.output

    config = services.model_manager.get_model("openai-gpt-4o-mini")
    assert config.model.capabilities.supports_vision is True

    result = run("models", "show", "openai-gpt-4o-mini")
    assert result.exit_code == 0, result.output
    assert "sk-t…5678" in result.output
    assert "sk-test-12345678" not in result.output

    result = run("models", "remove", "openai-gpt-4o-mini")
    assert result.exit_code == 0
    assert services.model_manager.get_model("openai-gpt-4o-mini") is None


def test_models_add_unknown_provider(run):
    result = run("models", "add", "nope", "x", "--api-key", "k")

    assert result.exit_code == 1
    assert "nope" in result.output


def test_models_list_static(run):
    result = run("models", "list", "openai")

    assert result.exit_code == 0, result.output
    assert "gpt-4o" in result.output


def test_models_providers(run):
    result = run("models", "providers")

    assert result.exit_code == 0
    assert "openai" in result.output


def test_templates_list_and_show(run):
    result = run("templates", "list", "--type", "image2prompt")
    assert result.exit_code == 0
    assert "image2prompt-general" in result.output

    result = run("templates", "show", "image2prompt-general")
    assert result.exit_code == 0
    assert "[图像]" in result.output


def test_templates_delete_builtin_fails(run):
    result = run("templates", "delete", "text2image-general-optimize")

    assert result.exit_code == 1
    assert "built-in" in result.output


def test_history_list_and_clear(run, services):
    services.history.add_record(new_prompt_record("idea", "a very good prompt", "openai-gpt-4o", "general"))

    result = run("history", "list")
    assert result.exit_code == 0
    assert "a very good prompt" in result.output

    result = run("history", "clear", "--yes")
    assert result.exit_code == 0
    assert services.history.get_records() == []
