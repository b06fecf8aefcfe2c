"""CLI interface for prompt optimization and image-to-prompt extraction."""

import logging
import sys
from datetime import datetime
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from .config import resolve_api_key
from .errors import ConfigurationError
from .extractor import ImageToPromptRequest
from .history import IMAGE_TO_PROMPT, PROMPT_OPTIMIZE
from .image_processor import QUALITY_PRESETS, ImageProcessor
from .models import create_model_config
from .optimizer import PROMPT_STYLES, OptimizationRequest
from .providers.base import StreamHandlers
from .templates.types import TEMPLATE_TYPES

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_time=False)],
    )


def _fail(ctx: click.Context, e: Exception):
    console.print(Text(f"\nError: {e}", style="red"))
    if ctx.find_root().params.get("verbose"):
        console.print_exception()
    sys.exit(1)


def _model_key(ctx: click.Context, model: Optional[str]) -> str:
    key = model or ctx.obj.settings.default_model
    if not key:
        console.print("[red]Error: No model given; pass --model or set TIPT_DEFAULT_MODEL[/red]")
        sys.exit(1)
    return key


def _stream_handlers() -> StreamHandlers:
    return StreamHandlers(
        on_chunk=lambda chunk: console.print(chunk, end="", markup=False, highlight=False),
        on_complete=lambda _: console.print(),
    )


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def _shorten(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Optimize text-to-image prompts and extract prompts from images.

    Examples:

        tipt models add openai gpt-4o

        tipt optimize "a cat in rain" -m openai-gpt-4o --style creative

        tipt extract photo.jpg -m openai-gpt-4o --instructions "focus on lighting"
    """
    # Load environment variables
    load_dotenv()

    setup_logging(verbose)

    if ctx.obj is None:
        from .app import build_services

        ctx.obj = build_services()


@cli.command()
@click.argument("prompt")
@click.option("--model", "-m", type=str, help="Saved model key, e.g. openai-gpt-4o")
@click.option("--style", "-s", type=click.Choice(PROMPT_STYLES), default="general", help="Optimization style")
@click.option("--template", "-t", "template_id", type=str, help="Template id (overrides --style)")
@click.option("--stream", is_flag=True, help="Print the answer as it arrives")
@click.pass_context
def optimize(ctx: click.Context, prompt: str, model: Optional[str], style: str, template_id: Optional[str], stream: bool):
    """Rewrite PROMPT into a detailed text-to-image prompt."""
    services = ctx.obj
    request = OptimizationRequest(
        target_prompt=prompt,
        model_key=_model_key(ctx, model),
        template_id=template_id,
        style=style,
    )

    try:
        if stream:
            services.prompts.optimize_prompt_stream(request, _stream_handlers())
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Optimizing...", total=None)
            result = services.prompts.optimize_prompt(request)

        console.print(Panel(Text(result.optimized_prompt), title=f"Optimized ({result.style})", border_style="green"))

    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.argument("image")
@click.option("--model", "-m", type=str, help="Saved model key of a vision model")
@click.option("--template", "-t", "template_id", type=str, help="Template id (default image2prompt-general)")
@click.option("--instructions", "-i", type=str, help="Extra instructions for the model")
@click.option("--quality", "-q", type=click.Choice(list(QUALITY_PRESETS)), default="normal", help="Image quality preset")
@click.option("--stream", is_flag=True, help="Print the answer as it arrives")
@click.pass_context
def extract(
    ctx: click.Context,
    image: str,
    model: Optional[str],
    template_id: Optional[str],
    instructions: Optional[str],
    quality: str,
    stream: bool,
):
    """Extract a text-to-image prompt from IMAGE (file path or URL)."""
    services = ctx.obj
    model_key = _model_key(ctx, model)

    try:
        loaded = ImageProcessor(quality=quality).load(image)
        metadata = loaded["metadata"]
        if metadata.get("width"):
            console.print(f"[dim]Image: {metadata['width']}x{metadata['height']} ({metadata['aspect_ratio']})[/dim]")

        request = ImageToPromptRequest(
            image_url=loaded["image_url"],
            model_key=model_key,
            template_id=template_id,
            instructions=instructions,
        )

        if stream:
            services.images.image_to_prompt_stream(request, _stream_handlers())
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Extracting...", total=None)
            result = services.images.image_to_prompt(request)

        console.print(Panel(Text(result.prompt), title="Extracted prompt", border_style="green"))

    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        sys.exit(130)
    except Exception as e:
        _fail(ctx, e)


@cli.group()
def models():
    """Manage providers and saved model configurations."""


@models.command("providers")
@click.pass_context
def models_providers(ctx: click.Context):
    """List supported providers."""
    table = Table(title="Providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("API key")
    table.add_column("Live models")
    table.add_column("Default base URL", style="dim")

    for provider in ctx.obj.models.get_providers():
        table.add_row(
            provider.id,
            provider.name,
            "required" if provider.requires_api_key else "optional",
            "yes" if provider.supports_dynamic_models else "no",
            provider.default_base_url,
        )
    console.print(table)


@models.command("list")
@click.argument("provider_id", required=False)
@click.option("--live", is_flag=True, help="Ask the provider for its current model list")
@click.option("--api-key", type=str, help="API key for --live")
@click.option("--base-url", type=str, help="Base URL for --live")
@click.pass_context
def models_list(ctx: click.Context, provider_id: Optional[str], live: bool, api_key: Optional[str], base_url: Optional[str]):
    """List saved models, or the models PROVIDER_ID offers."""
    services = ctx.obj

    try:
        if provider_id is None:
            table = Table(title="Saved models")
            table.add_column("Key", style="cyan")
            table.add_column("Name")
            table.add_column("Provider")
            table.add_column("Vision")
            table.add_column("Enabled")
            for config in services.model_manager.get_all_models():
                vision = services.images.supports_vision(config)
                table.add_row(config.id, config.name, config.provider.id, "yes" if vision else "no",
                              "yes" if config.enabled else "no")
            console.print(table)
            return

        if live:
            key = resolve_api_key(provider_id, api_key, services.settings)
            available = services.models.fetch_models(provider_id, key, base_url)
        else:
            available = services.registry.get_static_models(provider_id)

        adapter = services.registry.get_adapter(provider_id)
        table = Table(title=f"{provider_id} models")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Vision")
        table.add_column("Context", justify="right")
        for model in available:
            vision = model.capabilities.supports_vision
            if vision is None:
                vision = adapter.guess_vision_support(model.id)
            context = model.capabilities.max_context_length
            table.add_row(model.id, model.name, "yes" if vision else "no", f"{context:,}" if context else "-")
        console.print(table)

    except Exception as e:
        _fail(ctx, e)


@models.command("add")
@click.argument("provider_id")
@click.argument("model_id")
@click.option("--api-key", type=str, help="API key (defaults to keys.env or environment)")
@click.option("--base-url", type=str, help="Override the provider's base URL")
@click.option("--name", type=str, help="Display name")
@click.pass_context
def models_add(
    ctx: click.Context,
    provider_id: str,
    model_id: str,
    api_key: Optional[str],
    base_url: Optional[str],
    name: Optional[str],
):
    """Save a model configuration for PROVIDER_ID / MODEL_ID."""
    services = ctx.obj

    try:
        provider = services.registry.get_provider(provider_id)
        if provider is None:
            raise ConfigurationError(f"Provider {provider_id} does not exist")

        model = services.models.resolve_model(provider_id, model_id)
        connection = {
            "api_key": resolve_api_key(provider_id, api_key, services.settings),
            "base_url": base_url,
        }
        config = create_model_config(provider, model, connection, name=name)
        services.model_manager.save_model(config)
        console.print(f"[green]Saved {config.id}[/green]")

    except Exception as e:
        _fail(ctx, e)


@models.command("remove")
@click.argument("model_key")
@click.pass_context
def models_remove(ctx: click.Context, model_key: str):
    """Delete a saved model configuration."""
    services = ctx.obj
    if services.model_manager.get_model(model_key) is None:
        console.print(f"[red]Error: Model {model_key} does not exist[/red]")
        sys.exit(1)
    services.model_manager.delete_model(model_key)
    console.print(f"[green]Removed {model_key}[/green]")


@models.command("show")
@click.argument("model_key")
@click.pass_context
def models_show(ctx: click.Context, model_key: str):
    """Show a saved model configuration (API key masked)."""
    services = ctx.obj
    try:
        config = services.llm.get_model_config(model_key)
    except Exception as e:
        _fail(ctx, e)
        return

    key = config.api_key
    masked = f"{key[:4]}…{key[-4:]}" if key and len(key) > 8 else ("set" if key else "not set")
    caps = config.model.capabilities

    console.print(f"[cyan]{config.name}[/cyan] ({config.id})")
    console.print(f"  Provider: {config.provider.name}")
    console.print(f"  Model: {config.model.id}")
    console.print(f"  Base URL: {config.base_url}")
    console.print(f"  API key: {masked}")
    console.print(f"  Vision: {'yes' if services.images.supports_vision(config) else 'no'}")
    console.print(f"  Context: {caps.max_context_length or '-'}")
    console.print(f"  Enabled: {'yes' if config.enabled else 'no'}")


@models.command("test")
@click.argument("provider_id")
@click.option("--api-key", type=str, help="API key (defaults to keys.env or environment)")
@click.option("--base-url", type=str, help="Override the provider's base URL")
@click.pass_context
def models_test(ctx: click.Context, provider_id: str, api_key: Optional[str], base_url: Optional[str]):
    """Check that PROVIDER_ID accepts the credentials."""
    services = ctx.obj
    key = resolve_api_key(provider_id, api_key, services.settings)
    ok, message = services.models.test_connection(provider_id, key, base_url)
    if ok:
        console.print(f"[green]{message}[/green]")
    else:
        console.print(f"[red]Error: {message}[/red]")
        sys.exit(1)


@cli.group()
def templates():
    """Browse and manage message templates."""


@templates.command("list")
@click.option("--type", "template_type", type=click.Choice(TEMPLATE_TYPES), help="Only this template type")
@click.pass_context
def templates_list(ctx: click.Context, template_type: Optional[str]):
    """List built-in and saved templates."""
    manager = ctx.obj.templates
    items = manager.get_templates_by_type(template_type) if template_type else manager.get_all_templates()

    table = Table(title="Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Source")
    for template in items:
        table.add_row(
            template.id,
            template.name,
            template.metadata.template_type,
            "built-in" if manager.is_builtin_template(template.id) else "user",
        )
    console.print(table)


@templates.command("show")
@click.argument("template_id")
@click.pass_context
def templates_show(ctx: click.Context, template_id: str):
    """Print the messages of TEMPLATE_ID."""
    template = ctx.obj.templates.get_template(template_id)
    if template is None:
        console.print(f"[red]Error: Template {template_id} does not exist[/red]")
        sys.exit(1)

    console.print(f"[cyan]{template.name}[/cyan] ({template.id}, v{template.metadata.version})")
    for message in template.content:
        console.print(Panel(Text(message.content), title=message.role, border_style="dim"))


@templates.command("delete")
@click.argument("template_id")
@click.pass_context
def templates_delete(ctx: click.Context, template_id: str):
    """Delete a user template."""
    try:
        ctx.obj.templates.delete_template(template_id)
    except Exception as e:
        _fail(ctx, e)
    console.print(f"[green]Deleted {template_id}[/green]")


@cli.group()
def history():
    """Show or clear past results."""


@history.command("list")
@click.option("--type", "record_type", type=click.Choice([PROMPT_OPTIMIZE, IMAGE_TO_PROMPT]), help="Only this record type")
@click.option("--limit", "-n", type=int, default=20, help="Number of records to show")
@click.pass_context
def history_list(ctx: click.Context, record_type: Optional[str], limit: int):
    """List history records, newest first."""
    records = ctx.obj.history.get_records(record_type)[:limit]
    if not records:
        console.print("[dim]No history[/dim]")
        return

    table = Table(title="History")
    table.add_column("Time", style="dim")
    table.add_column("Type")
    table.add_column("Model")
    table.add_column("Result")
    for record in records:
        text = record.optimized_prompt if record.type == PROMPT_OPTIMIZE else record.prompt
        table.add_row(
            _format_timestamp(record.timestamp),
            record.type,
            record.model_name or record.model_key,
            _shorten(text),
        )
    console.print(table)


@history.command("clear")
@click.option("--type", "record_type", type=click.Choice([PROMPT_OPTIMIZE, IMAGE_TO_PROMPT]), help="Only this record type")
@click.confirmation_option(prompt="Delete history records?")
@click.pass_context
def history_clear(ctx: click.Context, record_type: Optional[str]):
    """Delete history records."""
    ctx.obj.history.clear_records(record_type)
    console.print("[green]History cleared[/green]")


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
