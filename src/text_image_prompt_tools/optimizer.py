"""Text-to-image prompt optimization."""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError, TemplateNotFoundError
from .history import HistoryManager, new_prompt_record
from .llm import LLMService
from .providers.base import Message, StreamHandlers
from .templates import TemplateManager, fill_placeholders, template_id_for_style

logger = logging.getLogger(__name__)

PROMPT_STYLES = ("general", "creative", "photography", "design", "chinese-aesthetics")


@dataclass
class OptimizationRequest:
    target_prompt: str
    model_key: str
    template_id: Optional[str] = None
    style: Optional[str] = None


@dataclass
class OptimizationResponse:
    optimized_prompt: str
    original_prompt: str
    style: str


class PromptService:
    """Optimizes a rough idea into a text-to-image prompt.

    Examples:
        service = PromptService(llm, templates)
        result = service.optimize_prompt(
            OptimizationRequest("a cat in rain", "openai-gpt-4o", style="creative")
        )
        print(result.optimized_prompt)
    """

    def __init__(
        self,
        llm: LLMService,
        templates: TemplateManager,
        history: Optional[HistoryManager] = None,
    ):
        """Initialize prompt service.

        Args:
            llm: Service used to reach the configured model
            templates: Template lookup
            history: When given, successful optimizations are recorded
        """
        self.llm = llm
        self.templates = templates
        self.history = history

    def build_messages(self, request: OptimizationRequest) -> list[Message]:
        """Validate ``request`` and render its template into messages.

        Raises:
            ConfigurationError: Empty prompt or unknown model key
            TemplateNotFoundError: If the resolved template does not exist
        """
        if not request.target_prompt or not request.target_prompt.strip():
            raise ConfigurationError("Target prompt must not be empty")

        self.llm.get_model_config(request.model_key)

        template_id = request.template_id or template_id_for_style(request.style or "general")
        template = self.templates.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(f"Template {template_id} does not exist")

        values = {"prompt": request.target_prompt, "originalPrompt": request.target_prompt}
        logger.debug(f"Optimizing with template {template_id}")
        return [Message(role=m.role, content=fill_placeholders(m.content, values)) for m in template.content]

    def optimize_prompt(self, request: OptimizationRequest) -> OptimizationResponse:
        messages = self.build_messages(request)
        optimized = self.llm.send_message(messages, request.model_key).strip()

        response = OptimizationResponse(
            optimized_prompt=optimized,
            original_prompt=request.target_prompt,
            style=request.style or "general",
        )
        self._record(request, response)
        return response

    def optimize_prompt_stream(self, request: OptimizationRequest, handlers: StreamHandlers) -> None:
        """Stream the optimization through ``handlers``."""
        messages = self.build_messages(request)

        def on_complete(text: str) -> None:
            if handlers.on_complete:
                handlers.on_complete(text)
            self._record(
                request,
                OptimizationResponse(text.strip(), request.target_prompt, request.style or "general"),
            )

        self.llm.send_message_stream(
            messages,
            request.model_key,
            StreamHandlers(on_chunk=handlers.on_chunk, on_complete=on_complete, on_error=handlers.on_error),
        )

    def _record(self, request: OptimizationRequest, response: OptimizationResponse) -> None:
        if self.history is None:
            return
        config = self.llm.get_model_config(request.model_key)
        self.history.add_record(
            new_prompt_record(
                original_prompt=response.original_prompt,
                optimized_prompt=response.optimized_prompt,
                model_key=request.model_key,
                style=response.style,
                model_name=config.name,
            )
        )
