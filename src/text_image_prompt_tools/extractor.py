"""Image-to-prompt extraction with vision-capable models."""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import CapabilityError, ConfigurationError, TemplateNotFoundError
from .history import HistoryManager, new_image_record
from .image_processor import aspect_ratio, image_dimensions
from .llm import LLMService
from .providers.base import Message, ModelConfig, StreamHandlers, image_part, text_part
from .providers.registry import AdapterRegistry
from .templates import IMAGE_MARKER, TemplateManager
from .templates.defaults import DEFAULT_IMAGE2PROMPT_TEMPLATE

logger = logging.getLogger(__name__)

IMAGE_MARKER_TEXT = "请从以下图像中提取提示词："
NO_INSTRUCTIONS_TEXT = "（无额外指令）"
INSTRUCTIONS_NOTE = "用户额外指令："
INSTRUCTIONS_PLACEHOLDER = "{{instructions}}"


@dataclass
class ImageToPromptRequest:
    image_url: str  # data URI or remote URL
    model_key: str
    template_id: Optional[str] = None
    instructions: Optional[str] = None


@dataclass
class ImageToPromptResponse:
    prompt: str
    image_url: str


def build_image_user_content(template_text: str, image_url: str, instructions: Optional[str]) -> list[dict]:
    """Turn a user template containing the image marker into multimodal parts."""
    instruction_text = (instructions or "").strip()
    text = template_text.replace(IMAGE_MARKER, IMAGE_MARKER_TEXT)

    if INSTRUCTIONS_PLACEHOLDER in text:
        text = text.replace(INSTRUCTIONS_PLACEHOLDER, instruction_text or NO_INSTRUCTIONS_TEXT)
    elif instruction_text:
        text = f"{text}\n{INSTRUCTIONS_NOTE}{instruction_text}"

    return [text_part(text), image_part(image_url)]


class ImageService:
    """Extracts a reusable text-to-image prompt from a picture."""

    def __init__(
        self,
        llm: LLMService,
        templates: TemplateManager,
        registry: Optional[AdapterRegistry] = None,
        history: Optional[HistoryManager] = None,
    ):
        """Initialize image service.

        Args:
            llm: Service used to reach the configured model
            templates: Template lookup
            registry: Adapter registry, consulted for a heuristic vision
                guess when a saved model does not state its capability
            history: When given, successful extractions are recorded
        """
        self.llm = llm
        self.templates = templates
        self.registry = registry
        self.history = history

    def supports_vision(self, config: ModelConfig) -> bool:
        declared = config.model.capabilities.supports_vision
        if declared is not None:
            return declared
        if self.registry is None or config.provider.id not in self.registry:
            return False
        guess = self.registry.get_adapter(config.provider.id).guess_vision_support(config.model.id)
        logger.debug(f"Vision support for {config.model.id} unknown, heuristic says {guess}")
        return guess

    def build_messages(self, request: ImageToPromptRequest) -> list[Message]:
        """Validate ``request`` and render its template into messages.

        Raises:
            ConfigurationError: Missing image or unknown model key
            CapabilityError: If the model cannot take image input
            TemplateNotFoundError: If the resolved template does not exist
        """
        if not request.image_url:
            raise ConfigurationError("Image must not be empty")

        config = self.llm.get_model_config(request.model_key)
        if not self.supports_vision(config):
            raise CapabilityError(f"Model {request.model_key} does not support image input")

        template_id = request.template_id or DEFAULT_IMAGE2PROMPT_TEMPLATE
        template = self.templates.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(f"Template {template_id} does not exist")

        messages = []
        for msg in template.content:
            if msg.role == "user" and IMAGE_MARKER in msg.content:
                content = build_image_user_content(msg.content, request.image_url, request.instructions)
                messages.append(Message(role="user", content=content))
            else:
                messages.append(Message(role=msg.role, content=msg.content))
        return messages

    def image_to_prompt(self, request: ImageToPromptRequest) -> ImageToPromptResponse:
        messages = self.build_messages(request)
        prompt = self.llm.send_message(messages, request.model_key).strip()

        response = ImageToPromptResponse(prompt=prompt, image_url=request.image_url)
        self._record(request, response.prompt)
        return response

    def image_to_prompt_stream(self, request: ImageToPromptRequest, handlers: StreamHandlers) -> None:
        """Stream the extraction through ``handlers``."""
        messages = self.build_messages(request)

        def on_complete(text: str) -> None:
            if handlers.on_complete:
                handlers.on_complete(text)
            self._record(request, text.strip())

        self.llm.send_message_stream(
            messages,
            request.model_key,
            StreamHandlers(on_chunk=handlers.on_chunk, on_complete=on_complete, on_error=handlers.on_error),
        )

    def _record(self, request: ImageToPromptRequest, prompt: str) -> None:
        if self.history is None:
            return
        config = self.llm.get_model_config(request.model_key)
        size = image_dimensions(request.image_url) if request.image_url.startswith("data:image") else None
        self.history.add_record(
            new_image_record(
                image_url=request.image_url,
                prompt=prompt,
                model_key=request.model_key,
                model_name=config.name,
                width=size[0] if size else None,
                height=size[1] if size else None,
                aspect_ratio=aspect_ratio(*size) if size else None,
            )
        )
