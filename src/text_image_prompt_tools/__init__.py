"""Text-to-image prompt optimization and image-to-prompt extraction across LLM providers."""

from .app import Services, build_services
from .extractor import ImageService, ImageToPromptRequest, ImageToPromptResponse
from .llm import LLMService
from .optimizer import OptimizationRequest, OptimizationResponse, PromptService

__version__ = "0.1.0"
__all__ = [
    "ImageService",
    "ImageToPromptRequest",
    "ImageToPromptResponse",
    "LLMService",
    "OptimizationRequest",
    "OptimizationResponse",
    "PromptService",
    "Services",
    "build_services",
]
