from .client import LocalInferenceClient, FAILURE_SENTINEL
from .config import Settings, load_settings
from .errors import LocalMuxError, InvalidRequestError, ConfigurationError, TransportError
from .retry import with_retry
from .types import (
    Message, Tool, ToolCall, ThinkingConfig, Provider, GenerationResult,
    EmbeddingResult, VisionEmbeddingResult
)
from .rich_llm_printer import RichPrinter, RichStreamPrinter

__all__ = [
    "LocalInferenceClient",
    "FAILURE_SENTINEL",
    "Settings",
    "load_settings",
    "LocalMuxError",
    "InvalidRequestError",
    "ConfigurationError",
    "TransportError",
    "with_retry",
    "Message",
    "Tool",
    "ToolCall",
    "ThinkingConfig",
    "Provider",
    "GenerationResult",
    "EmbeddingResult",
    "VisionEmbeddingResult",
    "RichPrinter",
    "RichStreamPrinter",
]
