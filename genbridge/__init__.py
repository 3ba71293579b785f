__version__ = "0.1.0"

from .types import AuthKind, GeneratorConfig, GenerateContentRequest, CountTokensRequest, EmbedContentRequest
from .errors import GenBridgeError, UnsupportedAuthKindError, BackendError, MalformedToolCallError
from .config import resolve_generator_config, get_effective_model, DEFAULT_GEMINI_MODEL
from .client import ContentGenerationClient, create_content_generator
from .streaming import ResponseStream
from .rich_printer import RichPrinter, RichStreamPrinter

__all__ = [
    "AuthKind",
    "GeneratorConfig",
    "GenerateContentRequest",
    "CountTokensRequest",
    "EmbedContentRequest",
    "GenBridgeError",
    "UnsupportedAuthKindError",
    "BackendError",
    "MalformedToolCallError",
    "resolve_generator_config",
    "get_effective_model",
    "DEFAULT_GEMINI_MODEL",
    "ContentGenerationClient",
    "create_content_generator",
    "ResponseStream",
    "RichPrinter",
    "RichStreamPrinter",
]
