from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict, Union

from google.genai import types

# =============================================================================
# Auth / Configuration
# =============================================================================


class AuthKind(str, Enum):
    """
    Closed set of backend/credential flows a generator can be built for.
    """
    LOGIN_WITH_GOOGLE = "oauth-personal"
    USE_GEMINI = "gemini-api-key"
    USE_VERTEX_AI = "vertex-ai"
    USE_OPENAI = "openai-api-key"


@dataclass(frozen=True)
class GeneratorConfig:
    """
    Resolved configuration consumed by the generator factory.

    Attributes:
        model: Model identifier used when a request does not name one.
        api_key: Credential for the selected backend, if one was found.
        vertexai: True when the Gemini client must target Vertex AI.
        auth_kind: Which backend flow the factory should build.
        project: Google Cloud project (Vertex AI / Code Assist).
        location: Google Cloud location (Vertex AI).
    """
    model: str
    api_key: Optional[str] = None
    vertexai: Optional[bool] = None
    auth_kind: Optional[Union[AuthKind, str]] = None
    project: Optional[str] = None
    location: Optional[str] = None


# =============================================================================
# Canonical Requests
# =============================================================================

# Anything `utils.to_contents` can coerce into a list of turns
ContentInput = Union[str, types.Content, Dict[str, Any]]
ContentsInput = Union[ContentInput, List[ContentInput]]


class GenerateContentRequest(TypedDict, total=False):
    """
    Canonical generation request.
    """
    model: str
    contents: ContentsInput
    config: types.GenerateContentConfig


class CountTokensRequest(TypedDict, total=False):
    """
    Canonical token-count request.
    """
    model: str
    contents: ContentsInput


class EmbedContentRequest(TypedDict, total=False):
    """
    Canonical embedding request. One vector is returned per item in `contents`.
    """
    model: str
    contents: Union[str, List[Union[str, types.Content]]]
