import platform
import sys
from typing import Any, Dict, List, Optional

from google.genai import types

from . import __version__
from .types import ContentInput, ContentsInput

# =============================================================================
# Outbound Headers
# =============================================================================

def build_user_agent(version: Optional[str] = None) -> str:
    """
    Build the User-Agent header value sent on every outbound call.

    Args:
        version (str, optional): Version token. Defaults to the package version.

    Returns:
        str: e.g. ``"GenBridge/0.1.0 (linux; x86_64)"``.
    """
    return f"GenBridge/{version or __version__} ({sys.platform}; {platform.machine()})"


def build_http_headers(version: Optional[str] = None) -> Dict[str, str]:
    return {"User-Agent": build_user_agent(version)}


# =============================================================================
# Content Helpers
# =============================================================================

def create_content(role: str, text: str) -> types.Content:
    """
    Create a single-part text turn.

    Args:
        role (str): 'user', 'model' or 'system'.
        text (str): The text of the turn.

    Returns:
        types.Content: The canonical turn.
    """
    return types.Content(role=role, parts=[types.Part(text=text)])


def _to_content(item: ContentInput) -> types.Content:
    if isinstance(item, types.Content):
        if item.role is None:
            return item.model_copy(update={"role": "user"})
        return item
    if isinstance(item, str):
        return create_content("user", item)
    if isinstance(item, types.Part):
        return types.Content(role="user", parts=[item])
    if isinstance(item, dict):
        # Accept chat-style {"role": ..., "content": "..."} dicts as well
        if "parts" not in item and isinstance(item.get("content"), str):
            return create_content(item.get("role") or "user", item["content"])
        content = types.Content.model_validate(item)
        if content.role is None:
            content.role = "user"
        return content
    raise TypeError(f"Cannot convert {type(item).__name__} to Content")


def to_contents(contents: Optional[ContentsInput]) -> List[types.Content]:
    """
    Coerce the accepted request shapes into an ordered list of turns.

    A bare string becomes one user turn; a list is converted item by item.

    Args:
        contents: A string, Content, dict, or a list of these.

    Returns:
        List[types.Content]: Canonical turns in input order.
    """
    if contents is None:
        return []
    if isinstance(contents, list):
        return [_to_content(item) for item in contents]
    return [_to_content(contents)]


def content_text(content: types.Content) -> str:
    """
    Concatenate the text parts of a turn in order, with no separator.

    Non-text parts (function calls, function responses, blobs) contribute nothing.
    """
    return "".join(part.text for part in content.parts or [] if part.text)


def to_embedding_inputs(contents: Any) -> List[str]:
    """
    Flatten an embedding request's contents into one string per input item.
    """
    if isinstance(contents, (str, types.Content, dict)):
        contents = [contents]
    return [item if isinstance(item, str) else content_text(_to_content(item)) for item in contents or []]


# =============================================================================
# Tool Helpers
# =============================================================================

def create_tool(
    name: str,
    description: str,
    parameters: Dict[str, Any],
    required: Optional[List[str]] = None,
) -> types.Tool:
    """
    Create a canonical Tool holding one function declaration.

    Args:
        name (str): The name of the function/tool to be called.
        description (str): A clear description of what the tool does.
        parameters (Dict): JSON Schema properties for the expected arguments.
        required (List[str], optional): Parameter names that are required.

    Returns:
        types.Tool: A tool suitable for ``GenerateContentConfig(tools=[...])``.
    """
    return types.Tool(
        function_declarations=[
            types.FunctionDeclaration(
                name=name,
                description=description,
                parameters_json_schema={
                    "type": "object",
                    "properties": parameters,
                    "required": required or [],
                },
            )
        ]
    )


# =============================================================================
# Error Helpers
# =============================================================================

def extract_status_code(exc: BaseException) -> Optional[int]:
    """
    Walk the exception chain to find an HTTP status code.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        for attr in ("status_code", "code", "status"):
            value = getattr(current, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(current, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
        current = current.__cause__ or current.__context__
    return None
