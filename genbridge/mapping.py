"""
Translation between the canonical (Gemini) schema and the OpenAI chat schema.

Every function here is pure: no I/O, no client handles, no environment lookups.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from google.genai import types

from .errors import MalformedToolCallError
from .utils import content_text

logger = logging.getLogger(__name__)

# OpenAI finish_reason -> canonical FinishReason
_FINISH_REASONS = {
    "stop": types.FinishReason.STOP,
    "tool_calls": types.FinishReason.STOP,
    "function_call": types.FinishReason.STOP,
    "length": types.FinishReason.MAX_TOKENS,
    "content_filter": types.FinishReason.SAFETY,
}


# =============================================================================
# Canonical -> OpenAI
# =============================================================================

def to_openai_messages(turns: Sequence[types.Content]) -> List[Dict[str, Any]]:
    """
    Convert canonical turns to OpenAI chat messages.

    Role 'model' becomes 'assistant'; every other role passes through. The
    content is the in-order concatenation of the turn's text parts; function
    calls and function responses are not carried over.

    Args:
        turns (Sequence[types.Content]): Conversation turns.

    Returns:
        List[Dict]: One OpenAI message per turn.
    """
    return [
        {
            "role": "assistant" if turn.role == "model" else turn.role,
            "content": content_text(turn),
        }
        for turn in turns
    ]


def function_declarations(config: Optional[types.GenerateContentConfig]) -> List[types.FunctionDeclaration]:
    """
    Collect the function declarations from every tool in a generation config.
    """
    if config is None or not config.tools:
        return []
    declarations = []
    for tool in config.tools:
        declarations.extend(tool.function_declarations or [])
    return declarations


def _parameters_schema(declaration: types.FunctionDeclaration) -> Optional[Dict[str, Any]]:
    if declaration.parameters_json_schema is not None:
        return declaration.parameters_json_schema
    if declaration.parameters is not None:
        return declaration.parameters.model_dump(mode="json", exclude_none=True)
    return None


def to_openai_tools(declarations: Sequence[types.FunctionDeclaration]) -> List[Dict[str, Any]]:
    """
    Convert canonical function declarations to OpenAI function tools.

    `parameters` is forwarded as-is; the schema is never interpreted here.
    """
    tools = []
    for declaration in declarations:
        function = {
            "name": declaration.name,
            "description": declaration.description,
            "parameters": _parameters_schema(declaration),
        }
        tools.append({
            "type": "function",
            "function": {k: v for k, v in function.items() if v is not None},
        })
    return tools


# =============================================================================
# OpenAI -> Canonical
# =============================================================================

def parse_tool_call(call_id: Optional[str], name: Optional[str], arguments: Optional[str]) -> types.Part:
    """
    Build a function-call part from an OpenAI tool call.

    An empty arguments string means "no arguments".

    Raises:
        MalformedToolCallError: If `arguments` is not a JSON object.
    """
    try:
        args = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError as exc:
        raise MalformedToolCallError(call_id, name, arguments) from exc
    if not isinstance(args, dict):
        raise MalformedToolCallError(call_id, name, arguments)
    return types.Part(function_call=types.FunctionCall(id=call_id, name=name, args=args))


def function_call_parts(tool_calls: Optional[Sequence[Any]]) -> List[types.Part]:
    """
    Parse OpenAI tool calls, dropping (and logging) non-function calls and
    calls with malformed arguments.

    The remaining calls keep their order.
    """
    parts = []
    for tool_call in tool_calls or []:
        if getattr(tool_call, "function", None) is None:
            logger.warning("Dropping tool call %s: not a function call", tool_call.id)
            continue
        try:
            parts.append(parse_tool_call(tool_call.id, tool_call.function.name, tool_call.function.arguments))
        except MalformedToolCallError as exc:
            logger.warning("Dropping tool call: %s", exc)
    return parts


def to_usage_metadata(usage: Any) -> Optional[types.GenerateContentResponseUsageMetadata]:
    if usage is None:
        return None
    return types.GenerateContentResponseUsageMetadata(
        prompt_token_count=usage.prompt_tokens,
        candidates_token_count=usage.completion_tokens,
        total_token_count=usage.total_tokens,
    )


def build_response(
    parts: List[types.Part],
    *,
    finish_reason: Optional[str] = None,
    usage: Any = None,
    model_version: Optional[str] = None,
) -> types.GenerateContentResponse:
    """
    Wrap parts in a single-candidate canonical response.
    """
    candidate = types.Candidate(
        content=types.Content(role="model", parts=parts),
        index=0,
        finish_reason=_FINISH_REASONS.get(finish_reason) if finish_reason else None,
    )
    return types.GenerateContentResponse(
        candidates=[candidate],
        usage_metadata=to_usage_metadata(usage),
        model_version=model_version,
    )


def from_openai_message(
    message: Any,
    *,
    finish_reason: Optional[str] = None,
    usage: Any = None,
    model_version: Optional[str] = None,
) -> types.GenerateContentResponse:
    """
    Convert an OpenAI assistant message into a canonical response.

    The single candidate holds, in order: one text part when the message has
    non-empty content, then one function-call part per tool call. A message
    with neither produces a candidate with an empty parts list.

    Args:
        message: ``ChatCompletionMessage`` (or any object with ``content``/``tool_calls``).
        finish_reason (str, optional): OpenAI finish reason of the choice.
        usage (optional): OpenAI ``CompletionUsage`` for the call.
        model_version (str, optional): Model reported by the backend.

    Returns:
        types.GenerateContentResponse: Exactly one candidate.
    """
    parts: List[types.Part] = []
    if message.content:
        parts.append(types.Part(text=message.content))
    parts.extend(function_call_parts(getattr(message, "tool_calls", None)))
    return build_response(parts, finish_reason=finish_reason, usage=usage, model_version=model_version)
