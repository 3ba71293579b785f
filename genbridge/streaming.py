"""
Streaming support: OpenAI delta accumulation and the `ResponseStream` wrapper.
"""
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from google.genai import types

from .errors import BackendError, GenBridgeError, MalformedToolCallError
from .mapping import build_response, parse_tool_call
from .utils import extract_status_code

logger = logging.getLogger(__name__)


class OpenAIStreamAccumulator:
    """
    Turns OpenAI chat-completion chunks into canonical partial responses.

    Each emitted response carries the full text received so far (callers
    replace what they rendered rather than appending). Tool-call fragments are
    collected per stream index and emitted as function-call parts once the
    choice reports a finish reason. Usage is only attached to the emission
    produced by the terminal usage chunk.

    One instance serves exactly one streaming call.
    """

    def __init__(self) -> None:
        self.text = ""
        self.finish_reason: Optional[str] = None
        self._pending: Dict[int, Dict[str, Any]] = {}

    def feed(self, chunk: Any) -> Optional[types.GenerateContentResponse]:
        """
        Consume one chunk.

        Returns:
            The canonical response to emit, or None when the chunk carries no
            text, completes no tool call and has no usage.
        """
        text_changed = False
        completed: List[types.Part] = []

        if chunk.choices:
            choice = chunk.choices[0]
            delta = choice.delta
            if delta is not None:
                if delta.content:
                    self.text += delta.content
                    text_changed = True
                for fragment in delta.tool_calls or []:
                    self._add_fragment(fragment)
            if choice.finish_reason:
                self.finish_reason = choice.finish_reason
                completed = self._complete_tool_calls()

        usage = chunk.usage
        if not text_changed and not completed and usage is None:
            return None
        return self._emit(completed, usage=usage, model_version=chunk.model)

    def flush(self) -> Optional[types.GenerateContentResponse]:
        """
        Emit tool calls still pending when the stream ended without a finish reason.
        """
        completed = self._complete_tool_calls()
        if not completed:
            return None
        return self._emit(completed)

    def _emit(self, completed: List[types.Part], **kwargs: Any) -> types.GenerateContentResponse:
        parts = [types.Part(text=self.text)] if self.text else []
        parts.extend(completed)
        return build_response(parts, finish_reason=self.finish_reason, **kwargs)

    def _add_fragment(self, fragment: Any) -> None:
        call = self._pending.setdefault(fragment.index, {"id": None, "name": None, "arguments": ""})
        if fragment.id:
            call["id"] = fragment.id
        function = fragment.function
        if function is not None:
            if function.name:
                call["name"] = function.name
            if function.arguments:
                call["arguments"] += function.arguments

    def _complete_tool_calls(self) -> List[types.Part]:
        parts = []
        for index in sorted(self._pending):
            call = self._pending[index]
            try:
                parts.append(parse_tool_call(call["id"], call["name"], call["arguments"]))
            except MalformedToolCallError as exc:
                logger.warning("Dropping streamed tool call: %s", exc)
        self._pending.clear()
        return parts


async def accumulate_openai_stream(
    chunks: AsyncIterator[Any],
    on_close: Optional[Callable[[], Awaitable[None]]] = None,
) -> AsyncIterator[types.GenerateContentResponse]:
    """
    Lazily map an OpenAI chunk stream to canonical partial responses, in arrival order.

    `on_close` runs when the generator finishes, fails or is finalized, so an
    abandoned stream still releases its transport.
    """
    accumulator = OpenAIStreamAccumulator()
    try:
        async for chunk in chunks:
            response = accumulator.feed(chunk)
            if response is not None:
                yield response
        response = accumulator.flush()
        if response is not None:
            yield response
    finally:
        if on_close is not None:
            await on_close()


class ResponseStream:
    """
    Single-pass async iterator of canonical responses bound to one transport stream.

    Use it with ``async with`` (or call :meth:`aclose`) so the transport is
    released when iteration stops early. Exhausting the stream or hitting an
    error releases it as well. Any failure that is not already a
    `GenBridgeError` is re-raised as `BackendError`.

    Example:
        >>> async with await generator.generate_content_stream(request) as stream:
        ...     async for response in stream:
        ...         print(response.text)
    """

    def __init__(
        self,
        responses: AsyncIterator[types.GenerateContentResponse],
        *,
        provider: str,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.provider = provider
        self._responses = responses
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "ResponseStream":
        return self

    async def __anext__(self) -> types.GenerateContentResponse:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._responses.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise
        except GenBridgeError:
            await self.aclose()
            raise
        except Exception as exc:
            await self.aclose()
            raise BackendError(
                f"Streaming failed: {exc}",
                provider=self.provider,
                status_code=extract_status_code(exc),
            ) from exc

    async def aclose(self) -> None:
        """
        Release the underlying transport. Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        try:
            aclose = getattr(self._responses, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> "ResponseStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
