"""Builders for OpenAI stream chunks and fake transports used across tests."""
import httpx
from openai.types.chat.chat_completion_chunk import (
    ChatCompletionChunk,
    Choice,
    ChoiceDelta,
    ChoiceDeltaToolCall,
    ChoiceDeltaToolCallFunction,
)
from openai.types.completion_usage import CompletionUsage


def text_chunk(text, finish_reason=None):
    return ChatCompletionChunk(
        id="chunk",
        object="chat.completion.chunk",
        created=0,
        model="gpt-4o",
        choices=[Choice(index=0, delta=ChoiceDelta(content=text), finish_reason=finish_reason)],
    )


def tool_chunk(index, arguments, call_id=None, name=None):
    fragment = ChoiceDeltaToolCall(
        index=index,
        id=call_id,
        type="function" if call_id else None,
        function=ChoiceDeltaToolCallFunction(name=name, arguments=arguments),
    )
    return ChatCompletionChunk(
        id="chunk",
        object="chat.completion.chunk",
        created=0,
        model="gpt-4o",
        choices=[Choice(index=0, delta=ChoiceDelta(tool_calls=[fragment]), finish_reason=None)],
    )


def finish_chunk(reason="stop"):
    return ChatCompletionChunk(
        id="chunk",
        object="chat.completion.chunk",
        created=0,
        model="gpt-4o",
        choices=[Choice(index=0, delta=ChoiceDelta(), finish_reason=reason)],
    )


def usage_chunk(prompt=5, completion=3):
    return ChatCompletionChunk(
        id="chunk",
        object="chat.completion.chunk",
        created=0,
        model="gpt-4o",
        choices=[],
        usage=CompletionUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion),
    )


class FakeStream:
    """Stand-in for openai.AsyncStream that records whether it was closed."""

    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


async def aiter_list(items):
    for item in items:
        yield item


class RecordingByteStream(httpx.AsyncByteStream):
    """Response body for httpx.MockTransport that records whether it was closed."""

    def __init__(self, body):
        self.body = body
        self.closed = False

    async def __aiter__(self):
        yield self.body

    async def aclose(self):
        self.closed = True
