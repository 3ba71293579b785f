import asyncio
import gc

import httpx
import pytest

from genbridge.errors import BackendError
from genbridge.streaming import OpenAIStreamAccumulator, ResponseStream, accumulate_openai_stream
from helpers import FakeStream, aiter_list, finish_chunk, text_chunk, tool_chunk, usage_chunk


def _text(response):
    return response.candidates[0].content.parts[0].text


async def _collect(iterator):
    return [item async for item in iterator]


class TestOpenAIStreamAccumulator:
    def test_emits_full_prefix(self):
        accumulator = OpenAIStreamAccumulator()

        first = accumulator.feed(text_chunk("He"))
        second = accumulator.feed(text_chunk("llo"))

        assert _text(first) == "He"
        assert _text(second) == "Hello"

    def test_content_free_delta_is_dropped(self):
        accumulator = OpenAIStreamAccumulator()
        accumulator.feed(text_chunk("Hi"))

        assert accumulator.feed(text_chunk(None)) is None
        assert accumulator.feed(finish_chunk("stop")) is None

    def test_tool_call_emitted_when_finished(self):
        accumulator = OpenAIStreamAccumulator()

        assert accumulator.feed(tool_chunk(0, '{"city": ', call_id="call_1", name="get_weather")) is None
        assert accumulator.feed(tool_chunk(0, '"Paris"}')) is None
        response = accumulator.feed(finish_chunk("tool_calls"))

        call = response.candidates[0].content.parts[0].function_call
        assert call.id == "call_1"
        assert call.name == "get_weather"
        assert call.args == {"city": "Paris"}

    def test_parallel_tool_calls_keep_index_order(self):
        accumulator = OpenAIStreamAccumulator()
        accumulator.feed(tool_chunk(1, "{}", call_id="call_b", name="second"))
        accumulator.feed(tool_chunk(0, "{}", call_id="call_a", name="first"))

        parts = accumulator.feed(finish_chunk("tool_calls")).candidates[0].content.parts

        assert [p.function_call.id for p in parts] == ["call_a", "call_b"]

    def test_malformed_streamed_call_dropped(self):
        accumulator = OpenAIStreamAccumulator()
        accumulator.feed(tool_chunk(0, "{bad json", call_id="bad", name="broken"))
        accumulator.feed(tool_chunk(1, "{}", call_id="good", name="works"))

        parts = accumulator.feed(finish_chunk("tool_calls")).candidates[0].content.parts

        assert [p.function_call.id for p in parts] == ["good"]

    def test_flush_emits_unfinished_calls(self):
        accumulator = OpenAIStreamAccumulator()
        accumulator.feed(tool_chunk(0, '{"a": 1}', call_id="call_1", name="f"))

        response = accumulator.flush()

        assert response.candidates[0].content.parts[0].function_call.args == {"a": 1}
        assert accumulator.flush() is None


class TestAccumulateOpenAIStream:
    @pytest.mark.asyncio
    async def test_usage_only_on_last_emission(self):
        chunks = [
            text_chunk("Let me check"),
            tool_chunk(0, '{"city": "Paris"}', call_id="call_1", name="get_weather"),
            finish_chunk("tool_calls"),
            usage_chunk(prompt=5, completion=3),
        ]

        responses = await _collect(accumulate_openai_stream(aiter_list(chunks)))

        assert len(responses) == 3
        assert [_text(r) for r in responses] == ["Let me check"] * 3
        assert responses[1].candidates[0].content.parts[1].function_call.name == "get_weather"
        assert responses[0].usage_metadata is None
        assert responses[1].usage_metadata is None
        assert responses[2].usage_metadata.total_token_count == 8

    @pytest.mark.asyncio
    async def test_order_preserved(self):
        chunks = [text_chunk(c) for c in "abc"]

        responses = await _collect(accumulate_openai_stream(aiter_list(chunks)))

        assert [_text(r) for r in responses] == ["a", "ab", "abc"]


class TestResponseStream:
    @pytest.mark.asyncio
    async def test_early_exit_releases_transport(self):
        fake = FakeStream([text_chunk("a"), text_chunk("b"), text_chunk("c")])
        stream = ResponseStream(accumulate_openai_stream(fake), provider="openai", on_close=fake.close)

        async with stream:
            async for response in stream:
                assert _text(response) == "a"
                break

        assert fake.closed
        assert stream.closed

    @pytest.mark.asyncio
    async def test_close_before_iteration(self):
        fake = FakeStream([text_chunk("a")])
        stream = ResponseStream(accumulate_openai_stream(fake), provider="openai", on_close=fake.close)

        await stream.aclose()
        await stream.aclose()

        assert fake.closed
        assert await _collect(stream) == []

    @pytest.mark.asyncio
    async def test_exhaustion_releases_transport(self):
        fake = FakeStream([text_chunk("a")])
        stream = ResponseStream(accumulate_openai_stream(fake), provider="openai", on_close=fake.close)

        assert len(await _collect(stream)) == 1
        assert fake.closed

    @pytest.mark.asyncio
    async def test_transport_error_becomes_backend_error(self):
        fake = FakeStream([text_chunk("a")], error=httpx.ReadError("connection reset"))
        stream = ResponseStream(accumulate_openai_stream(fake), provider="openai", on_close=fake.close)

        first = await stream.__anext__()
        with pytest.raises(BackendError) as excinfo:
            await stream.__anext__()

        assert _text(first) == "a"
        assert excinfo.value.provider == "openai"
        assert isinstance(excinfo.value.__cause__, httpx.ReadError)
        assert fake.closed

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_backend_error(self):
        fake = FakeStream([], error=ValueError("bad payload"))
        stream = ResponseStream(accumulate_openai_stream(fake), provider="openai", on_close=fake.close)

        with pytest.raises(BackendError) as excinfo:
            await stream.__anext__()

        assert isinstance(excinfo.value.__cause__, ValueError)
        assert stream.closed
        assert fake.closed

    @pytest.mark.asyncio
    async def test_abandoned_stream_releases_transport(self):
        fake = FakeStream([text_chunk("a"), text_chunk("b")])
        stream = ResponseStream(accumulate_openai_stream(fake, on_close=fake.close), provider="openai")

        async for response in stream:
            break
        del stream, response
        gc.collect()
        for _ in range(3):
            await asyncio.sleep(0)

        assert fake.closed
