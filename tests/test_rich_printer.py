import pytest
from google.genai import types
from rich.console import Console

from genbridge import rich_printer
from genbridge.rich_printer import RichPrinter, RichStreamPrinter, response_function_calls, response_text
from helpers import aiter_list


def _response(*parts, usage=None):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))],
        usage_metadata=usage,
    )


@pytest.fixture
def recording_console(monkeypatch):
    console = Console(record=True, width=80, force_terminal=False)
    monkeypatch.setattr(rich_printer, "console", console)
    return console


class TestResponseHelpers:
    def test_text_skips_function_calls(self):
        response = _response(
            types.Part(text="Hello"),
            types.Part(function_call=types.FunctionCall(id="call_1", name="lookup", args={})),
        )

        assert response_text(response) == "Hello"
        assert [c.name for c in response_function_calls(response)] == ["lookup"]

    def test_empty_response(self):
        assert response_text(None) == ""
        assert response_text(types.GenerateContentResponse()) == ""
        assert response_function_calls(types.GenerateContentResponse()) == []


class TestRichPrinter:
    def test_print_response(self, recording_console):
        usage = types.GenerateContentResponseUsageMetadata(total_token_count=9)
        response = _response(types.Part(text="Paris"), usage=usage)

        assert RichPrinter(provider="openai").print_response(response) is response

        output = recording_console.export_text()
        assert "Paris" in output
        assert "openai" in output
        assert "total_token_count" in output


class TestRichStreamPrinter:
    @pytest.mark.asyncio
    async def test_keeps_latest_snapshot(self, recording_console):
        responses = [_response(types.Part(text="He")), _response(types.Part(text="Hello"))]
        printer = RichStreamPrinter(show_metadata=False)

        last = await printer.print_stream(aiter_list(responses))

        assert last is responses[-1]
        assert printer.get_full_text() == "Hello"
