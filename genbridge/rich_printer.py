"""
Rich printers for displaying canonical responses in the terminal.
"""
import json
from typing import Any, AsyncIterator, List, Optional

from google.genai import types
from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

console = Console()


def response_text(response: Optional[types.GenerateContentResponse]) -> str:
    """
    Text of the first candidate, ignoring non-text parts.
    """
    if response is None or not response.candidates:
        return ""
    content = response.candidates[0].content
    if content is None:
        return ""
    return "".join(part.text for part in content.parts or [] if part.text)


def response_function_calls(response: Optional[types.GenerateContentResponse]) -> List[types.FunctionCall]:
    if response is None or not response.candidates or response.candidates[0].content is None:
        return []
    return [part.function_call for part in response.candidates[0].content.parts or [] if part.function_call]


def _metadata_panel(response: types.GenerateContentResponse) -> Optional[Panel]:
    meta = {}
    if response.usage_metadata is not None:
        meta["usage"] = response.usage_metadata.model_dump(mode="json", exclude_none=True)
    calls = response_function_calls(response)
    if calls:
        meta["function_calls"] = [call.model_dump(mode="json", exclude_none=True) for call in calls]
    if not meta:
        return None
    metadata_display = Syntax(
        json.dumps(meta, indent=2, default=str),
        "json",
        theme="lightbulb",
        background_color="default",
    )
    return Panel(metadata_display, title="[bold]Metadata[/bold]", border_style="dim")


class RichStreamPrinter:
    """
    Live display of a streaming response.

    Every partial response carries the full text so far, so the panel is
    replaced on each update rather than appended to.

    Attributes:
        title: Title for the display panel
        show_metadata: Whether to show usage and function calls at the end
        code_theme: Theme for code blocks
        refresh_rate: Refresh rate for Live display
        provider: Provider name shown in the title
        border_style: Border style while streaming
    """

    def __init__(
        self,
        title: str = "Streaming Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        refresh_rate: int = 30,
        provider: Optional[str] = None,
        border_style: str = "blue",
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.refresh_rate = refresh_rate
        self.provider = provider
        self.border_style = border_style
        self._last: Optional[types.GenerateContentResponse] = None

    async def print_stream(
        self,
        responses: AsyncIterator[types.GenerateContentResponse],
    ) -> Optional[types.GenerateContentResponse]:
        """
        Render partial responses as they arrive.

        Args:
            responses: The stream returned by ``generate_content_stream``.

        Returns:
            The last response received, or None for an empty stream.
        """
        self._last = None
        with Live(Panel("", border_style=self.border_style), refresh_per_second=self.refresh_rate, console=console) as live:
            async for response in responses:
                self._last = response
                live.update(self._build_panel(is_final=False))
            live.update(self._build_panel(is_final=True))
        return self._last

    def _build_panel(self, is_final: bool) -> Panel:
        title = f"[bold]{'Final Response' if is_final else self.title}[/bold]"
        if self.provider:
            title += f" [dim]({self.provider})[/dim]"

        text = response_text(self._last)
        if text.strip():
            content: Any = Markdown(text, code_theme=self.code_theme)
        else:
            content = Text("(waiting for response...)", style="dim italic")

        if is_final and self.show_metadata and self._last is not None:
            metadata = _metadata_panel(self._last)
            if metadata is not None:
                content = Group(content, metadata)

        return Panel(
            content,
            title=title,
            border_style="green" if is_final else self.border_style,
            padding=(1, 2),
        )

    def get_full_text(self) -> str:
        return response_text(self._last)


class RichPrinter:
    """
    Display a complete (non-streaming) response in a panel.
    """

    def __init__(
        self,
        title: str = "Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        provider: Optional[str] = None,
        border_style: str = "green",
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.provider = provider
        self.border_style = border_style

    def print_response(self, response: types.GenerateContentResponse) -> types.GenerateContentResponse:
        """
        Print the response and return it for chaining.
        """
        title = f"[bold]{self.title}[/bold]"
        if self.provider:
            title += f" [dim]({self.provider})[/dim]"

        text = response_text(response)
        content: Any
        if text.strip():
            content = Markdown(text, code_theme=self.code_theme)
        else:
            content = Text("(empty response)", style="dim italic")
        if self.show_metadata:
            metadata = _metadata_panel(response)
            if metadata is not None:
                content = Group(content, metadata)

        console.print(Panel(content, title=title, border_style=self.border_style, padding=(1, 2)))
        return response
