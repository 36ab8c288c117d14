"""
Console rendering of gateway results and streams using rich.
"""
import json
from typing import Dict, Any, AsyncIterator, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from .types import GenerationResult, ToolCall

console = Console()


def _json_panel(title: str, data: Any) -> Panel:
    return Panel(
        Syntax(json.dumps(data, indent=2, default=str), "json", theme="lightbulb", background_color="default"),
        title=f"[bold]{title}[/bold]",
        border_style="dim",
    )


class RichStreamPrinter:
    """
    Live display for events produced by `LocalInferenceClient.astream`.

    Attributes:
        title: Title for the display panel
        show_metadata: Whether to show metadata at the end
        code_theme: Theme for code blocks
        refresh_rate: Refresh rate for Live display
        border_style: Border style while streaming
    """

    def __init__(
        self,
        title: str = "Streaming Response",
        show_metadata: bool = True,
        code_theme: str = "coffee",
        refresh_rate: int = 30,
        border_style: str = "blue",
        console: Console = console,
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.code_theme = code_theme
        self.refresh_rate = refresh_rate
        self.border_style = border_style
        self.console = console
        self._full_text = ""
        self._final_event: Optional[Dict[str, Any]] = None
        self._provider: Optional[str] = None

    async def print_stream(self, event_stream: AsyncIterator[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Render events as they arrive and return the final 'done' event.
        """
        self._full_text = ""
        self._final_event = None
        self._provider = None

        with Live(Panel("", border_style=self.border_style), refresh_per_second=self.refresh_rate, console=self.console) as live:
            async for event in event_stream:
                self._process_event(event, live)

        return self._final_event or {}

    def _process_event(self, event: Dict[str, Any], live: Live) -> None:
        if self._provider is None:
            self._provider = event.get("provider")

        if event["type"] == "token":
            self._full_text += event.get("text", "")
            self._update_display(live, is_final=False)
        elif event["type"] == "done":
            self._final_event = event
            # Raw tokens may include a reasoning trace; the final panel shows the reply only
            self._full_text = event.get("text", self._full_text)
            self._update_display(live, is_final=True)

    def _update_display(self, live: Live, is_final: bool = False) -> None:
        title = "[bold]Final Response[/bold]" if is_final else f"[bold]{self.title}[/bold]"
        if self._provider:
            title += f" [dim]({self._provider})[/dim]"

        live.update(
            Panel(
                self._build_content(is_final),
                title=title,
                border_style="green" if is_final else self.border_style,
                padding=(1, 2),
            )
        )

    def _build_content(self, is_final: bool) -> Any:
        if not self._full_text.strip():
            return Text("(waiting for response...)", style="dim italic")

        markdown = Markdown(self._full_text, code_theme=self.code_theme)
        if is_final and self.show_metadata and self._final_event and self._final_event.get("meta"):
            return Group(markdown, _json_panel("Metadata", self._final_event["meta"]))
        return markdown

    def get_full_text(self) -> str:
        return self._full_text

    def get_final_event(self) -> Optional[Dict[str, Any]]:
        return self._final_event


class RichPrinter:
    """
    Panel display for a `GenerationResult`.

    Shows the visible reply as Markdown, and optionally the reasoning trace,
    tool calls and metadata. Failed results are shown in red with the error.
    """

    def __init__(
        self,
        title: str = "Response",
        show_metadata: bool = True,
        show_thoughts: bool = False,
        code_theme: str = "coffee",
        border_style: str = "green",
        console: Console = console,
    ):
        self.title = title
        self.show_metadata = show_metadata
        self.show_thoughts = show_thoughts
        self.code_theme = code_theme
        self.border_style = border_style
        self.console = console
        self._result: Optional[GenerationResult] = None

    def print_result(self, result: GenerationResult) -> GenerationResult:
        """
        Print a result and return it unchanged for chaining.
        """
        self._result = result

        failed = result["status"] == "failed"
        title = f"[bold]{self.title}[/bold] [dim]({result['provider']}:{result['model']})[/dim]"

        self.console.print(
            Panel(
                self._build_content(result),
                title=title,
                border_style="red" if failed else self.border_style,
                padding=(1, 2),
            )
        )
        return result

    def _build_content(self, result: GenerationResult) -> Any:
        parts: List[Any] = []

        if result["status"] == "failed":
            parts.append(Text(result["error"]["message"] if result["error"] else result["reply"], style="bold red"))
        elif result["reply"].strip():
            parts.append(Markdown(result["reply"], code_theme=self.code_theme))
        else:
            parts.append(Text("(empty response)", style="dim italic"))

        if self.show_thoughts and result["thoughts"]:
            parts.append(Panel(Text(result["thoughts"].strip(), style="italic"), title="[bold]Thoughts[/bold]", border_style="dim"))

        tool_calls: List[ToolCall] = result["message"]["tool_calls"]
        if tool_calls:
            parts.append(_json_panel("Tool Calls", tool_calls))

        if self.show_metadata:
            parts.append(_json_panel("Metadata", result["meta"]))

        return Group(*parts)

    def get_result(self) -> Optional[GenerationResult]:
        return self._result
