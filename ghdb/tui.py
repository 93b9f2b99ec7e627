"""
Textual TUI for `ghdb find`.
"""

from __future__ import annotations

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Header, Static

from .finder import KEY_HELP, SHORT_HELP, FinderState


DEFAULT_PAGE_ROWS = 10


def _legend(entries: list[tuple[str, str]]) -> Text:
    text = Text()
    for index, (keys, description) in enumerate(entries):
        if index:
            text.append(" • ", style="dim")
        text.append(keys, style="bold")
        text.append(f" {description}", style="dim")
    return text


class FinderApp(App):
    """Renders a FinderState and feeds it key events."""

    TITLE = "ghdb"

    CSS = """
    Screen {
      layout: vertical;
      padding: 1 2;
    }
    #title {
      height: 1;
    }
    #filter {
      height: 1;
      margin-bottom: 1;
    }
    #list {
      height: 1fr;
    }
    #status {
      height: 1;
      color: #3772FF;
    }
    #help {
      height: auto;
    }
    """

    def __init__(self, state: FinderState):
        super().__init__()
        self.state = state

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="title")
        yield Static("", id="filter")
        yield Static("", id="list")
        yield Static("", id="status")
        yield Static("", id="help")

    def on_mount(self) -> None:
        self._refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        self._refresh_view()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        self.state.handle_key(event.key, event.character)
        if self.state.done:
            self.exit()
            return
        self._refresh_view()

    def _page_rows(self) -> int:
        height = self.query_one("#list", Static).size.height
        if height <= 0:
            return DEFAULT_PAGE_ROWS
        # title + subtitle + blank line per item
        return max(1, height // 3)

    def _render_title(self) -> Text:
        state = self.state
        text = Text()
        text.append(f" {state.title} ", style="bold #FFFDF5 on #3772FF")
        text.append(f"  {len(state.visible)}/{len(state.items)} items", style="dim")
        return text

    def _render_filter(self) -> Text:
        state = self.state
        if state.filtering:
            return Text.assemble(("Filter: ", "bold"), state.query, ("█", "blink"))
        if state.query:
            return Text.assemble(("Filter: ", "dim"), state.query, ("  (esc to clear)", "dim"))
        return Text("")

    def _render_list(self) -> Text:
        state = self.state
        if not state.visible:
            return Text("No items.", style="dim")

        rows = self._page_rows()
        start = (state.selected // rows) * rows
        text = Text()
        for index, item in enumerate(state.visible[start:start + rows], start=start):
            selected = index == state.selected
            marker = "│ " if selected else "  "
            title_style = "bold #EE6FF8" if selected else ""
            subtitle_style = "#AD58B4" if selected else "dim"
            text.append(marker, style=title_style)
            text.append(item.title + "\n", style=title_style)
            text.append(marker, style=title_style)
            text.append(item.subtitle + "\n\n", style=subtitle_style)
        return text

    def _refresh_view(self) -> None:
        state = self.state
        self.sub_title = state.title
        self.query_one("#title", Static).update(self._render_title())
        self.query_one("#filter", Static).update(self._render_filter())
        self.query_one("#list", Static).update(self._render_list())
        self.query_one("#status", Static).update(Text(state.status))
        legend = KEY_HELP if state.show_help else SHORT_HELP + [("H", "more")]
        self.query_one("#help", Static).update(_legend(legend))


def run_finder(state: FinderState) -> None:
    """Run the interactive finder until the user quits."""
    FinderApp(state).run()
