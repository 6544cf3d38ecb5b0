"""propfile TUI Viewer - Textual app with a key list and value panel."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from propfile.errors import ParseError
from propfile.properties import Properties
from propfile.security import checksum
from propfile.spec import DEFAULT_ENCODING
from propfile.tui.widgets import KeyList, SummaryPanel, ValuePanel


def filter_keys(props: Properties, query: str, search_values: bool = False) -> list[str]:
    """Keys containing `query` (case-insensitive), optionally matching values too."""
    query = query.lower().strip()
    if not query:
        return list(props)
    return [
        key for key, val in props.items()
        if query in key.lower() or (search_values and query in val.lower())
    ]


class PropertiesViewerApp(App):
    """TUI viewer for .properties files. 3-panel layout with keyboard navigation."""

    TITLE = "propfile viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Search", show=True),
        Binding("escape", "close_search", "Close search", show=False),
        Binding("j", "next_key", "Next", show=True),
        Binding("k", "prev_key", "Prev", show=True),
    ]

    def __init__(self, props: Properties, path: str | Path, encoding: str | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._props = props
        self._path = Path(path)
        self._encoding = encoding or DEFAULT_ENCODING
        self._all_keys: list[str] = list(props)

    def compose(self) -> ComposeResult:
        self.title = f"propfile viewer - {self._path.name}"

        yield Header()

        with Horizontal(id="main-area"):
            yield SummaryPanel(
                summary={
                    "file": self._path.name,
                    "encoding": self._encoding,
                    "properties": str(len(self._props)),
                    "checksum": checksum(self._props)[:16] + "...",
                },
                id="summary",
            )
            yield KeyList(keys=self._all_keys, id="keys")
            yield ValuePanel(id="value")

        yield Input(placeholder="Search keys... (Enter searches values too, Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Auto-select the first key on mount."""
        if self._all_keys:
            self._show(self._all_keys[0])
            self.query_one("#keys", KeyList).focus()

    def _show(self, key: str) -> None:
        self.query_one("#value", ValuePanel).show_value(key, self._props[key])

    def on_key_list_key_selected(self, event: KeyList.KeySelected) -> None:
        self._show(event.key)

    def action_next_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_down()

    def action_prev_key(self) -> None:
        self.query_one("#keys", KeyList).action_cursor_up()

    def action_toggle_search(self) -> None:
        """Show/hide the search bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._update_key_list(self._all_keys)
        self.query_one("#keys", KeyList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter keys as the user types."""
        if event.input.id != "search-bar":
            return
        self._update_key_list(filter_keys(self._props, event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Search keys and values on Enter."""
        if event.input.id != "search-bar":
            return
        self._update_key_list(filter_keys(self._props, event.value, search_values=True))

    def _update_key_list(self, keys: list[str]) -> None:
        """Replace the key list with `keys`."""
        self.query_one("#keys", KeyList).set_keys(keys)
        if keys:
            self._show(keys[0])


def run_viewer(path: str | Path, encoding: str | None = None) -> None:
    """Launch the TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        props = Properties.read(path, encoding=encoding)
    except (ParseError, UnicodeError) as e:
        print(f"Error: {path}: {e}", file=sys.stderr)
        sys.exit(1)

    app = PropertiesViewerApp(props, path, encoding)
    app.run()
