"""propfile TUI Widgets - Panels for the properties viewer."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Label, ListItem, ListView, Static


class SummaryPanel(Static):
    """Sidebar panel showing file details and the content checksum."""

    DEFAULT_CSS = """
    SummaryPanel {
        width: 32;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    SummaryPanel .summary-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    SummaryPanel .summary-key {
        color: $text-muted;
    }
    SummaryPanel .summary-val {
        color: $text;
    }
    """

    def __init__(self, summary: dict[str, str], **kwargs) -> None:
        super().__init__(**kwargs)
        self._summary = summary

    def compose(self) -> ComposeResult:
        yield Label("Properties", classes="summary-title")
        for key, val in self._summary.items():
            display = val if len(val) <= 24 else val[:21] + "..."
            yield Label(f"{key}:", classes="summary-key")
            yield Label(f"  {display}", classes="summary-val")


class KeyList(ListView):
    """List of keys. Supports keyboard navigation."""

    DEFAULT_CSS = """
    KeyList {
        width: 40;
        border: solid $accent;
    }
    KeyList > ListItem {
        padding: 0 1;
    }
    KeyList > ListItem.--highlight {
        background: $accent;
    }
    """

    class KeySelected(Message):
        """Fired when a key is highlighted or selected."""

        def __init__(self, key: str, index: int) -> None:
            self.key = key
            self.index = index
            super().__init__()

    def __init__(self, keys: list[str], **kwargs) -> None:
        self._keys = keys
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for key in self._keys:
            # markup=False: keys may contain '[' which Textual would parse
            yield ListItem(Label(key, markup=False))

    def set_keys(self, keys: list[str]) -> None:
        """Replace the listed keys."""
        self._keys = keys
        self.clear()
        self.extend(ListItem(Label(key, markup=False)) for key in keys)

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._keys):
            self.post_message(self.KeySelected(self._keys[idx], idx))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class ValuePanel(Static):
    """Shows the selected key and its value, with control characters made visible."""

    DEFAULT_CSS = """
    ValuePanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    ValuePanel .value-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    ValuePanel .value-body {
        color: $text;
    }
    ValuePanel .value-escaped {
        color: $text-muted;
        margin-top: 1;
    }
    """

    current_key = reactive("")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None
        self._escaped_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a key", classes="value-title", markup=False)
        self._body_widget = Static("", classes="value-body", markup=False)
        self._escaped_widget = Static("", classes="value-escaped", markup=False)
        yield self._title_widget
        yield self._body_widget
        yield self._escaped_widget

    def show_value(self, key: str, value: str) -> None:
        """Display a value and the form it takes on disk."""
        from propfile.spec import escape_key, escape_value

        self.current_key = key
        if self._title_widget:
            self._title_widget.update(f"--- {key} ---")
        if self._body_widget:
            self._body_widget.update(value)
        if self._escaped_widget:
            self._escaped_widget.update(f"{escape_key(key)}={escape_value(value)}")
        self.scroll_home()
