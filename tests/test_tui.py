"""
TUI Tests - Key filtering and the viewer app (requires textual).
"""

import asyncio

import pytest

from propfile import Properties

pytest.importorskip("textual")

from propfile.tui.viewer import PropertiesViewerApp, filter_keys  # noqa: E402
from propfile.tui.widgets import KeyList, ValuePanel  # noqa: E402
from textual.widgets import ListItem  # noqa: E402


@pytest.fixture
def props():
    return Properties({
        "db.host": "localhost",
        "db.port": "5432",
        "app.title": "Database Console",
        "[markup]": "brackets [b]kept[/b]",
    })


class TestFilterKeys:

    def test_empty_query(self, props):
        assert filter_keys(props, "") == list(props)
        assert filter_keys(props, "   ") == list(props)

    def test_key_match(self, props):
        assert filter_keys(props, "db.") == ["db.host", "db.port"]

    def test_case_insensitive(self, props):
        assert filter_keys(props, "APP") == ["app.title"]

    def test_values_only_when_asked(self, props):
        assert filter_keys(props, "database") == []
        assert filter_keys(props, "database", search_values=True) == ["app.title"]

    def test_no_match(self, props):
        assert filter_keys(props, "zzz", search_values=True) == []


class TestViewerApp:

    def test_first_key_shown(self, props, tmp_path):
        async def scenario():
            app = PropertiesViewerApp(props, tmp_path / "app.properties")
            async with app.run_test() as pilot:
                await pilot.pause()
                assert app.query_one("#value", ValuePanel).current_key == "db.host"

        asyncio.run(scenario())

    def test_next_key(self, props, tmp_path):
        async def scenario():
            app = PropertiesViewerApp(props, tmp_path / "app.properties")
            async with app.run_test() as pilot:
                await pilot.pause()
                await pilot.press("j")
                await pilot.pause()
                assert app.query_one("#value", ValuePanel).current_key == "db.port"

        asyncio.run(scenario())

    def test_empty_file(self, tmp_path):
        async def scenario():
            app = PropertiesViewerApp(Properties(), tmp_path / "empty.properties")
            async with app.run_test() as pilot:
                await pilot.pause()
                assert app.query_one("#value", ValuePanel).current_key == ""
                assert len(app.query_one("#keys", KeyList).query(ListItem)) == 0

        asyncio.run(scenario())
