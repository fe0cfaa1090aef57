# Tests for BrowserSession wiring.
# Created: 2026-10-07

from unittest.mock import MagicMock

import pytest
from conftest import entry

from beamdrop_browser.config import Settings
from beamdrop_browser.models import ListingState, SortField, SortOrder
from beamdrop_browser.protocol import UploadItem
from beamdrop_browser.session import BrowserSession, SessionContext


def names(entries):
    return [e.name for e in entries]


class TestSessionContext:
    def test_defaults(self):
        context = SessionContext()
        assert context.show_hidden is False
        assert context.initial_path == "."

    def test_from_settings(self):
        settings = Settings(
            show_hidden_files=True, default_sort_field="size", default_sort_order="desc"
        )
        context = SessionContext.from_settings(settings, initial_path="docs")
        assert context.show_hidden is True
        assert context.initial_path == "docs"
        assert context.sort_field == SortField.SIZE
        assert context.sort_order == SortOrder.DESC


class TestNavigation:
    async def test_open_loads_initial_directory(self, backend):
        session = BrowserSession(backend)
        listing = await session.open()
        assert listing.state == ListingState.READY
        assert names(session.visible_entries()) == ["A", "docs", "b.txt"]

    async def test_navigate_sets_loading_immediately(self, backend):
        session = BrowserSession(backend)
        task = session.navigate("docs")
        assert session.listing.is_loading
        assert session.current_path == "docs"
        await task
        assert names(session.visible_entries()) == ["notes", "report.pdf"]

    async def test_go_to_child_and_up(self, backend):
        session = BrowserSession(backend)
        await session.open()
        await session.go_to_child("docs")
        await session.go_to_child("notes")
        assert session.current_path == "docs/notes"
        assert session.breadcrumbs()[-1] == ("notes", "docs/notes")

        await session.go_up()
        assert session.current_path == "docs"
        assert session.listing.path == "docs"

    async def test_go_up_at_root(self, backend):
        session = BrowserSession(backend)
        await session.open()
        assert session.go_up() is None
        assert backend.count("list") == 1

    async def test_rapid_navigation_last_wins(self, backend):
        gate = backend.hold("list", "docs")
        session = BrowserSession(backend)
        slow = session.navigate("docs")
        await session.navigate("A")
        gate.set()
        await slow
        assert session.current_path == "A"
        assert session.listing.path == "A"
        assert session.listing.entries == ()

    async def test_navigation_clears_search_term(self, backend):
        session = BrowserSession(backend)
        await session.open()
        session.set_search_term("txt")
        assert names(session.visible_entries()) == ["b.txt"]

        await session.navigate("docs")
        assert session.view_params.search_term == ""

    async def test_open_entry(self, backend):
        preview = MagicMock()
        session = BrowserSession(backend, preview=preview)
        await session.open()

        await session.open_entry(session.listing.find("docs"))
        assert session.current_path == "docs"

        report = session.listing.find("report.pdf")
        session.open_entry(report)
        preview.assert_called_once_with(report)

    async def test_each_navigation_returns_its_own_task(self, backend):
        session = BrowserSession(backend)
        first = session.navigate("docs")
        second = session.go_to_child("notes")
        assert first is not second
        await first
        assert (await second).path == "docs/notes"

    async def test_navigation_without_fetch_raises(self, backend):
        session = BrowserSession(backend)
        session.path_state._listeners.clear()
        with pytest.raises(RuntimeError):
            session.navigate("docs")

    async def test_subscribe(self, backend):
        session = BrowserSession(backend)
        seen = []
        session.subscribe(lambda listing: seen.append(listing.state))
        await session.open()
        assert seen == [ListingState.LOADING, ListingState.READY]


class TestView:
    async def test_hidden_files_from_context(self, backend):
        session = BrowserSession(backend, SessionContext(show_hidden=True))
        await session.open()
        assert ".env" in names(session.visible_entries())

    async def test_toggle_sort(self, backend):
        session = BrowserSession(backend)
        await session.open()
        params = session.toggle_sort("name")
        assert params.sort_order == SortOrder.DESC
        assert names(session.visible_entries()) == ["docs", "A", "b.txt"]

    async def test_visible_entries_stable_between_calls(self, backend):
        session = BrowserSession(backend)
        await session.open()
        assert session.visible_entries() is session.visible_entries()

    async def test_set_sort(self, backend):
        session = BrowserSession(backend)
        await session.open()
        session.set_sort("modTime", "desc")
        assert names(session.visible_entries()) == ["A", "docs", "b.txt"]


class TestMutations:
    async def test_drop_files_uploads_to_current_directory(self, backend):
        session = BrowserSession(backend)
        await session.navigate("docs")

        result = await session.drop_files([UploadItem("a.txt", b"a")])

        assert result.ok
        assert backend.uploads == [(["a.txt"], "docs")]
        assert session.listing.find("a.txt") is not None

    async def test_server_star_flags_adopted(self, backend):
        backend.tree["docs"].append(entry("fav.txt", isStarred=True))
        session = BrowserSession(backend)
        await session.navigate("docs")
        assert session.is_starred(session.listing.find("fav.txt"))
        assert not session.is_starred(session.listing.find("report.pdf"))

    async def test_results_reported(self, backend):
        on_result = MagicMock()
        session = BrowserSession(backend, on_result=on_result)
        await session.open()
        await session.mutations.toggle_star("b.txt")
        on_result.assert_called_once()
        assert on_result.call_args.args[0].ok

    async def test_download_url(self, backend):
        session = BrowserSession(backend)
        await session.navigate("docs")
        report = session.listing.find("report.pdf")
        assert session.download_url(report) == "memory://download/docs/report.pdf"
