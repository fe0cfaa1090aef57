"""Browser session: wires the browsing engine together.

Created: 2026-10-06

Usage:
    async with BeamdropClient("http://localhost:7777") as client:
        session = BrowserSession(client, SessionContext(show_hidden=True))
        await session.open()
        await session.go_to_child("docs")
        rows = session.visible_entries()
        await session.mutations.toggle_star(rows[0].path)

Flow:
- PathState change -> search term cleared, listing set to loading, fetch
  task scheduled (navigate() returns that task).
- Every new Listing -> server star flags adopted by the coordinator, then
  user subscribers notified.
- visible_entries() derives the display order from listing + ViewParams.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from beamdrop_browser.config import Settings
from beamdrop_browser.listing import ListingListener, ListingSync
from beamdrop_browser.models import (
    FileEntry,
    Listing,
    MutationResult,
    SortField,
    SortOrder,
    ViewParams,
)
from beamdrop_browser.mutations import Droppable, MutationCoordinator, ResultListener
from beamdrop_browser.paths import ROOT, PathState
from beamdrop_browser.protocol import FileBackendProtocol
from beamdrop_browser.search import Preview, SearchDispatch
from beamdrop_browser.view import SortFilterView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Explicit per-session UI settings (no ambient globals)."""

    show_hidden: bool = False
    initial_path: str = ROOT
    sort_field: SortField = SortField.NAME
    sort_order: SortOrder = SortOrder.ASC

    @classmethod
    def from_settings(cls, settings: Settings, initial_path: str = ROOT) -> SessionContext:
        return cls(
            show_hidden=settings.show_hidden_files,
            initial_path=initial_path,
            sort_field=SortField(settings.default_sort_field),
            sort_order=SortOrder(settings.default_sort_order),
        )


class BrowserSession:
    """One browsing session against a single backend."""

    def __init__(
        self,
        backend: FileBackendProtocol,
        context: SessionContext | None = None,
        *,
        preview: Preview | None = None,
        on_result: ResultListener | None = None,
    ):
        context = context or SessionContext()
        self.backend = backend
        self.path_state = PathState(context.initial_path)
        self.listing_sync = ListingSync(backend, self.path_state)
        self.view_params = ViewParams(
            sort_field=context.sort_field,
            sort_order=context.sort_order,
            show_hidden=context.show_hidden,
        )
        self.view = SortFilterView()
        self.mutations = MutationCoordinator(backend, self.listing_sync, on_result=on_result)
        self.search = SearchDispatch(backend, self.listing_sync, self.navigate, preview)
        self._preview = preview
        self._fetch_task: asyncio.Task[Listing] | None = None

        self.path_state.subscribe(self._on_path_changed)
        self.listing_sync.subscribe(self.mutations.sync_stars)

    # =========================================================================
    # Navigation
    # =========================================================================

    def _on_path_changed(self, old: str, new: str) -> None:
        # Search is scoped to a directory
        self.view_params = self.view_params.with_search("")
        self._fetch_task = self.listing_sync.schedule(new)

    def _scheduled_fetch(self) -> asyncio.Task[Listing]:
        if self._fetch_task is None:
            raise RuntimeError("Navigation did not schedule a listing fetch")
        return self._fetch_task

    @property
    def current_path(self) -> str:
        return self.path_state.current

    @property
    def listing(self) -> Listing:
        return self.listing_sync.listing

    def navigate(self, path: str) -> asyncio.Task[Listing]:
        """Go to *path*; returns the fetch task for the new listing."""
        self._fetch_task = None
        self.path_state.navigate(path)
        return self._scheduled_fetch()

    def go_to_child(self, name: str) -> asyncio.Task[Listing]:
        self._fetch_task = None
        self.path_state.go_to_child(name)
        return self._scheduled_fetch()

    def go_up(self) -> asyncio.Task[Listing] | None:
        """Go to the parent directory; None when already at the root."""
        if self.path_state.current == ROOT:
            return None
        self._fetch_task = None
        self.path_state.go_up()
        return self._scheduled_fetch()

    async def open(self) -> Listing:
        """Load the initial directory."""
        return await self.navigate(self.path_state.current)

    async def refresh(self) -> Listing:
        return await self.listing_sync.refresh()

    def open_entry(self, entry: FileEntry) -> Any:
        """Row click: navigate into directories, preview files."""
        if entry.isDir:
            return self.navigate(entry.path)
        if self._preview is not None:
            return self._preview(entry)
        return None

    def breadcrumbs(self) -> list[tuple[str, str]]:
        return self.path_state.breadcrumbs()

    def subscribe(self, listener: ListingListener) -> Callable[[], None]:
        """Get notified whenever the listing changes."""
        return self.listing_sync.subscribe(listener)

    # =========================================================================
    # View
    # =========================================================================

    def set_search_term(self, term: str) -> None:
        self.view_params = self.view_params.with_search(term)

    def clear_search(self) -> None:
        self.set_search_term("")

    def toggle_sort(self, sort_field: SortField | str) -> ViewParams:
        self.view_params = self.view_params.toggle_sort(sort_field)
        return self.view_params

    def set_sort(self, sort_field: SortField | str, sort_order: SortOrder | str) -> None:
        self.view_params = replace(
            self.view_params, sort_field=SortField(sort_field), sort_order=SortOrder(sort_order)
        )

    def set_show_hidden(self, show_hidden: bool) -> None:
        self.view_params = replace(self.view_params, show_hidden=show_hidden)

    def visible_entries(self) -> tuple[FileEntry, ...]:
        """Entries of the current listing in display order."""
        return self.view.derive(self.listing.entries, self.view_params)

    # =========================================================================
    # Mutation shortcuts
    # =========================================================================

    def download_url(self, entry: FileEntry) -> str:
        return self.backend.download_url(entry.path)

    def is_starred(self, entry: FileEntry) -> bool:
        return entry.path in self.mutations.starred

    def is_busy(self, entry: FileEntry) -> bool:
        return self.mutations.is_busy(entry.path)

    async def drop_files(self, files: list[Droppable]) -> MutationResult:
        """Upload files dropped onto the current directory."""
        return await self.mutations.upload_dropped(files, self.path_state.current)
