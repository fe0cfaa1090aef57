# Search dispatch: local filtering or server-side recursive search.
# Created: 2026-10-05
#
# Both routes return the same SearchResponse shape. Search never touches the
# listing or the current path; only select() feeds back into navigation
# (directories) or the preview collaborator (files).

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from beamdrop_browser.errors import EmptyQuery
from beamdrop_browser.listing import ListingSync
from beamdrop_browser.models import FileEntry, SearchResponse
from beamdrop_browser.paths import is_root, join, normalize
from beamdrop_browser.protocol import FileBackendProtocol
from beamdrop_browser.view import matches

logger = logging.getLogger(__name__)

Navigate = Callable[[str], Any]
Preview = Callable[[FileEntry], Any]


def _normalize_result(entry: FileEntry, scope: str | None) -> FileEntry:
    path = normalize(entry.path) if entry.path else join(scope or ".", entry.name)
    return entry if path == entry.path else entry.model_copy(update={"path": path})


class SearchDispatch:
    """Routes search queries and handles result selection."""

    def __init__(
        self,
        backend: FileBackendProtocol,
        listing_sync: ListingSync,
        navigate: Navigate,
        preview: Preview | None = None,
    ):
        self._backend = backend
        self._listing_sync = listing_sync
        self._navigate = navigate
        self._preview = preview
        self.last_query: str | None = None
        self.last_response: SearchResponse | None = None

    @staticmethod
    def _check_term(term: str) -> str:
        term = (term or "").strip()
        if not term:
            raise EmptyQuery("Please enter a search query")
        return term

    def _remember(self, term: str, response: SearchResponse) -> SearchResponse:
        self.last_query = term
        self.last_response = response
        return response

    async def search(self, term: str, scope_path: str | None = None) -> SearchResponse:
        """Recursive server-side search.

        Args:
            term: Name fragment to look for (case-insensitive on the server).
            scope_path: Subtree to search. None, "" or "." search everything.

        Raises:
            EmptyQuery: blank term, no request is made.
            BrowserError: network or server failure.
        """
        term = self._check_term(term)
        scope = None if is_root(scope_path) else normalize(scope_path)

        response = await self._backend.search(term, scope)
        results = [_normalize_result(e, scope) for e in response.results]
        logger.info(
            "Search %r in %s: %d result(s)", term, scope or "everything", len(results)
        )
        return self._remember(
            term,
            SearchResponse(query=term, path=scope or "", count=len(results), results=results),
        )

    def search_local(self, term: str) -> SearchResponse:
        """Filter the current listing by name, without a request."""
        term = self._check_term(term)
        listing = self._listing_sync.listing
        results = [e for e in listing.entries if matches(e, term)]
        return self._remember(
            term,
            SearchResponse(query=term, path=listing.path, count=len(results), results=results),
        )

    def select(self, result: FileEntry) -> Any:
        """Open a result: navigate into directories, preview files.

        Returns whatever the navigate callback returns (the fetch task) for
        directories, the preview callback's return value for files.
        """
        self.close()
        if result.isDir:
            return self._navigate(result.path)
        if self._preview is None:
            logger.debug("No preview handler for %s", result.path)
            return None
        return self._preview(result)

    def close(self) -> None:
        """Forget the last query and results."""
        self.last_query = None
        self.last_response = None
