# Listing synchronization: fetches and replaces the authoritative listing.
# Created: 2026-10-04
#
# The listing is replaced wholesale on every transition. A response is only
# applied if its path is still the PathState target AND no newer fetch was
# issued since; anything else is dropped (last navigate wins, regardless of
# arrival order). In-flight requests are never cancelled.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from beamdrop_browser.errors import BrowserError, StaleResponse
from beamdrop_browser.models import Listing, ListingState
from beamdrop_browser.paths import PathState, join, normalize
from beamdrop_browser.protocol import FileBackendProtocol

logger = logging.getLogger(__name__)

ListingListener = Callable[[Listing], None]

# Generation handed out for paths that are not the current target
_SKIPPED = -1


class ListingSync:
    """Owns the Listing for the current path."""

    def __init__(self, backend: FileBackendProtocol, path_state: PathState):
        self._backend = backend
        self._path_state = path_state
        self._listing = Listing(path=path_state.current)
        self._generation = 0
        self._listeners: list[ListingListener] = []

    @property
    def listing(self) -> Listing:
        return self._listing

    def subscribe(self, listener: ListingListener) -> Callable[[], None]:
        """Call *listener* with every new Listing; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _replace(self, listing: Listing) -> None:
        self._listing = listing
        for listener in list(self._listeners):
            listener(listing)

    def _ensure_fresh(self, path: str, generation: int) -> None:
        if generation != self._generation or path != self._path_state.current:
            raise StaleResponse(f"Listing for {path} superseded by {self._path_state.current}")

    def begin(self, path: str) -> int:
        """Mark the listing as loading for *path* and return the fetch generation.

        A reload of the same path keeps the old entries visible while loading;
        a different path starts empty. A path other than the PathState target
        leaves the listing alone and gets a generation ``complete()`` skips.
        """
        path = normalize(path)
        if path != self._path_state.current:
            logger.debug("Not fetching %s: current path is %s", path, self._path_state.current)
            return _SKIPPED
        self._generation += 1
        entries = self._listing.entries if self._listing.path == path else ()
        self._replace(Listing(path=path, state=ListingState.LOADING, entries=entries))
        return self._generation

    async def complete(self, path: str, generation: int) -> Listing:
        """Run the request started by ``begin()`` and apply it unless stale."""
        path = normalize(path)
        if generation == _SKIPPED:
            return self._listing
        try:
            try:
                entries = await self._backend.list_files(path)
            except BrowserError as e:
                self._ensure_fresh(path, generation)
                logger.warning("Failed to list %s: %s", path, e)
                self._replace(Listing(path=path, state=ListingState.ERROR, error=str(e)))
                return self._listing
            self._ensure_fresh(path, generation)
        except StaleResponse as e:
            logger.debug("Dropping response: %s", e)
            return self._listing

        # Paths are always derived from the requested parent
        fresh = tuple(e.model_copy(update={"path": join(path, e.name)}) for e in entries)
        self._replace(Listing(path=path, state=ListingState.READY, entries=fresh))
        logger.debug("Listed %s: %d entries", path, len(fresh))
        return self._listing

    async def fetch(self, path: str) -> Listing:
        """Fetch *path* and apply the result unless superseded."""
        generation = self.begin(path)
        return await self.complete(path, generation)

    def schedule(self, path: str) -> asyncio.Task[Listing]:
        """Start a fetch for *path* now; the loading state is applied before returning."""
        generation = self.begin(path)
        return asyncio.create_task(self.complete(path, generation))

    async def refresh(self) -> Listing:
        """Re-fetch the current path."""
        return await self.fetch(self._path_state.current)
