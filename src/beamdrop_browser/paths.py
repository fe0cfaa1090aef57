# Logical paths and the current-location state.
# Created: 2026-10-03
#
# Logical paths are slash-separated and relative to the server's shared
# directory; "." is the root. They never contain "." or ".." segments.

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

ROOT = "."

PathListener = Callable[[str, str], None]


def normalize(path: str | None) -> str:
    """Normalize *path* to its logical form.

    Backslashes count as separators, empty and "." segments are dropped and
    ".." pops the previous segment (clamped at the root).
    """
    if not path:
        return ROOT
    segments: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if segments:
                segments.pop()
            continue
        segments.append(part)
    return "/".join(segments) if segments else ROOT


def join(parent: str, name: str) -> str:
    """Join a child name onto a normalized parent path."""
    return name if parent == ROOT else f"{parent}/{name}"


def parent(path: str) -> str:
    """Return the parent of *path*; the root is its own parent."""
    path = normalize(path)
    if path == ROOT or "/" not in path:
        return ROOT
    return path.rsplit("/", 1)[0]


def basename(path: str) -> str:
    path = normalize(path)
    return "" if path == ROOT else path.rsplit("/", 1)[-1]


def is_root(path: str | None) -> bool:
    return normalize(path) == ROOT


def breadcrumbs(path: str) -> list[tuple[str, str]]:
    """List ``(label, path)`` pairs from the root down to *path*."""
    crumbs = [("Home", ROOT)]
    current = ROOT
    for part in normalize(path).split("/"):
        if part == ROOT:
            break
        current = join(current, part)
        crumbs.append((part, current))
    return crumbs


class PathState:
    """Current logical location and its navigation transitions.

    Performs no existence checks; a bad path only shows up when the listing
    fetch for it fails. Subscribers receive ``(old, new)`` after every
    navigate, including navigation to the path already current (that is how
    a re-navigate forces a reload).
    """

    def __init__(self, initial: str = ROOT) -> None:
        self._current = normalize(initial)
        self._listeners: list[PathListener] = []

    @property
    def current(self) -> str:
        return self._current

    def subscribe(self, listener: PathListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, path: str) -> str:
        old = self._current
        self._current = normalize(path)
        logger.debug("Navigate %s -> %s", old, self._current)
        for listener in list(self._listeners):
            listener(old, self._current)
        return self._current

    def go_to_child(self, name: str) -> str:
        return self.navigate(join(self._current, name))

    def go_up(self) -> str:
        if self._current == ROOT:
            return self._current
        return self.navigate(parent(self._current))

    def breadcrumbs(self) -> list[tuple[str, str]]:
        return breadcrumbs(self._current)
