"""Sorted and filtered view of a listing.

Created: 2026-10-04

derive() is pure: hidden-file filter, case-insensitive substring filter,
directories first, then the chosen sort field and order. Python's sort is
stable in both directions, so entries with equal keys keep arrival order
even when descending.
"""

from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Any

from beamdrop_browser.models import FileEntry, SortField, SortOrder, ViewParams

_UNITS = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
    "PB": 1024**5,
    "EB": 1024**6,
}

_SIZE_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([A-Za-z]*)\s*$")


def parse_size(size: str | None) -> float:
    """Convert a unit-tagged size ("1.5 KB", "500") to bytes.

    Anything unparsable counts as 0.
    """
    if not size:
        return 0.0
    match = _SIZE_RE.match(size)
    if not match:
        return 0.0
    number, unit = match.groups()
    multiplier = _UNITS.get(unit.upper())
    if multiplier is None:
        return 0.0
    return float(number) * multiplier


def parse_mod_time(value: str | None) -> float:
    """Parse a timestamp to epoch seconds; unparsable values give -inf.

    Accepts RFC 3339 and the server's "YYYY-MM-DD HH:MM:SS" format. Naive
    times are taken as UTC.
    """
    if not value:
        return -math.inf
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return -math.inf
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def collation_key(name: str) -> tuple[str, str]:
    """Sort key approximating locale collation.

    Primary: accents stripped, case folded. Tie-break puts lowercase first.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), name.swapcase()


def _size_key(entry: FileEntry) -> float:
    # Directories carry no meaningful size
    return 0.0 if entry.isDir else parse_size(entry.size)


_SORT_KEYS: dict[SortField, Callable[[FileEntry], Any]] = {
    SortField.NAME: lambda e: collation_key(e.name),
    SortField.SIZE: _size_key,
    SortField.MOD_TIME: lambda e: parse_mod_time(e.modTime),
}


def matches(entry: FileEntry, term: str) -> bool:
    """Case-insensitive substring match on the entry name."""
    return term.casefold() in entry.name.casefold()


def derive(entries: Iterable[FileEntry], params: ViewParams) -> tuple[FileEntry, ...]:
    """Return *entries* filtered and ordered for display."""
    visible: Sequence[FileEntry] = list(entries)
    if not params.show_hidden:
        visible = [e for e in visible if not e.name.startswith(".")]
    if params.search_term:
        visible = [e for e in visible if matches(e, params.search_term)]

    key = _SORT_KEYS[SortField(params.sort_field)]
    descending = SortOrder(params.sort_order) == SortOrder.DESC

    dirs = sorted((e for e in visible if e.isDir), key=key, reverse=descending)
    files = sorted((e for e in visible if not e.isDir), key=key, reverse=descending)
    return tuple(dirs + files)


class SortFilterView:
    """Memoizing wrapper around derive().

    Returns the very same tuple while the entries object and params are
    unchanged, so callers can skip re-rendering by identity.
    """

    def __init__(self) -> None:
        self._last_entries: tuple[FileEntry, ...] | None = None
        self._last_params: ViewParams | None = None
        self._last_result: tuple[FileEntry, ...] = ()

    def derive(self, entries: tuple[FileEntry, ...], params: ViewParams) -> tuple[FileEntry, ...]:
        if entries is self._last_entries and params == self._last_params:
            return self._last_result
        self._last_result = derive(entries, params)
        self._last_entries = entries
        self._last_params = params
        return self._last_result
