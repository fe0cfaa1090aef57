"""Data types for the beamdrop browser.

Created: 2026-10-02

Two families live here:
- Wire models (pydantic) validated at the HTTP boundary: FileEntry,
  SearchResponse, ServerStats. Field names follow the server's JSON keys.
- Engine values (dataclasses/enums): Listing, ViewParams and the enums that
  drive listing state, sorting and pending operations.

Design notes:
- Listing and ViewParams are frozen; every transition builds a new value so
  subscribers can compare by identity.
- Listing entries are tuples in arrival order; ordering for display is the
  job of view.derive().
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ============================================================================
# Wire models
# ============================================================================


class FileEntry(BaseModel):
    """A single file or directory entry."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    isDir: bool = False
    size: str = ""
    modTime: str = ""
    path: str = ""
    isStarred: bool | None = None


class SearchResponse(BaseModel):
    """Result of a recursive (server) or local search."""

    model_config = ConfigDict(extra="ignore")

    query: str = ""
    path: str = ""
    count: int | None = None
    results: list[FileEntry] = []

    @field_validator("results", mode="before")
    @classmethod
    def _null_results(cls, value: Any) -> Any:
        # An empty result set is encoded as null by the server
        return [] if value is None else value

    @model_validator(mode="after")
    def _fill_count(self) -> SearchResponse:
        if self.count is None:
            self.count = len(self.results)
        return self


class ServerStats(BaseModel):
    """Transfer counters reported by GET /stats."""

    model_config = ConfigDict(extra="allow")

    downloads: int = 0
    uploads: int = 0
    requests: int = 0
    startTime: str | None = None


# ============================================================================
# Enums
# ============================================================================


class ListingState(str, Enum):
    """Freshness of a listing."""

    IDLE = "idle"  # Nothing requested yet
    LOADING = "loading"  # Fetch in flight
    READY = "ready"  # Entries are current
    ERROR = "error"  # Last fetch failed


class SortField(str, Enum):
    NAME = "name"
    SIZE = "size"
    MOD_TIME = "modTime"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class OpKind(str, Enum):
    """Kinds of in-flight mutations tracked per path."""

    DELETE = "delete"
    STAR = "star"
    UNSTAR = "unstar"
    UPLOAD = "upload"
    RENAME = "rename"
    MKDIR = "mkdir"
    WRITE = "write"
    MOVE = "move"
    COPY = "copy"


class MutationStatus(str, Enum):
    DONE = "done"
    FAILED = "failed"
    BLOCKED = "blocked"  # Another operation on the same path was in flight


# ============================================================================
# Engine values
# ============================================================================


@dataclass(frozen=True)
class Listing:
    """The authoritative set of entries for one path."""

    path: str = "."
    state: ListingState = ListingState.IDLE
    entries: tuple[FileEntry, ...] = ()
    error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.state == ListingState.LOADING

    @property
    def is_ready(self) -> bool:
        return self.state == ListingState.READY

    def find(self, name: str) -> FileEntry | None:
        """Return the entry called *name*, if present."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


@dataclass(frozen=True)
class ViewParams:
    """UI-local sort and filter parameters."""

    sort_field: SortField = SortField.NAME
    sort_order: SortOrder = SortOrder.ASC
    search_term: str = ""
    show_hidden: bool = False

    def toggle_sort(self, sort_field: SortField | str) -> ViewParams:
        """Column-header behaviour: same field flips order, new field sorts ascending."""
        sort_field = SortField(sort_field)
        if sort_field == self.sort_field:
            order = SortOrder.DESC if self.sort_order == SortOrder.ASC else SortOrder.ASC
            return replace(self, sort_order=order)
        return replace(self, sort_field=sort_field, sort_order=SortOrder.ASC)

    def with_search(self, term: str) -> ViewParams:
        return replace(self, search_term=term)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a MutationCoordinator operation."""

    kind: OpKind
    path: str
    status: MutationStatus
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.DONE
