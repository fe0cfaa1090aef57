"""beamdrop-browser: async browsing engine for beamdrop file servers."""

from beamdrop_browser.client import BeamdropClient
from beamdrop_browser.errors import (
    BackendRejected,
    BrowserError,
    ConcurrentOperationBlocked,
    EmptyQuery,
    InvalidName,
    MalformedResponse,
    NetworkFailure,
    StaleResponse,
)
from beamdrop_browser.listing import ListingSync
from beamdrop_browser.models import (
    FileEntry,
    Listing,
    ListingState,
    MutationResult,
    MutationStatus,
    OpKind,
    SearchResponse,
    SortField,
    SortOrder,
    ViewParams,
)
from beamdrop_browser.mutations import MutationCoordinator, PendingOps, StarredSet
from beamdrop_browser.paths import PathState
from beamdrop_browser.protocol import FileBackendProtocol, UploadItem
from beamdrop_browser.search import SearchDispatch
from beamdrop_browser.session import BrowserSession, SessionContext
from beamdrop_browser.view import SortFilterView, derive, parse_size

__all__ = [
    "BackendRejected",
    "BeamdropClient",
    "BrowserError",
    "BrowserSession",
    "ConcurrentOperationBlocked",
    "EmptyQuery",
    "FileBackendProtocol",
    "FileEntry",
    "InvalidName",
    "Listing",
    "ListingState",
    "ListingSync",
    "MalformedResponse",
    "MutationCoordinator",
    "MutationResult",
    "MutationStatus",
    "NetworkFailure",
    "OpKind",
    "PathState",
    "PendingOps",
    "SearchDispatch",
    "SearchResponse",
    "SessionContext",
    "SortField",
    "SortFilterView",
    "SortOrder",
    "StaleResponse",
    "StarredSet",
    "UploadItem",
    "ViewParams",
    "derive",
    "parse_size",
]
