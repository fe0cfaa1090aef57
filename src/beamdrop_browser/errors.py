# Error types raised by the client and the browsing engine.
# Created: 2026-10-02

from __future__ import annotations


class BrowserError(Exception):
    """Base class for every error raised by beamdrop_browser."""


class NetworkFailure(BrowserError):
    """The request never reached the server or no response came back."""


class BackendRejected(BrowserError):
    """The server answered with a non-2xx status.

    ``message`` is the server's ``{"error": ...}`` text, verbatim.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class MalformedResponse(BrowserError):
    """A 2xx response whose body does not have the expected shape."""


class StaleResponse(BrowserError):
    """A listing response that arrived after its path was superseded."""


class ConcurrentOperationBlocked(BrowserError):
    """A mutation was requested on a path that already has one in flight."""

    def __init__(self, path: str, pending: str):
        super().__init__(f"{pending} already in progress for {path}")
        self.path = path
        self.pending = pending


class EmptyQuery(BrowserError):
    """Search was requested with a blank term."""


class InvalidName(BrowserError):
    """A file or folder name that is not a single path segment."""
