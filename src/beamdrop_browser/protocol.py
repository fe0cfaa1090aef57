# File backend protocol - the capability injected into the browsing engine.
# Created: 2026-10-03

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from beamdrop_browser.models import FileEntry, SearchResponse


@dataclass(frozen=True)
class UploadItem:
    """One file of a multipart upload."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"


class FileBackendProtocol(Protocol):
    """Operations the engine needs from a file server.

    BeamdropClient implements this over HTTP; tests use in-memory fakes.
    Implementations raise BrowserError subclasses on failure.
    """

    async def list_files(self, path: str) -> list[FileEntry]:
        """List the entries directly under *path*."""
        ...

    async def search(self, query: str, path: str | None = None) -> SearchResponse:
        """Recursively search names under *path* (everything when None)."""
        ...

    async def delete(self, path: str) -> None:
        ...

    async def toggle_star(self, path: str) -> None:
        ...

    async def upload(self, items: list[UploadItem], target_path: str) -> None:
        """Upload all *items* into *target_path* in one request."""
        ...

    async def mkdir(self, path: str) -> None:
        ...

    async def rename(self, path: str, new_name: str) -> str:
        """Rename *path* in place; returns the new logical path."""
        ...

    async def write(self, path: str, content: str) -> None:
        ...

    def download_url(self, path: str) -> str:
        """URL that downloads *path* when opened."""
        ...

    async def move(self, source: str, target: str) -> None:
        """Move *source* to the full logical path *target*."""
        ...

    async def copy(self, source: str, target: str) -> None:
        """Copy the file *source* to the full logical path *target*."""
        ...
