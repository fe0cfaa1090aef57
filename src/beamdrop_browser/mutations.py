"""Mutations against the file server.

Created: 2026-10-05

MutationCoordinator runs delete / star / upload (plus rename, mkdir, write,
move and copy) and reconciles local state afterwards:
- delete, upload, rename, mkdir, write, move, copy: refresh the listing on success;
  nothing is removed or added locally before the server confirms.
- star: the StarredSet is flipped only after the server accepted the toggle.

PendingOps allows one in-flight mutation per path. A second request on a
busy path returns a BLOCKED result and never reaches the server. The
pending entry is cleared when the operation settles, whatever the outcome,
so a failed action can simply be retried.

No operation retries on its own and none raises on backend failure: the
error is logged and returned in the MutationResult.
"""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Awaitable, Callable, Iterator, Sequence
from pathlib import Path
from typing import Any

from beamdrop_browser.errors import BrowserError, ConcurrentOperationBlocked, InvalidName
from beamdrop_browser.listing import ListingSync
from beamdrop_browser.models import Listing, MutationResult, MutationStatus, OpKind
from beamdrop_browser.paths import ROOT, join, normalize
from beamdrop_browser.protocol import FileBackendProtocol, UploadItem

logger = logging.getLogger(__name__)

ResultListener = Callable[[MutationResult], None]
Droppable = UploadItem | Path | str


class PendingOps:
    """In-flight mutations keyed by logical path."""

    def __init__(self) -> None:
        self._ops: dict[str, OpKind] = {}

    def begin(self, path: str, kind: OpKind) -> None:
        """Record *kind* for *path*; raises if something is already pending there."""
        current = self._ops.get(path)
        if current is not None:
            raise ConcurrentOperationBlocked(path, current.value)
        self._ops[path] = kind

    def finish(self, path: str) -> None:
        self._ops.pop(path, None)

    def get(self, path: str) -> OpKind | None:
        return self._ops.get(path)

    def is_pending(self, path: str) -> bool:
        return path in self._ops

    def snapshot(self) -> dict[str, OpKind]:
        return dict(self._ops)

    def __contains__(self, path: object) -> bool:
        return path in self._ops

    def __len__(self) -> int:
        return len(self._ops)


class StarredSet:
    """Paths currently starred. Read-only outside MutationCoordinator."""

    def __init__(self, paths: Sequence[str] = ()) -> None:
        self._paths: set[str] = {normalize(p) for p in paths}

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    def _add(self, path: str) -> None:
        self._paths.add(path)

    def _discard(self, path: str) -> None:
        self._paths.discard(path)

    def _discard_tree(self, path: str) -> None:
        prefix = path + "/"
        self._paths = {p for p in self._paths if p != path and not p.startswith(prefix)}

    def _move(self, old: str, new: str) -> None:
        moved = set()
        for p in self._paths:
            if p == old:
                moved.add(new)
            elif p.startswith(old + "/"):
                moved.add(new + p[len(old) :])
            else:
                moved.add(p)
        self._paths = moved


def to_upload_item(item: Droppable) -> UploadItem:
    """Turn a dropped local path into an UploadItem (UploadItems pass through)."""
    if isinstance(item, UploadItem):
        return item
    local = Path(item).expanduser()
    content_type = mimetypes.guess_type(local.name)[0] or "application/octet-stream"
    return UploadItem(name=local.name, content=local.read_bytes(), content_type=content_type)


def validate_name(name: str) -> str:
    """Return *name* stripped, or raise InvalidName if it is not one path segment."""
    cleaned = (name or "").strip()
    if not cleaned or cleaned in (".", "..") or "/" in cleaned or "\\" in cleaned:
        raise InvalidName(f"Invalid name: {name!r}")
    return cleaned


class MutationCoordinator:
    """Runs backend mutations and keeps Listing and StarredSet consistent."""

    def __init__(
        self,
        backend: FileBackendProtocol,
        listing_sync: ListingSync,
        on_result: ResultListener | None = None,
    ):
        self._backend = backend
        self._listing_sync = listing_sync
        self._on_result = on_result
        self.pending = PendingOps()
        self.starred = StarredSet()

    # =========================================================================
    # Core runner
    # =========================================================================

    def _report(self, result: MutationResult) -> MutationResult:
        if self._on_result is not None:
            self._on_result(result)
        return result

    async def _run(
        self,
        kind: OpKind,
        path: str,
        call: Callable[[], Awaitable[Any]],
        *,
        refresh: bool = True,
        on_success: Callable[[Any], None] | None = None,
    ) -> MutationResult:
        try:
            self.pending.begin(path, kind)
        except ConcurrentOperationBlocked as e:
            logger.debug("Skipping %s on %s: %s", kind.value, path, e)
            return self._report(MutationResult(kind, path, MutationStatus.BLOCKED, str(e)))

        try:
            try:
                value = await call()
            except BrowserError as e:
                logger.warning("%s failed for %s: %s", kind.value.capitalize(), path, e)
                return self._report(MutationResult(kind, path, MutationStatus.FAILED, str(e)))

            if on_success is not None:
                on_success(value)
            logger.info("%s succeeded for %s", kind.value.capitalize(), path)
            if refresh:
                await self._listing_sync.refresh()
        finally:
            self.pending.finish(path)

        details = value if isinstance(value, dict) else {}
        return self._report(MutationResult(kind, path, MutationStatus.DONE, details=details))

    def _invalid(self, kind: OpKind, path: str, error: Exception) -> MutationResult:
        logger.warning("%s rejected for %s: %s", kind.value.capitalize(), path, error)
        return self._report(MutationResult(kind, path, MutationStatus.FAILED, str(error)))

    # =========================================================================
    # Operations
    # =========================================================================

    async def delete_entry(self, path: str) -> MutationResult:
        """Delete *path* on the server, then refresh.

        The row stays in the listing until the refresh confirms it is gone.
        """
        path = normalize(path)
        return await self._run(
            OpKind.DELETE,
            path,
            lambda: self._backend.delete(path),
            on_success=lambda _: self.starred._discard_tree(path),
        )

    async def toggle_star(self, path: str) -> MutationResult:
        """Toggle the star on *path*; local state flips after the server confirms."""
        path = normalize(path)
        starring = path not in self.starred
        kind = OpKind.STAR if starring else OpKind.UNSTAR

        def _flip(_: Any) -> None:
            if starring:
                self.starred._add(path)
            else:
                self.starred._discard(path)

        return await self._run(
            kind, path, lambda: self._backend.toggle_star(path), refresh=False, on_success=_flip
        )

    async def upload_dropped(self, files: Sequence[Droppable], target_path: str) -> MutationResult:
        """Upload dropped files into *target_path* with a single request.

        All-or-nothing from the client's side: a rejection of any file is one
        aggregate failure, with no per-file retry or rollback.
        """
        target_path = normalize(target_path)
        if not files:
            return self._invalid(OpKind.UPLOAD, target_path, ValueError("No files to upload"))
        try:
            items = [to_upload_item(f) for f in files]
        except OSError as e:
            return self._invalid(OpKind.UPLOAD, target_path, e)

        names = [item.name for item in items]

        async def _upload() -> dict[str, Any]:
            await self._backend.upload(items, target_path)
            return {"files": names}

        return await self._run(OpKind.UPLOAD, target_path, _upload)

    async def rename_entry(self, path: str, new_name: str) -> MutationResult:
        """Rename *path* within its directory."""
        path = normalize(path)
        try:
            new_name = validate_name(new_name)
        except InvalidName as e:
            return self._invalid(OpKind.RENAME, path, e)

        async def _rename() -> dict[str, Any]:
            return {"newPath": await self._backend.rename(path, new_name)}

        return await self._run(
            OpKind.RENAME,
            path,
            _rename,
            on_success=lambda value: self.starred._move(path, value["newPath"]),
        )

    async def create_folder(self, name: str, parent_path: str | None = None) -> MutationResult:
        """Create folder *name* under *parent_path* (current directory by default)."""
        base = normalize(parent_path) if parent_path is not None else self._current_path()
        try:
            name = validate_name(name)
        except InvalidName as e:
            return self._invalid(OpKind.MKDIR, join(base, str(name)), e)
        path = join(base, name)
        return await self._run(OpKind.MKDIR, path, lambda: self._backend.mkdir(path))

    async def write_file(self, path: str, content: str) -> MutationResult:
        """Save text *content* to *path*, creating it if needed."""
        path = normalize(path)
        if path == ROOT:
            return self._invalid(OpKind.WRITE, path, InvalidName("File path is required"))
        return await self._run(OpKind.WRITE, path, lambda: self._backend.write(path, content))

    async def move_entry(self, path: str, target_path: str) -> MutationResult:
        """Move *path* to *target_path* (the full new logical path).

        Stars on the entry, and on anything below it, follow the move.
        """
        path = normalize(path)
        target = normalize(target_path)
        if target in (ROOT, path) or target.startswith(path + "/"):
            error = InvalidName(f"Cannot move {path} to {target}")
            return self._invalid(OpKind.MOVE, path, error)

        async def _move() -> dict[str, Any]:
            await self._backend.move(path, target)
            return {"targetPath": target}

        return await self._run(
            OpKind.MOVE, path, _move, on_success=lambda _: self.starred._move(path, target)
        )

    async def copy_entry(self, path: str, target_path: str) -> MutationResult:
        """Copy the file *path* to *target_path*.

        Guarded on the target, since that is the path being written.
        """
        path = normalize(path)
        target = normalize(target_path)
        if target in (ROOT, path):
            error = InvalidName(f"Cannot copy {path} to {target}")
            return self._invalid(OpKind.COPY, target, error)

        async def _copy() -> dict[str, Any]:
            await self._backend.copy(path, target)
            return {"sourcePath": path}

        return await self._run(OpKind.COPY, target, _copy)

    # =========================================================================
    # Star bookkeeping
    # =========================================================================

    def sync_stars(self, listing: Listing) -> None:
        """Adopt server-reported star flags from a ready listing.

        Entries without a flag and entries with a star toggle in flight are
        left alone.
        """
        if not listing.is_ready:
            return
        for entry in listing.entries:
            if entry.isStarred is None:
                continue
            if self.pending.get(entry.path) in (OpKind.STAR, OpKind.UNSTAR):
                continue
            if entry.isStarred:
                self.starred._add(entry.path)
            else:
                self.starred._discard(entry.path)

    def load_starred(self, paths: Sequence[str]) -> None:
        """Replace the starred set with *paths* (e.g. from GET /starred)."""
        self.starred = StarredSet(paths)

    def _current_path(self) -> str:
        return self._listing_sync.listing.path

    def is_busy(self, path: str) -> bool:
        return self.pending.is_pending(normalize(path))
