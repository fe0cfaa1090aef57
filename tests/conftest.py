# Shared fixtures: an in-memory file backend with controllable timing.
# Created: 2026-10-06

from __future__ import annotations

import asyncio

import pytest

from beamdrop_browser.errors import BackendRejected, BrowserError
from beamdrop_browser.models import FileEntry, SearchResponse
from beamdrop_browser.paths import ROOT, basename, join, parent
from beamdrop_browser.protocol import UploadItem


def entry(name: str, is_dir: bool = False, size: str = "", mod_time: str = "", **kw) -> FileEntry:
    return FileEntry(name=name, isDir=is_dir, size=size, modTime=mod_time, **kw)


class FakeBackend:
    """In-memory FileBackendProtocol.

    ``tree`` maps a directory path to its entries. ``hold(op, key)`` returns
    an Event the matching call waits on; ``fail(op, key, exc)`` makes it
    raise. Every call is recorded in ``calls`` as ``(op, key)``.
    """

    def __init__(self, tree: dict[str, list[FileEntry]] | None = None):
        self.tree: dict[str, list[FileEntry]] = {ROOT: []}
        self.tree.update(tree or {})
        self.stars: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.uploads: list[tuple[list[str], str]] = []
        self.writes: dict[str, str] = {}
        self._gates: dict[tuple[str, str], asyncio.Event] = {}
        self._failures: dict[tuple[str, str], BrowserError] = {}

    def hold(self, op: str, key: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(op, key)] = gate
        return gate

    def fail(self, op: str, key: str, exc: BrowserError) -> None:
        self._failures[(op, key)] = exc

    def count(self, op: str, key: str | None = None) -> int:
        return sum(1 for o, k in self.calls if o == op and (key is None or k == key))

    async def _enter(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        gate = self._gates.get((op, key))
        if gate is not None:
            await gate.wait()
        exc = self._failures.pop((op, key), None)
        if exc is not None:
            raise exc

    def _remove(self, path: str) -> None:
        siblings = self.tree.get(parent(path), [])
        self.tree[parent(path)] = [e for e in siblings if e.name != basename(path)]

    async def list_files(self, path: str) -> list[FileEntry]:
        await self._enter("list", path)
        if path not in self.tree:
            raise BackendRejected(500, f"open {path}: no such file or directory")
        return list(self.tree[path])

    async def search(self, query: str, path: str | None = None) -> SearchResponse:
        await self._enter("search", path or "")
        results = []
        for directory, entries in self.tree.items():
            inside = path is None or directory == path or directory.startswith(path + "/")
            if not inside:
                continue
            for e in entries:
                if query.lower() in e.name.lower():
                    results.append(e.model_copy(update={"path": join(directory, e.name)}))
        return SearchResponse(query=query, path=path or "", count=len(results), results=results)

    async def delete(self, path: str) -> None:
        await self._enter("delete", path)
        self._remove(path)

    async def toggle_star(self, path: str) -> None:
        await self._enter("star", path)
        self.stars ^= {path}

    async def upload(self, items: list[UploadItem], target_path: str) -> None:
        await self._enter("upload", target_path)
        self.uploads.append(([i.name for i in items], target_path))
        self.tree.setdefault(target_path, []).extend(
            entry(i.name, size=f"{len(i.content)} B") for i in items
        )

    async def mkdir(self, path: str) -> None:
        await self._enter("mkdir", path)
        self.tree.setdefault(parent(path), []).append(entry(basename(path), is_dir=True))
        self.tree.setdefault(path, [])

    async def rename(self, path: str, new_name: str) -> str:
        await self._enter("rename", path)
        old = next(e for e in self.tree[parent(path)] if e.name == basename(path))
        self._remove(path)
        self.tree[parent(path)].append(old.model_copy(update={"name": new_name}))
        return join(parent(path), new_name)

    async def move(self, source: str, target: str) -> None:
        await self._enter("move", source)
        old = next(e for e in self.tree[parent(source)] if e.name == basename(source))
        self._remove(source)
        self.tree.setdefault(parent(target), []).append(
            old.model_copy(update={"name": basename(target)})
        )
        for directory in [d for d in self.tree if d == source or d.startswith(source + "/")]:
            self.tree[target + directory[len(source) :]] = self.tree.pop(directory)

    async def copy(self, source: str, target: str) -> None:
        await self._enter("copy", target)
        old = next(e for e in self.tree[parent(source)] if e.name == basename(source))
        self.tree.setdefault(parent(target), []).append(
            old.model_copy(update={"name": basename(target)})
        )

    def download_url(self, path: str) -> str:
        return f"memory://download/{path}"

    async def write(self, path: str, content: str) -> None:
        await self._enter("write", path)
        self.writes[path] = content
        if basename(path) not in [e.name for e in self.tree.setdefault(parent(path), [])]:
            self.tree[parent(path)].append(entry(basename(path), size=f"{len(content)} B"))


@pytest.fixture
def backend():
    return FakeBackend(
        {
            ROOT: [
                entry("b.txt", size="2.0 KB", mod_time="2026-01-02 10:00:00"),
                entry("docs", is_dir=True, size="4.0 KB", mod_time="2026-01-01 09:00:00"),
                entry(".env", size="12 B", mod_time="2026-01-03 08:00:00"),
                entry("A", is_dir=True, size="0 B", mod_time="2026-01-05 08:00:00"),
            ],
            "docs": [
                entry("report.pdf", size="1.5 MB", mod_time="2026-02-01 12:00:00"),
                entry("notes", is_dir=True),
            ],
            "docs/notes": [entry("todo.md", size="300 B")],
            "A": [],
        }
    )
