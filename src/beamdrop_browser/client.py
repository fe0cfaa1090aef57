# Beamdrop HTTP client: async client for the beamdrop file server API.
# Created: 2026-10-03
#
# Every non-2xx response becomes BackendRejected carrying the server's
# {"error": ...} text verbatim; transport problems become NetworkFailure.
# JSON bodies are validated into the wire models here so nothing past this
# module sees raw dicts.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from beamdrop_browser.config import Settings, get_config_dir
from beamdrop_browser.errors import BackendRejected, MalformedResponse, NetworkFailure
from beamdrop_browser.models import FileEntry, SearchResponse, ServerStats
from beamdrop_browser.paths import basename, join, normalize, parent
from beamdrop_browser.protocol import UploadItem

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[FileEntry])
_CHUNK_SIZE = 64 * 1024


def _error_message(resp: httpx.Response) -> str:
    """Pull the server's error text out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    text = resp.text.strip()
    return text or f"HTTP {resp.status_code} {resp.reason_phrase}"


def _json(resp: httpx.Response, what: str) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponse(f"{what}: response is not JSON") from e


class BeamdropClient:
    """HTTP client for a beamdrop server.

    Implements FileBackendProtocol. Use as an async context manager, or call
    ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        password: str | None = None,
        timeout: float = 15.0,
        upload_timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._password = password
        self._timeout = timeout
        self._upload_timeout = upload_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> BeamdropClient:
        return cls(
            settings.server_url,
            password=settings.password,
            timeout=settings.request_timeout,
            upload_timeout=settings.upload_timeout,
        )

    # -- lifecycle --

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {}
            if self._password:
                headers["Authorization"] = f"Bearer {self._password}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BeamdropClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            resp = await self._http().request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkFailure(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise NetworkFailure(f"Cannot reach {self.base_url}: {e}") from e

        if resp.is_error:
            message = _error_message(resp)
            logger.debug("%s %s -> %s: %s", method, url, resp.status_code, message)
            raise BackendRejected(resp.status_code, message)
        return resp

    # -- reads --

    async def list_files(self, path: str) -> list[FileEntry]:
        """List the entries directly under *path*."""
        resp = await self._request("GET", "/files", params={"path": path})
        data = _json(resp, f"Listing {path}")
        if data is None:
            return []
        try:
            return _ENTRIES.validate_python(data)
        except ValidationError as e:
            raise MalformedResponse(f"Listing {path}: unexpected entry shape") from e

    async def search(self, query: str, path: str | None = None) -> SearchResponse:
        """Search names recursively under *path* (whole share when None)."""
        params = {"q": query}
        if path is not None:
            params["path"] = path
        resp = await self._request("GET", "/search", params=params)
        data = _json(resp, f"Search {query!r}")
        try:
            return SearchResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponse(f"Search {query!r}: unexpected response shape") from e

    async def starred(self) -> list[str]:
        """Paths the server has recorded as starred."""
        resp = await self._request("GET", "/starred")
        data = _json(resp, "Starred")
        items = data.get("starred") if isinstance(data, dict) else None
        paths: list[str] = []
        for item in items or []:
            if isinstance(item, str):
                paths.append(normalize(item))
            elif isinstance(item, dict) and item.get("filePath"):
                paths.append(normalize(item["filePath"]))
        return paths

    async def stats(self) -> ServerStats:
        resp = await self._request("GET", "/stats")
        try:
            return ServerStats.model_validate(_json(resp, "Stats"))
        except ValidationError as e:
            raise MalformedResponse("Stats: unexpected response shape") from e

    async def health(self) -> dict[str, Any]:
        resp = await self._request("GET", "/health")
        data = _json(resp, "Health")
        return data if isinstance(data, dict) else {"status": str(data)}

    def download_url(self, path: str) -> str:
        """Absolute URL a browser can open to download *path*."""
        return str(httpx.URL(f"{self.base_url}/download", params={"file": path}))

    @staticmethod
    def _discard_partial(destination: Path, writing: bool) -> None:
        # Only files this download started writing are removed
        if writing:
            logger.debug("Removing partial download %s", destination)
            destination.unlink(missing_ok=True)

    async def download(self, path: str, destination: Path | None = None) -> dict[str, Any]:
        """Stream *path* to a local file.

        Args:
            path: Logical path on the server.
            destination: Target file or directory. Defaults to the
                ``downloads`` folder in the config directory.

        Returns:
            Dict with name, path (local) and size.
        """
        name = basename(path) or "download"
        if destination is None:
            destination = get_config_dir() / "downloads"
            destination.mkdir(parents=True, exist_ok=True)
        if destination.is_dir():
            destination = destination / name

        size = 0
        writing = False
        try:
            async with self._http().stream(
                "GET", "/download", params={"file": path}, timeout=self._upload_timeout
            ) as resp:
                if resp.is_error:
                    await resp.aread()
                    raise BackendRejected(resp.status_code, _error_message(resp))
                with open(destination, "wb") as f:
                    writing = True
                    async for chunk in resp.aiter_bytes(_CHUNK_SIZE):
                        f.write(chunk)
                        size += len(chunk)
        except httpx.TimeoutException as e:
            self._discard_partial(destination, writing)
            raise NetworkFailure(f"Download of {path} timed out") from e
        except httpx.RequestError as e:
            self._discard_partial(destination, writing)
            raise NetworkFailure(f"Cannot reach {self.base_url}: {e}") from e

        logger.info("Downloaded %s (%d bytes) to %s", path, size, destination)
        return {"name": name, "path": str(destination), "size": size}

    # -- writes --

    async def delete(self, path: str) -> None:
        await self._request("DELETE", "/delete", params={"file": path})

    async def toggle_star(self, path: str) -> None:
        await self._request("POST", "/star", json={"filePath": path})

    async def upload(self, items: list[UploadItem], target_path: str) -> None:
        """Upload all *items* into *target_path* as one multipart request."""
        files = [("files", (item.name, item.content, item.content_type)) for item in items]
        await self._request(
            "POST",
            "/upload",
            files=files,
            data={"path": target_path},
            timeout=self._upload_timeout,
        )

    async def mkdir(self, path: str) -> None:
        await self._request("POST", "/mkdir", json={"dirPath": path})

    async def rename(self, path: str, new_name: str) -> str:
        resp = await self._request("POST", "/rename", json={"oldPath": path, "newName": new_name})
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("newPath"):
            return normalize(data["newPath"])
        return join(parent(path), new_name)

    async def write(self, path: str, content: str) -> None:
        await self._request("POST", "/write", json={"filePath": path, "content": content})

    async def move(self, source: str, target: str) -> None:
        await self._request("POST", "/move", json={"sourcePath": source, "targetPath": target})

    async def copy(self, source: str, target: str) -> None:
        await self._request("POST", "/copy", json={"sourcePath": source, "targetPath": target})
