"""
Snapshot persistence.

Snapshots are JSON documents named after the dataset they hold. They are
written locally (atomically, via a temp file in the same directory) and
optionally pushed to an object store over HTTP.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

import httpx

from pokestore.config import Settings
from pokestore.models.failure import UploadError

logger = logging.getLogger(__name__)

CARDS_FILE = "cards-full.json"
PRICES_FILE = "prices.json"
SETS_FILE = "sets-full.json"
JP_CARDS_FILE = "jp-cards-full.json"
JP_PRICES_FILE = "jp-prices.json"
JP_SETS_FILE = "jp-sets-full.json"
POKEMONS_FILE = "pokemons-full.json"

SNAPSHOT_FILES = (
    CARDS_FILE,
    PRICES_FILE,
    SETS_FILE,
    JP_CARDS_FILE,
    JP_PRICES_FILE,
    JP_SETS_FILE,
    POKEMONS_FILE,
)


def read_json(path: Path, default: Any = None) -> Any:
    """
    Load a JSON snapshot.

    Returns `default` when the file does not exist. A file that exists
    but does not parse is an error.
    """
    if not path.exists():
        logger.info("Snapshot %s not found", path)
        return default
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def dump_json(data: Any) -> bytes:
    """Compact UTF-8 encoding shared by local and remote writes."""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def write_json(path: Path, data: Any) -> Path:
    """Write a snapshot atomically; readers never observe a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(dump_json(data))
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


class ObjectStore(Protocol):
    """Destination for finished snapshots."""

    async def put(self, name: str, data: Any) -> str:
        """Store `data` under `name` and return where it landed."""
        ...


class LocalStore:
    """Snapshots as files under one directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def path(self, name: str) -> Path:
        return self.root / name

    def read(self, name: str, default: Any = None) -> Any:
        return read_json(self.path(name), default)

    async def put(self, name: str, data: Any) -> str:
        path = write_json(self.path(name), data)
        logger.info("Wrote %s", path)
        return str(path)


class HttpObjectStore:
    """
    Snapshots uploaded with HTTP PUT to `{base_url}/{name}`.

    Works with any bucket gateway that accepts bearer-authenticated PUTs.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.client = client
        self.timeout = timeout

    async def put(self, name: str, data: Any) -> str:
        """
        Upload one snapshot.

        Raises:
            UploadError: On network failure or a non-2xx response
        """
        url = f"{self.base_url}/{name}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            if self.client is not None:
                response = await self.client.put(url, content=dump_json(data), headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.put(url, content=dump_json(data), headers=headers)
        except httpx.RequestError as exc:
            raise UploadError(f"Network error uploading {name}: {exc}") from exc

        if not response.is_success:
            raise UploadError(
                f"Failed to upload {name}: HTTP {response.status_code} - {response.text}"
            )

        logger.info("Uploaded %s to %s", name, url)
        return url


def remote_store(app_settings: Settings) -> HttpObjectStore | None:
    """The configured object store, None when snapshots stay local."""
    if not app_settings.storage_url:
        return None
    return HttpObjectStore(app_settings.storage_url, app_settings.storage_token)


async def publish(local: LocalStore, remote: ObjectStore, names: Iterable[str]) -> list[str]:
    """Push local snapshots to a remote store; missing snapshots are skipped."""
    published = []
    for name in names:
        data = local.read(name)
        if data is None:
            logger.warning("Snapshot %s missing, not published", name)
            continue
        published.append(await remote.put(name, data))
    return published
