"""Durable image suggestion cache.

Two layers are merged into one in-memory index at startup: a read-only seed
file shipped with the deployment and a writable runtime file (runtime wins on
equal keys). The index is authoritative for the process lifetime; the runtime
file is rewritten in the background (temp file + atomic rename), with
concurrent persist requests coalesced onto the write already in flight.

File format (both layers):
    {"version": 1, "updatedAt": <ms>, "entries": [{"key", "query", "createdAt",
     "expiresAt", "providers", "items"}, ...]}
Entries failing validation or already expired are dropped silently.
"""

import asyncio
import json
import os
import time
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from smoothies.models.models import ImageCacheEntry, ImageCacheFile, ImageSuggestion
from smoothies.utils.logger import logger
from smoothies.utils.safe import safe_execute_async

CACHE_FILE_VERSION = 1


def now_ms() -> int:
    return int(time.time() * 1000)


def ensure_http_url(value: Any) -> Optional[str]:
    """Return the trimmed value if it is an absolute http(s) URL, else None."""
    raw = value.strip() if isinstance(value, str) else ""
    if raw.lower().startswith(("http://", "https://")):
        return raw
    return None


def sanitize_items(items: Iterable[Union[ImageSuggestion, dict]]) -> list[ImageSuggestion]:
    """Keep items with absolute http(s) URLs, dropping duplicate URLs (first wins)."""
    seen: set[str] = set()
    output: list[ImageSuggestion] = []

    for item in items:
        if not isinstance(item, ImageSuggestion):
            try:
                item = ImageSuggestion.model_validate(item)
            except ValidationError:
                continue
        url = ensure_http_url(item.url)
        if not url or url in seen:
            continue
        seen.add(url)
        output.append(item.model_copy(update={"url": url, "thumb_url": ensure_http_url(item.thumb_url)}))

    return output


def parse_cache_file(raw: str, now: Optional[int] = None) -> list[ImageCacheEntry]:
    """Parse a cache document into live entries.

    Raises:
        json.JSONDecodeError / ValidationError: When the document itself is
        unusable (callers treat that as an empty cache).
    """
    document = ImageCacheFile.model_validate(json.loads(raw))
    now = now_ms() if now is None else now

    entries = []
    for candidate in document.entries:
        if not isinstance(candidate, dict) or not isinstance(candidate.get("items"), list):
            continue
        try:
            entry = ImageCacheEntry.model_validate({**candidate, "items": sanitize_items(candidate["items"])})
        except ValidationError:
            continue
        if entry.expires_at < now:
            continue
        entries.append(entry)
    return entries


def write_json_atomic(path: Path, payload: dict) -> Path:
    """Write JSON to <path>.tmp then rename over path, so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f"{path.name}.tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False)
    os.replace(temp_path, path)
    return path


async def read_cache_entries(path: Optional[Path]) -> list[ImageCacheEntry]:
    """Load live entries from a cache file; missing or corrupt files yield []."""
    if path is None or not path.exists():
        logger.debug(f"Image cache file not found: {path}")
        return []

    async def _read():
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return parse_cache_file(raw)

    return await safe_execute_async(
        _read(),
        f"Ignoring unreadable image cache file {path}",
        log_level="warning",
        default_return=[],
    )


class ImageCacheStore:
    """In-memory cache index backed by the seed and runtime files."""

    def __init__(self, runtime_path: Union[str, Path], seed_path: Optional[Union[str, Path]] = None) -> None:
        self.runtime_path = Path(runtime_path)
        self.seed_path = Path(seed_path) if seed_path else None
        self.entries: dict[str, ImageCacheEntry] = {}
        self._load_task: Optional[asyncio.Future] = None
        self._write_task: Optional[asyncio.Task] = None
        # Set by put(), cleared when a write snapshots the index
        self._dirty = False

    async def ensure_loaded(self) -> None:
        """Populate the index once; concurrent first callers share the same load."""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        await asyncio.shield(self._load_task)

    async def _load(self) -> None:
        seed_entries, runtime_entries = await asyncio.gather(
            read_cache_entries(self.seed_path),
            read_cache_entries(self.runtime_path),
        )
        for entry in [*seed_entries, *runtime_entries]:
            self.entries[entry.key] = entry
        logger.info(
            f"Image cache loaded: {len(seed_entries)} seed + {len(runtime_entries)} runtime entries "
            f"({len(self.entries)} unique)"
        )

    def get(self, key: str) -> Optional[ImageCacheEntry]:
        return self.entries.get(key)

    def put(self, entry: ImageCacheEntry) -> None:
        """Replace the entry for entry.key outright (no merge)."""
        self.entries[entry.key] = entry
        self._dirty = True

    def persist(self) -> asyncio.Task:
        """Schedule a write of the whole index, or join the write already in flight.

        Check-and-set happens without an await in between, so on the event loop
        at most one write task exists at a time. Callers may ignore the task.
        """
        if self._write_task is not None and not self._write_task.done():
            return self._write_task
        self._write_task = asyncio.create_task(self._write())
        return self._write_task

    async def flush(self) -> None:
        """Wait for any in-flight write, then write again if entries changed since its snapshot."""
        if self._write_task is not None:
            await self._write_task
        if self._dirty:
            await self.persist()

    def to_document(self) -> dict:
        return {
            "version": CACHE_FILE_VERSION,
            "updatedAt": now_ms(),
            "entries": [entry.model_dump(mode="json", by_alias=True) for entry in self.entries.values()],
        }

    async def _write(self) -> None:
        # Snapshot on the event loop; only serialisation and I/O run in the worker thread
        document = self.to_document()
        self._dirty = False
        written = await safe_execute_async(
            asyncio.to_thread(write_json_atomic, self.runtime_path, document),
            f"Image cache persist to {self.runtime_path} failed",
            log_level="warning",
        )
        if written:
            logger.debug(f"Image cache persisted: {len(document['entries'])} entries")
