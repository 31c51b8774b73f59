#!/usr/bin/env python3
"""Image cache warm-up for a running Smoothie catalog API.

Requests image suggestions for a slice of the dataset so later visitors hit
the cache instead of the photo providers.

Usage:
    python warm_cache.py
    python warm_cache.py --offset=80 --limit=40 --concurrency=4

Flags (invalid or negative values fall back to the default):
    --offset=N        first data row (default 0)
    --limit=N         number of rows (default 80)
    --concurrency=N   parallel workers, clamped to [1, 6] (default 3)
"""

import asyncio
import math
import re
import sys
from typing import Optional, Sequence

import aiohttp
from rich.console import Console

from smoothies.catalog.csv_reader import read_csv_file
from smoothies.utils.config import config
from smoothies.utils.logger import logger
from smoothies.utils.text import normalize_whitespace

console = Console()

MAX_TAGS = 8
SUGGESTION_LIMIT = 4
MAX_CONCURRENCY = 6
_QUOTED_RE = re.compile(r'"([^"]+)"')


def parse_int_flag(argv: Sequence[str], name: str, fallback: int) -> int:
    """Read --name=N from argv; non-numeric or negative values → fallback."""
    prefix = f"--{name}="
    for arg in argv:
        if not arg.startswith(prefix):
            continue
        try:
            value = float(arg[len(prefix):])
        except ValueError:
            return fallback
        if not math.isfinite(value) or value < 0:
            return fallback
        return math.trunc(value)
    return fallback


def parse_tags_from_ner(raw: str) -> list[str]:
    tags = [normalize_whitespace(match) for match in _QUOTED_RE.findall(raw or "")]
    return [tag for tag in tags if tag][:MAX_TAGS]


def select_entries(rows: list[list[str]], offset: int, limit: int) -> list[dict]:
    """Pick data rows [offset, offset+limit) as {title, tags} payloads; untitled rows skipped.

    Raises:
        ValueError: If the header has no title column.
    """
    header = rows[0] if rows else []
    if "title" not in header:
        raise ValueError("Missing column: title")
    title_index = header.index("title")
    ner_index = header.index("NER") if "NER" in header else None

    entries = []
    for row in rows[1 + offset : 1 + offset + limit]:
        title = normalize_whitespace(row[title_index] if title_index < len(row) else "")
        if not title:
            continue
        ner = row[ner_index] if ner_index is not None and ner_index < len(row) else ""
        entries.append({"title": title, "tags": parse_tags_from_ner(ner)})
    return entries


async def post_suggestion(session: aiohttp.ClientSession, base_url: str, payload: dict) -> dict:
    async with session.post(f"{base_url}/api/image-suggestions", json=payload) as response:
        if response.status >= 400:
            raise RuntimeError(f"HTTP {response.status}")
        return await response.json()


async def warm_cache(entries: list[dict], base_url: str, concurrency: int = 3) -> tuple[int, int]:
    """POST one suggestion request per entry with a pool of workers sharing a cursor.

    Returns:
        (success count, failed count)
    """
    concurrency = max(1, min(MAX_CONCURRENCY, concurrency))
    cursor = 0
    success = 0
    failed = 0

    async def worker(session: aiohttp.ClientSession, worker_id: int) -> None:
        nonlocal cursor, success, failed
        while cursor < len(entries):
            # No await between read and increment, so each index goes to one worker
            index = cursor
            cursor += 1
            entry = entries[index]
            try:
                data = await post_suggestion(session, base_url, {**entry, "limit": SUGGESTION_LIMIT})
            except Exception as e:
                failed += 1
                console.print(f"[red][{worker_id}] fail {index + 1}/{len(entries)} :: {entry['title']} :: {e}[/red]")
                continue
            success += 1
            providers = data.get("providersUsed") if isinstance(data, dict) else None
            provider_count = len(providers) if isinstance(providers, list) else 0
            console.print(
                f"[{worker_id}] ok {index + 1}/{len(entries)} :: providers={provider_count} :: {entry['title']}"
            )

    async with aiohttp.ClientSession() as session:
        await asyncio.gather(*(worker(session, i + 1) for i in range(concurrency)))

    return success, failed


async def main(argv: Sequence[str], dataset_path: Optional[str] = None) -> None:
    offset = parse_int_flag(argv, "offset", 0)
    limit = parse_int_flag(argv, "limit", 80)
    concurrency = parse_int_flag(argv, "concurrency", 3)

    rows = await asyncio.to_thread(read_csv_file, dataset_path or config.DATASET_PATH)
    entries = select_entries(rows, offset, limit)
    logger.info(f"Warming image cache for {len(entries)} smoothie(s) via {config.IMAGE_API_BASE_URL}")

    success, failed = await warm_cache(entries, config.IMAGE_API_BASE_URL, concurrency)
    console.print(f"Done. success={success} failed={failed} total={len(entries)}")


if __name__ == "__main__":
    try:
        asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        logger.info("\nWarm-up interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Warm-up failed: {e}", exc_info=True)
        sys.exit(1)
