"""Photo search providers (Pexels, Pixabay, Unsplash).

Each provider is optional: without a credential it contributes nothing.
Any transport error, timeout, non-2xx status or unexpected payload is logged
and counts as zero results; provider failures never reach the caller.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from smoothies.models.models import ImageSuggestion
from smoothies.utils.config import Config, config
from smoothies.utils.logger import logger
from smoothies.utils.safe import safe_execute_async


async def fetch_json_with_timeout(
    session: aiohttp.ClientSession,
    url: str,
    params: dict[str, str],
    headers: Optional[dict[str, str]] = None,
    timeout_seconds: float = 8,
) -> Any:
    """GET a JSON document, aborting the request once timeout_seconds elapse.

    Raises:
        aiohttp.ClientResponseError: On non-2xx status.
        asyncio.TimeoutError: When the timeout elapses (the request is cancelled).
    """
    async with session.get(
        url,
        params=params,
        headers=headers,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds),
    ) as response:
        response.raise_for_status()
        return await response.json(content_type=None)


def _int_or_none(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


class PhotoProvider(ABC):
    """Base class: credential gating, timeout and graceful failure around _search()."""

    name: str = ""
    endpoint: str = ""

    def __init__(self, api_key: str, timeout_seconds: float = 8) -> None:
        self.api_key = (api_key or "").strip()
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, session: aiohttp.ClientSession, query: str, limit: int) -> list[ImageSuggestion]:
        """Search photos for query; [] when unconfigured or on any failure."""
        if not self.is_configured:
            logger.debug(f"{self.name} skipped: no credential configured")
            return []

        items = await safe_execute_async(
            self._search(session, query, limit),
            f"{self.name} search failed for '{query}'",
            log_level="warning",
            default_return=[],
        )
        logger.debug(f"{self.name} returned {len(items)} item(s) for '{query}'", extra={"provider": self.name})
        return items

    async def _search(self, session: aiohttp.ClientSession, query: str, limit: int) -> list[ImageSuggestion]:
        payload = await fetch_json_with_timeout(
            session,
            self.endpoint,
            params=self.build_params(query, limit),
            headers=self.build_headers(),
            timeout_seconds=self.timeout_seconds,
        )
        return self.parse(_dict(payload))

    @abstractmethod
    def build_params(self, query: str, limit: int) -> dict[str, str]:
        """Query-string parameters for one search request."""

    def build_headers(self) -> Optional[dict[str, str]]:
        return None

    @abstractmethod
    def parse(self, payload: dict) -> list[ImageSuggestion]:
        """Map the provider payload to suggestions (unsanitized)."""


class PexelsProvider(PhotoProvider):
    name = "pexels"
    endpoint = "https://api.pexels.com/v1/search"

    def build_params(self, query: str, limit: int) -> dict[str, str]:
        return {"query": query, "per_page": str(max(limit, 4)), "orientation": "landscape"}

    def build_headers(self) -> dict[str, str]:
        return {"Authorization": self.api_key}

    def parse(self, payload: dict) -> list[ImageSuggestion]:
        items = []
        for photo in payload.get("photos") or []:
            photo = _dict(photo)
            src = {key: _str_or_none(value) for key, value in _dict(photo.get("src")).items()}
            items.append(
                ImageSuggestion(
                    url=src.get("large2x") or src.get("large") or src.get("medium") or "",
                    thumb_url=src.get("small") or src.get("medium"),
                    provider="pexels",
                    author=_str_or_none(photo.get("photographer")),
                    width=_int_or_none(photo.get("width")),
                    height=_int_or_none(photo.get("height")),
                )
            )
        return items


class PixabayProvider(PhotoProvider):
    name = "pixabay"
    endpoint = "https://pixabay.com/api/"

    def build_params(self, query: str, limit: int) -> dict[str, str]:
        return {
            "key": self.api_key,
            "q": query,
            "image_type": "photo",
            "category": "food",
            "safesearch": "true",
            "per_page": str(max(limit, 6)),
        }

    def parse(self, payload: dict) -> list[ImageSuggestion]:
        items = []
        for hit in payload.get("hits") or []:
            hit = _dict(hit)
            large = _str_or_none(hit.get("largeImageURL"))
            web = _str_or_none(hit.get("webformatURL"))
            items.append(
                ImageSuggestion(
                    url=large or web or "",
                    thumb_url=web or large,
                    provider="pixabay",
                    author=_str_or_none(hit.get("user")),
                    width=_int_or_none(hit.get("imageWidth")),
                    height=_int_or_none(hit.get("imageHeight")),
                )
            )
        return items


class UnsplashProvider(PhotoProvider):
    name = "unsplash"
    endpoint = "https://api.unsplash.com/search/photos"

    def build_params(self, query: str, limit: int) -> dict[str, str]:
        return {"query": query, "orientation": "landscape", "per_page": str(max(limit, 5))}

    def build_headers(self) -> dict[str, str]:
        return {"Authorization": f"Client-ID {self.api_key}"}

    def parse(self, payload: dict) -> list[ImageSuggestion]:
        items = []
        for result in payload.get("results") or []:
            result = _dict(result)
            urls = _dict(result.get("urls"))
            regular = _str_or_none(urls.get("regular"))
            small = _str_or_none(urls.get("small"))
            items.append(
                ImageSuggestion(
                    url=regular or small or "",
                    thumb_url=small or regular,
                    provider="unsplash",
                    author=_str_or_none(_dict(result.get("user")).get("name")),
                    width=_int_or_none(result.get("width")),
                    height=_int_or_none(result.get("height")),
                )
            )
        return items


def default_providers(settings: Config = config) -> list[PhotoProvider]:
    """Providers in priority order: Pexels, then Pixabay, then Unsplash."""
    timeout = settings.IMAGE_FETCH_TIMEOUT_SECONDS
    return [
        PexelsProvider(settings.PEXELS_API_KEY, timeout),
        PixabayProvider(settings.PIXABAY_API_KEY, timeout),
        UnsplashProvider(settings.UNSPLASH_ACCESS_KEY, timeout),
    ]
