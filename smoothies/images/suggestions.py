"""Image suggestion service: cache lookup, provider fallback, cache update."""

from typing import Optional, Sequence

import aiohttp

from smoothies.images.cache import ImageCacheStore, now_ms, sanitize_items
from smoothies.images.providers import PhotoProvider, default_providers
from smoothies.images.query_terms import build_image_query, clamp_limit, make_cache_key
from smoothies.models.models import (
    ImageCacheEntry,
    ImageSuggestion,
    ImageSuggestionRequest,
    ImageSuggestionResponse,
)
from smoothies.utils.config import Config, config
from smoothies.utils.logger import logger


class ImageSuggestionService:
    """Answers suggestion requests from the cache, falling back to the photo providers.

    Providers are tried one after the other in priority order; the loop stops
    as soon as the accumulated results reach the requested limit. Every fresh
    lookup (even an empty one) is cached, with a shorter TTL for empty results.
    """

    def __init__(
        self,
        store: ImageCacheStore,
        providers: Optional[Sequence[PhotoProvider]] = None,
        settings: Config = config,
    ) -> None:
        self.store = store
        self.providers = list(providers) if providers is not None else default_providers(settings)
        self.settings = settings

    async def fetch_provider_results(
        self, query: str, limit: int
    ) -> tuple[list[str], list[ImageSuggestion]]:
        """Query providers sequentially until limit items are collected.

        Returns:
            (providers that contributed at least one item, sanitized items truncated to limit)
        """
        providers_used: list[str] = []
        combined: list[ImageSuggestion] = []

        configured = [provider for provider in self.providers if provider.is_configured]
        if not configured:
            logger.debug(f"No photo provider configured; skipping lookup for '{query}'")
            return providers_used, combined

        async with aiohttp.ClientSession() as session:
            for provider in configured:
                items = await provider.search(session, query, limit)
                if not items:
                    continue
                providers_used.append(provider.name)
                combined.extend(items)
                if len(combined) >= limit:
                    break

        return providers_used, sanitize_items(combined)[:limit]

    async def suggest(self, request: ImageSuggestionRequest) -> ImageSuggestionResponse:
        query = build_image_query(request.title, request.tags)
        limit = clamp_limit(request.limit)
        cache_key = make_cache_key(query, limit)
        await self.store.ensure_loaded()

        now = now_ms()
        cached = self.store.get(cache_key)
        if cached is not None and cached.is_live(now) and not request.refresh:
            logger.debug(f"Image cache hit for '{query}'", extra={"cache_key": cache_key})
            return ImageSuggestionResponse(
                query=query,
                cache_key=cache_key,
                cache_hit=True,
                providers_used=cached.providers,
                items=cached.items[:limit],
            )

        providers_used, items = await self.fetch_provider_results(query, limit)
        ttl_seconds = (
            self.settings.IMAGE_CACHE_TTL_SECONDS if items else self.settings.IMAGE_CACHE_EMPTY_TTL_SECONDS
        )
        self.store.put(
            ImageCacheEntry(
                key=cache_key,
                query=query,
                created_at=now,
                expires_at=now + ttl_seconds * 1000,
                providers=providers_used,
                items=items,
            )
        )
        # Not awaited: the response never waits on disk I/O
        self.store.persist()

        logger.info(
            f"Image suggestions for '{query}': {len(items)} item(s) from {providers_used or 'no provider'}",
            extra={"cache_key": cache_key},
        )
        return ImageSuggestionResponse(
            query=query,
            cache_key=cache_key,
            cache_hit=False,
            providers_used=providers_used,
            items=items,
        )
