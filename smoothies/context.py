"""Application context factory for the Smoothie catalog service.

Wires the process-wide singletons shared by the HTTP API and the CLIs:
the catalog store (built lazily from the CSV) and the image suggestion
service with its durable cache.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from smoothies.catalog.dataset import CatalogStore
from smoothies.images.cache import ImageCacheStore
from smoothies.images.providers import PhotoProvider, default_providers
from smoothies.images.suggestions import ImageSuggestionService
from smoothies.utils.config import Config, config
from smoothies.utils.logger import logger


@dataclass
class AppContext:
    catalog_store: CatalogStore
    image_cache: ImageCacheStore
    image_service: ImageSuggestionService
    settings: Config

    async def aclose(self) -> None:
        """Make sure the latest image cache index reaches the disk."""
        await self.image_cache.flush()


def _configure_providers(settings: Config, providers: Optional[Sequence[PhotoProvider]]) -> list[PhotoProvider]:
    providers = list(providers) if providers is not None else default_providers(settings)
    enabled = [provider.name for provider in providers if provider.is_configured]
    if enabled:
        logger.info(f"✓ Photo providers enabled: {', '.join(enabled)}")
    else:
        logger.warning("No photo provider credential configured, image suggestions will be empty")
    return providers


def initialize_app_context(
    settings: Config = config,
    dataset_path: Optional[str] = None,
    providers: Optional[Sequence[PhotoProvider]] = None,
) -> AppContext:
    """Create the catalog store and the image suggestion service.

    Nothing is read from disk here: the catalog is built on first use and
    the image cache is loaded on the first suggestion request.

    Args:
        settings: Configuration to use (defaults to the module-level config).
        dataset_path: Override for settings.DATASET_PATH.
        providers: Override for the default Pexels/Pixabay/Unsplash chain.
    """
    logger.info("=== Initializing Smoothie catalog context ===")

    catalog_store = CatalogStore(dataset_path or settings.DATASET_PATH, settings)
    logger.info(f"✓ Catalog source: {catalog_store.dataset_path}")

    image_cache = ImageCacheStore(settings.IMAGE_CACHE_PATH, settings.IMAGE_CACHE_SEED_PATH)
    logger.info(f"✓ Image cache: {image_cache.runtime_path} (seed: {image_cache.seed_path})")

    image_service = ImageSuggestionService(image_cache, _configure_providers(settings, providers), settings)

    logger.info("=== Context initialization complete ===")
    return AppContext(
        catalog_store=catalog_store,
        image_cache=image_cache,
        image_service=image_service,
        settings=settings,
    )
