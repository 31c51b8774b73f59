"""Configuration management for the Smoothie catalog service.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Dataset CSV file, read once per process
        self.DATASET_PATH: str = os.getenv("DATASET_PATH", "smoothies.csv")
        # Server Port
        self.PORT: int = int(os.getenv("PORT", "3000"))

        # Query pagination: default page size and hard upper bound
        self.DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "24"))
        self.MAX_PAGE_LIMIT: int = int(os.getenv("MAX_PAGE_LIMIT", "60"))

        # Popularity score weights
        # Each ingredient contributes its global frequency, capped so that staples
        # like banana do not dominate the ranking
        self.POPULARITY_INGREDIENT_CAP: int = int(os.getenv("POPULARITY_INGREDIENT_CAP", "400"))
        self.POPULARITY_VEGAN_BONUS: int = int(os.getenv("POPULARITY_VEGAN_BONUS", "40"))
        self.POPULARITY_LACTOSE_FREE_BONUS: int = int(os.getenv("POPULARITY_LACTOSE_FREE_BONUS", "25"))
        self.POPULARITY_IMAGE_BONUS: int = int(os.getenv("POPULARITY_IMAGE_BONUS", "10"))

        # Popular ingredient filter chips: minimum occurrences and maximum chips exposed
        self.INGREDIENT_OPTION_MIN_COUNT: int = int(os.getenv("INGREDIENT_OPTION_MIN_COUNT", "35"))
        self.INGREDIENT_OPTION_LIMIT: int = int(os.getenv("INGREDIENT_OPTION_LIMIT", "36"))

        # Image suggestion cache
        # IMAGE_CACHE_TTL_SECONDS: lifetime of entries with results (default 14 days, never below 1 hour)
        self.IMAGE_CACHE_TTL_SECONDS: int = max(
            3600, int(os.getenv("IMAGE_CACHE_TTL_SECONDS", str(60 * 60 * 24 * 14)))
        )
        # IMAGE_CACHE_EMPTY_TTL_SECONDS: lifetime of entries where every provider came back empty
        # Kept short so a transient provider outage is not remembered for weeks
        self.IMAGE_CACHE_EMPTY_TTL_SECONDS: int = min(
            self.IMAGE_CACHE_TTL_SECONDS, int(os.getenv("IMAGE_CACHE_EMPTY_TTL_SECONDS", str(60 * 60 * 6)))
        )
        # IMAGE_CACHE_PATH: writable runtime cache file
        self.IMAGE_CACHE_PATH: str = (
            os.getenv("IMAGE_CACHE_PATH", "").strip() or "/tmp/smoothies-image-suggestions-cache.json"
        )
        # IMAGE_CACHE_SEED_PATH: read-only cache shipped with the deployment
        self.IMAGE_CACHE_SEED_PATH: str = os.getenv(
            "IMAGE_CACHE_SEED_PATH", os.path.join("data", "image-suggestions-cache.json")
        )
        # Per-provider request timeout in seconds
        self.IMAGE_FETCH_TIMEOUT_SECONDS: float = float(os.getenv("IMAGE_FETCH_TIMEOUT_SECONDS", "8"))
        # Number of suggestions returned when the caller does not ask for a specific amount
        self.IMAGE_DEFAULT_LIMIT: int = int(os.getenv("IMAGE_DEFAULT_LIMIT", "6"))
        self.IMAGE_MAX_LIMIT: int = int(os.getenv("IMAGE_MAX_LIMIT", "10"))

        # Photo provider credentials: a missing key disables that provider silently
        self.PEXELS_API_KEY: str = os.getenv("PEXELS_API_KEY", "").strip()
        self.PIXABAY_API_KEY: str = os.getenv("PIXABAY_API_KEY", "").strip()
        self.UNSPLASH_ACCESS_KEY: str = os.getenv("UNSPLASH_ACCESS_KEY", "").strip()

        # Base URL used by warm_cache.py to reach a running API
        self.IMAGE_API_BASE_URL: str = os.getenv("IMAGE_API_BASE_URL", "http://localhost:3000")

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a numeric setting is outside its allowed range.
        """
        if self.MAX_PAGE_LIMIT < 1:
            raise ValueError(f"MAX_PAGE_LIMIT must be at least 1, got: {self.MAX_PAGE_LIMIT}")
        if not (1 <= self.DEFAULT_PAGE_LIMIT <= self.MAX_PAGE_LIMIT):
            raise ValueError(
                f"DEFAULT_PAGE_LIMIT must be between 1 and MAX_PAGE_LIMIT ({self.MAX_PAGE_LIMIT}), "
                f"got: {self.DEFAULT_PAGE_LIMIT}"
            )
        if self.IMAGE_MAX_LIMIT < 1:
            raise ValueError(f"IMAGE_MAX_LIMIT must be at least 1, got: {self.IMAGE_MAX_LIMIT}")
        if not (1 <= self.IMAGE_DEFAULT_LIMIT <= self.IMAGE_MAX_LIMIT):
            raise ValueError(
                f"IMAGE_DEFAULT_LIMIT must be between 1 and IMAGE_MAX_LIMIT ({self.IMAGE_MAX_LIMIT}), "
                f"got: {self.IMAGE_DEFAULT_LIMIT}"
            )
        for name in (
            "POPULARITY_INGREDIENT_CAP",
            "POPULARITY_VEGAN_BONUS",
            "POPULARITY_LACTOSE_FREE_BONUS",
            "POPULARITY_IMAGE_BONUS",
            "INGREDIENT_OPTION_MIN_COUNT",
            "INGREDIENT_OPTION_LIMIT",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got: {value}")
        if self.IMAGE_FETCH_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"IMAGE_FETCH_TIMEOUT_SECONDS must be positive, got: {self.IMAGE_FETCH_TIMEOUT_SECONDS}"
            )
        if self.IMAGE_CACHE_EMPTY_TTL_SECONDS < 1:
            raise ValueError(
                f"IMAGE_CACHE_EMPTY_TTL_SECONDS must be at least 1, got: {self.IMAGE_CACHE_EMPTY_TTL_SECONDS}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
