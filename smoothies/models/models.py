"""Data models and schemas for the Smoothie catalog service.

Defines Pydantic models for catalog records, query parameters/results and the
image suggestion cache. All models use Pydantic v2; the JSON surface (HTTP
responses and the cache file) uses camelCase aliases.
"""

import math
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from smoothies.utils.config import config

PresetKey = Literal["vegan", "lactose", "nuts", "peanut", "soy", "gluten", "sesame"]
SortKey = Literal["random", "rating", "name"]
ImageProviderName = Literal["pexels", "pixabay", "unsplash"]

PRESET_KEYS: tuple[str, ...] = ("vegan", "lactose", "nuts", "peanut", "soy", "gluten", "sesame")
SORT_KEYS: tuple[str, ...] = ("random", "rating", "name")


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases, constructible with either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    """Immutable variant for records that never change after construction."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _coerce_number(value) -> Optional[float]:
    """Parse an int/float/str into a finite float, None when that is impossible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _split_csv(value) -> list[str]:
    """Accept a list or a comma-separated string; return stripped, non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []
    return [str(entry).strip() for entry in value if str(entry).strip()]


# ============================================================================
# Catalog records
# ============================================================================


class RecipeTags(FrozenCamelModel):
    """Allergen/diet flags inferred from recipe text. Flags are independent, not exclusive."""

    vegan: bool = False
    lactose: bool = False
    nuts: bool = False
    peanut: bool = False
    soy: bool = False
    gluten: bool = False
    sesame: bool = False


class RecipeListItem(FrozenCamelModel):
    """Public projection of a recipe as returned by list queries."""

    id: str
    slug: str
    title: str
    image_url: Optional[str] = None
    has_image: bool = False
    ingredients: List[str] = Field(default_factory=list)
    portions: Optional[str] = None
    source: str
    source_link: Optional[str] = None
    directions_preview: Optional[str] = None
    tags: RecipeTags
    popularity_score: int = 0
    order_score: int = 0


class RecipeDetail(RecipeListItem):
    """Full recipe payload returned by slug lookups."""

    ingredients_raw: str = ""
    ingredient_lines: List[str] = Field(default_factory=list)
    directions: List[str] = Field(default_factory=list)


class Recipe(FrozenCamelModel):
    """Catalog record built once from a CSV row.

    The search/sort helpers (search_blob, ingredient_slugs, sort_name) are
    internal and never serialised.
    """

    id: str
    slug: str
    title: str
    source: str
    source_link: Optional[str] = None
    portions: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    ingredients_raw: str = ""
    ingredient_lines: List[str] = Field(default_factory=list)
    directions: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    tags: RecipeTags
    popularity_score: Annotated[int, Field(ge=0)] = 0

    search_blob: str = Field("", exclude=True)
    ingredient_slugs: List[str] = Field(default_factory=list, exclude=True)
    sort_name: str = Field("", exclude=True)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    @property
    def directions_preview(self) -> Optional[str]:
        return self.directions[0] if self.directions else None

    def _public_fields(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "image_url": self.image_url,
            "has_image": self.has_image,
            "ingredients": list(self.ingredients),
            "portions": self.portions,
            "source": self.source,
            "source_link": self.source_link,
            "directions_preview": self.directions_preview,
            "tags": self.tags,
            "popularity_score": self.popularity_score,
        }

    def to_list_item(self, order_score: int = 0) -> RecipeListItem:
        return RecipeListItem(**self._public_fields(), order_score=order_score)

    def to_detail(self) -> RecipeDetail:
        return RecipeDetail(
            **self._public_fields(),
            order_score=0,
            ingredients_raw=self.ingredients_raw,
            ingredient_lines=list(self.ingredient_lines),
            directions=list(self.directions),
        )


class ExclusionPresetOption(FrozenCamelModel):
    """A diet/allergen preset with the number of recipes it would hide."""

    key: PresetKey
    label: str
    description: str
    count: int


class PopularIngredientOption(FrozenCamelModel):
    """A frequent ingredient offered as an exclusion chip."""

    slug: str
    label: str
    count: int


class DatasetMeta(FrozenCamelModel):
    """Aggregates computed once when the catalog is built."""

    total: int = 0
    with_images: int = 0
    preset_options: List[ExclusionPresetOption] = Field(default_factory=list)
    ingredient_options: List[PopularIngredientOption] = Field(default_factory=list)


# ============================================================================
# Query API
# ============================================================================


class QueryOptions(CamelModel):
    """Filter/sort/pagination parameters of a catalog query.

    Lenient by construction: invalid values are normalised rather than rejected.
    - limit: missing/zero/non-numeric → DEFAULT_PAGE_LIMIT, otherwise clamped to [1, MAX_PAGE_LIMIT]
    - offset: truncated and floored at 0
    - seed: blank → "seed"
    - exclude_presets: unknown keys dropped
    - sort: unknown value → "random"
    """

    q: Optional[str] = None
    exclude_ingredients: List[str] = Field(default_factory=list)
    exclude_presets: List[PresetKey] = Field(default_factory=list)
    include_ids: List[str] = Field(default_factory=list)
    sort: SortKey = "random"
    seed: str = "seed"
    offset: int = 0
    limit: int = config.DEFAULT_PAGE_LIMIT

    @field_validator("exclude_ingredients", "include_ids", mode="before")
    @classmethod
    def parse_string_lists(cls, value) -> list[str]:
        return _split_csv(value)

    @field_validator("exclude_presets", mode="before")
    @classmethod
    def drop_unknown_presets(cls, value) -> list[str]:
        return [preset for preset in _split_csv(value) if preset in PRESET_KEYS]

    @field_validator("sort", mode="before")
    @classmethod
    def default_sort(cls, value) -> str:
        return value if value in SORT_KEYS else "random"

    @field_validator("seed", mode="before")
    @classmethod
    def default_seed(cls, value) -> str:
        if value is None:
            return "seed"
        return str(value).strip() or "seed"

    @field_validator("offset", mode="before")
    @classmethod
    def clamp_offset(cls, value) -> int:
        number = _coerce_number(value)
        if number is None:
            return 0
        return max(0, math.trunc(number))

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, value) -> int:
        number = _coerce_number(value)
        if not number:
            return config.DEFAULT_PAGE_LIMIT
        return max(1, min(config.MAX_PAGE_LIMIT, math.trunc(number)))


class RecipeListResponse(CamelModel):
    """One page of query results with a cursor for continuation."""

    items: List[RecipeListItem] = Field(default_factory=list)
    total: int
    offset: int
    next_offset: Optional[int] = None
    limit: int


# ============================================================================
# Image suggestions
# ============================================================================


class ImageSuggestion(FrozenCamelModel):
    """A photo candidate returned by one of the providers."""

    url: str
    thumb_url: Optional[str] = None
    provider: ImageProviderName
    author: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class ImageCacheEntry(FrozenCamelModel):
    """Cached result of one suggestion lookup. Timestamps are epoch milliseconds."""

    key: str
    query: str
    created_at: int = 0
    expires_at: int
    providers: List[ImageProviderName] = Field(default_factory=list)
    items: List[ImageSuggestion] = Field(default_factory=list)

    def is_live(self, now_ms: int) -> bool:
        return self.expires_at > now_ms


class ImageCacheFile(CamelModel):
    """On-disk cache document. Entries stay raw so one bad entry cannot void the file."""

    version: Literal[1]
    # Informational only; never read back
    updated_at: Optional[Any] = None
    entries: List[Any] = Field(default_factory=list)


class ImageSuggestionRequest(CamelModel):
    """Input of an image suggestion lookup. Requires a title or at least one tag."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    limit: Optional[int] = None
    refresh: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def blank_title_to_none(cls, value) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value) -> list[str]:
        return _split_csv(value)

    @field_validator("limit", mode="before")
    @classmethod
    def parse_limit(cls, value) -> Optional[int]:
        number = _coerce_number(value)
        return None if number is None else math.trunc(number)

    @field_validator("refresh", mode="before")
    @classmethod
    def parse_refresh(cls, value) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return False

    @model_validator(mode="after")
    def validate_title_or_tags(self) -> "ImageSuggestionRequest":
        """Ensure either title or tags are provided."""
        if not self.title and not self.tags:
            raise ValueError("Either title or tags must be provided")
        return self


class ImageSuggestionResponse(CamelModel):
    """Result of an image suggestion lookup."""

    query: str
    cache_key: str
    cache_hit: bool
    providers_used: List[ImageProviderName] = Field(default_factory=list)
    items: List[ImageSuggestion] = Field(default_factory=list)
