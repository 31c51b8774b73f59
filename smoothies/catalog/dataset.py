"""Dataset builder: turns the smoothie CSV into an immutable in-memory catalog.

The catalog is built once per process (CatalogStore) and never mutated
afterwards, so reads need no locking.

Build steps:
1. Tokenize the CSV (header row + data rows)
2. Convert each non-blank row into a Recipe; the ordinal used for ids and
   slugs counts accepted recipes only
3. Accumulate ingredient frequencies and preset match counts
4. Second pass: popularity score per recipe
5. Rank preset and popular-ingredient options, build slug/id indexes
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from smoothies.catalog.csv_reader import read_csv_file
from smoothies.catalog.parsing import (
    detect_image_url,
    parse_directions,
    parse_ingredient_lines,
    parse_ingredient_tokens,
    safe_protocol_url,
)
from smoothies.catalog.tags import PRESET_LABELS, compute_tags, matches_preset
from smoothies.models.models import (
    PRESET_KEYS,
    DatasetMeta,
    ExclusionPresetOption,
    PopularIngredientOption,
    Recipe,
)
from smoothies.utils.config import Config, config
from smoothies.utils.logger import logger
from smoothies.utils.text import (
    DEFAULT_SLUG,
    normalize_for_search,
    normalize_whitespace,
    slugify,
    unique_strings,
)

UNKNOWN_SOURCE = "Source inconnue"

# Ingredient slugs that say nothing about a recipe (ice, water, measuring words)
STOP_INGREDIENTS = frozenset(
    {
        "cubes",
        "cube",
        "glacons",
        "glace",
        "glace-pilee",
        "ice",
        "eau",
        "eau-froide",
        "water",
        "de",
        "du",
        "des",
    }
)


@dataclass(frozen=True)
class Catalog:
    """Immutable catalog snapshot with its lookup indexes and precomputed meta."""

    items: tuple[Recipe, ...] = ()
    by_slug: dict[str, Recipe] = field(default_factory=dict)
    by_id: dict[str, Recipe] = field(default_factory=dict)
    meta: DatasetMeta = field(default_factory=DatasetMeta)


def ingredient_frequency_key(ingredient: str) -> Optional[str]:
    """Slug under which an ingredient is counted, or None for non-informative tokens."""
    slug = slugify(ingredient)
    if slug == DEFAULT_SLUG and DEFAULT_SLUG not in normalize_for_search(ingredient):
        # Nothing alphanumeric survived (e.g. "½")
        return None
    if slug in STOP_INGREDIENTS or len(slug) < 2:
        return None
    return slug


def row_to_recipe(row: Sequence[str], header: Sequence[str], index: int) -> Optional[Recipe]:
    """Build a Recipe from one CSV row; None for blank rows.

    Args:
        row: Raw field strings (may be shorter than the header).
        header: Normalized column names.
        index: Number of recipes accepted so far (0-based), used for id/slug.
    """
    if not row or all(not normalize_whitespace(cell) for cell in row):
        return None

    record = {key: (row[i] if i < len(row) else "") for i, key in enumerate(header)}

    raw_title = record.get("title", "")
    title = normalize_whitespace(raw_title or f"Smoothie {index + 1}")
    if not title:
        return None

    ner_raw = record.get("NER", "")
    ingredients_cell = record.get("ingredients", "")
    ingredient_tokens = parse_ingredient_tokens(ner_raw, ingredients_cell)
    ingredient_lines = parse_ingredient_lines(ingredients_cell, ingredient_tokens)
    directions = parse_directions(record.get("directions", ""))
    ingredients_raw = normalize_whitespace(ingredients_cell)

    numeric_id = index + 1
    searchable = [title, ingredients_raw, *ingredient_tokens, *ingredient_lines, *directions]

    return Recipe(
        id=f"sm-{numeric_id}",
        slug=f"{slugify(title)}-{numeric_id}",
        title=title,
        source=normalize_whitespace(record.get("source", "") or UNKNOWN_SOURCE),
        source_link=safe_protocol_url(record.get("link")),
        portions=normalize_whitespace(record.get("portions", "")) or None,
        ingredients=ingredient_tokens,
        ingredients_raw=ingredients_raw,
        ingredient_lines=ingredient_lines,
        directions=directions,
        image_url=detect_image_url(record),
        tags=compute_tags(ingredient_tokens, ingredients_cell, directions),
        search_blob=normalize_for_search(" | ".join(searchable)),
        ingredient_slugs=unique_strings(slugify(token) for token in ingredient_tokens),
        sort_name=normalize_for_search(title),
    )


def popularity_score(recipe: Recipe, frequencies: dict[str, int], settings: Config = config) -> int:
    """Sum of capped ingredient frequencies plus vegan / lactose-free / photo bonuses."""
    score = 0
    for ingredient in recipe.ingredients:
        key = ingredient_frequency_key(ingredient)
        if key in frequencies:
            score += min(frequencies[key], settings.POPULARITY_INGREDIENT_CAP)
    if recipe.tags.vegan:
        score += settings.POPULARITY_VEGAN_BONUS
    if not recipe.tags.lactose:
        score += settings.POPULARITY_LACTOSE_FREE_BONUS
    if recipe.has_image:
        score += settings.POPULARITY_IMAGE_BONUS
    return score


def build_catalog(rows: Sequence[Sequence[str]], settings: Config = config) -> Catalog:
    """Build a Catalog from tokenized CSV rows (first row is the header)."""
    if len(rows) < 2:
        logger.warning("Dataset has no data rows, catalog is empty")
        return Catalog()

    header = [normalize_whitespace(cell) for cell in rows[0]]
    recipes: list[Recipe] = []
    frequencies: dict[str, int] = {}
    labels: dict[str, str] = {}
    preset_counts = dict.fromkeys(PRESET_KEYS, 0)

    for row in rows[1:]:
        recipe = row_to_recipe(row, header, len(recipes))
        if recipe is None:
            continue
        recipes.append(recipe)

        for ingredient in recipe.ingredients:
            key = ingredient_frequency_key(ingredient)
            if key is None:
                continue
            frequencies[key] = frequencies.get(key, 0) + 1
            labels.setdefault(key, ingredient)

        for preset in PRESET_KEYS:
            if matches_preset(recipe.tags, preset):
                preset_counts[preset] += 1

    items = tuple(
        recipe.model_copy(update={"popularity_score": popularity_score(recipe, frequencies, settings)})
        for recipe in recipes
    )

    preset_options = sorted(
        (
            ExclusionPresetOption(key=key, label=label, description=description, count=preset_counts[key])
            for key, (label, description) in PRESET_LABELS.items()
        ),
        key=lambda option: (-option.count, normalize_for_search(option.label)),
    )
    ingredient_options = sorted(
        (
            PopularIngredientOption(slug=slug, label=labels[slug], count=count)
            for slug, count in frequencies.items()
            if count >= settings.INGREDIENT_OPTION_MIN_COUNT
        ),
        key=lambda option: (-option.count, normalize_for_search(option.label)),
    )[: settings.INGREDIENT_OPTION_LIMIT]

    meta = DatasetMeta(
        total=len(items),
        with_images=sum(1 for item in items if item.has_image),
        preset_options=preset_options,
        ingredient_options=ingredient_options,
    )
    return Catalog(
        items=items,
        by_slug={item.slug: item for item in items},
        by_id={item.id: item for item in items},
        meta=meta,
    )


def load_catalog(path: Union[str, Path], settings: Config = config) -> Catalog:
    """Read and build the catalog from a CSV file. I/O errors propagate."""
    started = time.perf_counter()
    catalog = build_catalog(read_csv_file(path), settings)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"Catalog built from {path}: {catalog.meta.total} recipes "
        f"({catalog.meta.with_images} with images) in {elapsed_ms:.0f}ms"
    )
    return catalog


class CatalogStore:
    """Once-initialized accessor for the process-wide catalog.

    The first get() starts the build; concurrent callers await the same
    in-flight task, so the CSV is parsed exactly once. A failed build is
    re-raised to every waiter and can be retried by the next call.
    """

    def __init__(self, dataset_path: Optional[Union[str, Path]] = None, settings: Config = config) -> None:
        self.dataset_path = Path(dataset_path or settings.DATASET_PATH)
        self.settings = settings
        self._catalog: Optional[Catalog] = None
        self._build_task: Optional[asyncio.Future] = None

    @property
    def is_loaded(self) -> bool:
        return self._catalog is not None

    async def get(self) -> Catalog:
        if self._catalog is not None:
            return self._catalog

        if self._build_task is None:
            logger.info(f"Building catalog from {self.dataset_path}...")
            self._build_task = asyncio.ensure_future(
                asyncio.to_thread(load_catalog, self.dataset_path, self.settings)
            )

        task = self._build_task
        try:
            # shield: a cancelled caller must not cancel the shared build
            catalog = await asyncio.shield(task)
        except Exception:
            if self._build_task is task:
                self._build_task = None
            raise

        self._catalog = catalog
        return catalog
