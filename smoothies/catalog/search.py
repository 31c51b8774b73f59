"""Query engine over the in-memory catalog: filter → order → paginate."""

from typing import Optional

from smoothies.catalog.dataset import Catalog
from smoothies.catalog.tags import matches_preset
from smoothies.models.models import QueryOptions, Recipe, RecipeDetail, RecipeListResponse
from smoothies.utils.text import normalize_for_search, slugify

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619


def hash32(value: str) -> int:
    """32-bit FNV-1a over the UTF-16 code units of value, as an unsigned int."""
    data = value.encode("utf-16-le")
    h = FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def random_order_score(seed: str, recipe_id: str) -> int:
    """Deterministic pseudo-random rank of a recipe for a given seed."""
    return hash32(f"{seed}:{recipe_id}")


def filter_recipes(catalog: Catalog, options: QueryOptions) -> list[Recipe]:
    """Apply id scope, free-text terms, ingredient and preset exclusions, in that order."""
    recipes = list(catalog.items)

    include_ids = set(options.include_ids)
    if include_ids:
        recipes = [recipe for recipe in recipes if recipe.id in include_ids]

    terms = normalize_for_search(options.q or "").split()
    if terms:
        recipes = [recipe for recipe in recipes if all(term in recipe.search_blob for term in terms)]

    excluded_ingredients = {slugify(value) for value in options.exclude_ingredients}
    if excluded_ingredients:
        recipes = [recipe for recipe in recipes if excluded_ingredients.isdisjoint(recipe.ingredient_slugs)]

    excluded_presets = set(options.exclude_presets)
    if excluded_presets:
        recipes = [
            recipe
            for recipe in recipes
            if not any(matches_preset(recipe.tags, preset) for preset in excluded_presets)
        ]

    return recipes


def order_recipes(recipes: list[Recipe], options: QueryOptions) -> list[tuple[Recipe, int]]:
    """Attach an order score to each recipe and sort according to options.sort.

    - random: ascending seeded hash, title as tiebreak
    - rating: descending popularity, title as tiebreak
    - name: normalized title only
    """
    if options.sort == "random":
        decorated = [(recipe, random_order_score(options.seed, recipe.id)) for recipe in recipes]
        decorated.sort(key=lambda pair: (pair[1], pair[0].sort_name))
    elif options.sort == "name":
        decorated = [(recipe, recipe.popularity_score) for recipe in recipes]
        decorated.sort(key=lambda pair: pair[0].sort_name)
    else:
        decorated = [(recipe, recipe.popularity_score) for recipe in recipes]
        decorated.sort(key=lambda pair: (-pair[0].popularity_score, pair[0].sort_name))
    return decorated


def query_recipes(catalog: Catalog, options: Optional[QueryOptions] = None) -> RecipeListResponse:
    """Run a list query and return one page plus the offset of the next one.

    next_offset is None once the page reaches the end of the filtered set.
    The catalog never mutates, so offsets stay valid across calls.
    """
    options = options or QueryOptions()
    ordered = order_recipes(filter_recipes(catalog, options), options)

    page = ordered[options.offset : options.offset + options.limit]
    end = options.offset + len(page)

    return RecipeListResponse(
        items=[recipe.to_list_item(order_score) for recipe, order_score in page],
        total=len(ordered),
        offset=options.offset,
        next_offset=end if end < len(ordered) else None,
        limit=options.limit,
    )


def get_recipe_by_slug(catalog: Catalog, slug: str) -> Optional[RecipeDetail]:
    """Look up a recipe by slug, falling back to the id encoded in its numeric suffix."""
    recipe = catalog.by_slug.get(slug)
    if recipe is None:
        suffix = slug.rsplit("-", 1)[-1].strip()
        if suffix.isdigit() and int(suffix) > 0:
            recipe = catalog.by_id.get(f"sm-{int(suffix)}")
    return recipe.to_detail() if recipe else None
