#!/usr/bin/env python3
"""Ad hoc query runner for the Smoothie catalog.

Run catalog queries directly without starting the API server.

Usage:
    python query.py "banane fraise"
    python query.py --sort rating --limit 10 "mangue"
    python query.py --exclude lait,yaourt --preset nuts,gluten ""
    python query.py --slug smoothie-banane-fraise-12
    python query.py --debug "kiwi"  # Show full JSON response

Features:
- Builds the catalog once from DATASET_PATH
- Same filtering, ordering and pagination as GET /api/smoothies
- Rich table output, or full JSON in debug mode
"""

import asyncio
import sys

from rich.console import Console
from rich.table import Table

from smoothies.catalog.search import get_recipe_by_slug, query_recipes
from smoothies.context import initialize_app_context
from smoothies.models.models import QueryOptions, RecipeListResponse
from smoothies.utils.config import config
from smoothies.utils.logger import logger

console = Console()

USAGE = (
    'Usage: python query.py [--sort random|rating|name] [--seed S] [--limit N] [--offset N] '
    '[--exclude a,b] [--preset vegan,nuts] [--debug] [--slug SLUG | "<search text>"]'
)

VALUE_FLAGS = {
    "--sort": "sort",
    "--seed": "seed",
    "--limit": "limit",
    "--offset": "offset",
    "--exclude": "exclude_ingredients",
    "--preset": "exclude_presets",
    "--slug": "slug",
}


def render_table(result: RecipeListResponse) -> Table:
    """Render one result page as a rich table."""
    table = Table(title=f"{result.total} smoothie(s), showing {result.offset + 1}-{result.offset + len(result.items)}")
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Ingredients")
    table.add_column("Tags", style="magenta")
    table.add_column("Score", justify="right")

    for item in result.items:
        tags = [key for key, value in item.tags.model_dump().items() if value]
        table.add_row(
            item.slug,
            item.title,
            ", ".join(item.ingredients[:6]),
            ", ".join(tags),
            str(item.popularity_score),
        )
    return table


def parse_args(argv: list[str]) -> tuple[dict, bool]:
    """Parse leading --flags; the remaining arguments form the search text.

    Raises:
        ValueError: On an unknown flag or a flag missing its value.
    """
    values: dict = {}
    debug = False
    index = 0

    while index < len(argv) and argv[index].startswith("--"):
        flag = argv[index]
        if flag == "--debug":
            debug = True
            index += 1
        elif flag in VALUE_FLAGS:
            if index + 1 >= len(argv):
                raise ValueError(f"{flag} flag requires a value")
            values[VALUE_FLAGS[flag]] = argv[index + 1]
            index += 2
        else:
            raise ValueError(f"Unknown flag: {flag}")

    values["q"] = " ".join(argv[index:]).strip() or None
    return values, debug


async def run_query(values: dict, debug: bool = False) -> None:
    """Execute a single catalog query (or slug lookup) and print the result."""
    context = initialize_app_context(config)
    catalog = await context.catalog_store.get()

    slug = values.pop("slug", None)
    if slug:
        recipe = get_recipe_by_slug(catalog, slug)
        if recipe is None:
            console.print(f"[red]✗ Smoothie not found: {slug}[/red]")
            sys.exit(1)
        console.print_json(data=recipe.model_dump(mode="json", by_alias=True))
        return

    options = QueryOptions(**values)
    logger.info(f"Running query: {options.model_dump(exclude_defaults=True)}")
    result = query_recipes(catalog, options)

    console.print()
    if debug:
        console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
        console.print_json(data=result.model_dump(mode="json", by_alias=True))
        return

    if not result.items:
        console.print("[yellow]No smoothie matches this query[/yellow]")
        return
    console.print(render_table(result))
    if result.next_offset is not None:
        console.print(f"[dim]More results: --offset {result.next_offset}[/dim]")


if __name__ == "__main__":
    try:
        parsed, debug_mode = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        sys.exit(1)

    try:
        asyncio.run(run_query(parsed, debug=debug_mode))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)
