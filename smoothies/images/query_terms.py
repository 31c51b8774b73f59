"""Search query construction for photo providers.

Titles and tags in the dataset are French; photo search works best in
English, so known fruit names are translated and generic words dropped.
"""

import hashlib
import math
import re
import unicodedata
from typing import Optional, Sequence

from smoothies.utils.config import config

MAX_QUERY_TERMS = 5
MIN_TERMS_BEFORE_TITLE = 3
MIN_TERM_LENGTH = 3
FALLBACK_QUERY = "fruit smoothie drink"
SUFFIX_TERMS = ("smoothie", "drink")

STOP_TERMS = frozenset(
    {
        "smoothie",
        "smoothies",
        "recette",
        "recipe",
        "drink",
        "boisson",
        "cube",
        "cubes",
        "glace",
        "glacons",
        "eau",
        "water",
        "sucre",
        "sugar",
        "yaourt",
        "yogurt",
        "lait",
        "milk",
    }
)

# Keys are normalized (no accents), see normalize_term
TERM_TRANSLATION = {
    "banane": "banana",
    "bananes": "banana",
    "fraise": "strawberry",
    "fraises": "strawberry",
    "framboise": "raspberry",
    "framboises": "raspberry",
    "myrtille": "blueberry",
    "myrtilles": "blueberry",
    "mangue": "mango",
    "ananas": "pineapple",
    "kiwi": "kiwi",
    "peche": "peach",
    "peches": "peach",
    "pomme": "apple",
    "pommes": "apple",
    "poire": "pear",
    "poires": "pear",
    "orange": "orange",
    "oranges": "orange",
    "citron": "lemon",
    "citrons": "lemon",
    "lime": "lime",
    "limes": "lime",
    "raisin": "grape",
    "raisins": "grape",
    "avocat": "avocado",
    "avocats": "avocado",
    "coco": "coconut",
    "noix": "nut",
    "pasteque": "watermelon",
    "melon": "melon",
}

_COMBINING_MARKS_RE = re.compile("[\u0300-\u036f]")
_NON_TERM_CHARS_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_SPLIT_RE = re.compile(r"[\s-]+")


def normalize_term(value: str) -> str:
    """Accent-fold, lowercase and keep only [a-z0-9], whitespace and hyphens."""
    folded = _COMBINING_MARKS_RE.sub("", unicodedata.normalize("NFD", value)).lower()
    return _WHITESPACE_RE.sub(" ", _NON_TERM_CHARS_RE.sub(" ", folded)).strip()


def split_tokens(value: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT_RE.split(normalize_term(value)) if token]


def pick_query_terms(title: Optional[str], tags: Sequence[str]) -> list[str]:
    """Pick up to five distinct, translated terms: tags first, title only if tags gave fewer than three."""
    seen: set[str] = set()
    result: list[str] = []

    def consume(value: str) -> None:
        for token in split_tokens(value):
            if len(token) < MIN_TERM_LENGTH or token in STOP_TERMS:
                continue
            translated = TERM_TRANSLATION.get(token, token)
            if translated in seen:
                continue
            seen.add(translated)
            result.append(translated)
            if len(result) >= MAX_QUERY_TERMS:
                return

    for tag in tags:
        consume(tag)
        if len(result) >= MAX_QUERY_TERMS:
            break

    if len(result) < MIN_TERMS_BEFORE_TITLE and title:
        consume(title)

    return result


def build_image_query(title: Optional[str], tags: Sequence[str]) -> str:
    """Build the provider search string.

    Example:
        >>> build_image_query("Smoothie banane fraise", ["banane", "fraise", "yaourt"])
        'banana strawberry smoothie drink'
    """
    parts = pick_query_terms(title, tags)
    for suffix in SUFFIX_TERMS:
        if suffix not in parts:
            parts.append(suffix)
    return " ".join(parts).strip() or FALLBACK_QUERY


def make_cache_key(query: str, limit: int) -> str:
    """Stable cache key: SHA-1 hex digest of "query|limit"."""
    return hashlib.sha1(f"{query}|{limit}".encode("utf-8")).hexdigest()


def clamp_limit(raw: Optional[float]) -> int:
    """Clamp a requested suggestion count to [1, IMAGE_MAX_LIMIT]; missing/zero → default."""
    if not raw or (isinstance(raw, float) and math.isnan(raw)):
        return config.IMAGE_DEFAULT_LIMIT
    return max(1, min(config.IMAGE_MAX_LIMIT, math.trunc(raw)))
