"""Loose parsers for the noisy free-text cells of the smoothie dataset.

Each structured field is extracted with a cascade of strategies: an ordered
list of pure functions ``str -> Optional[list[str]]``. The first strategy that
yields a non-empty list wins; a strategy that fails (bad JSON, no quotes)
simply yields nothing and the next one takes over. Nothing here raises.
"""

import json
import re
from typing import Callable, Iterable, Mapping, Optional

from smoothies.utils.safe import safe_execute_sync
from smoothies.utils.text import normalize_whitespace, unique_strings

Strategy = Callable[[str], Optional[list[str]]]

MAX_SPLIT_DIRECTIONS = 8

IMAGE_PRIORITY_COLUMNS = ("image", "image_url", "photo", "thumbnail", "img", "picture")

_DOUBLE_QUOTED_RE = re.compile(r'"([^"]+)"')
_GUILLEMET_RE = re.compile(r"«\s*([^»]+?)\s*»")
_INGREDIENT_SPLIT_RE = re.compile(r"[;,]")
_DIRECTION_SPLIT_RE = re.compile(r"[.;•]")
_EDGE_QUOTES_RE = re.compile(r"^['\"“”«»]+|['\"“”«»]+$")
_IMAGE_URL_RE = re.compile(
    r"(https?://[^\s\"'<>]+\.(?:jpg|jpeg|png|webp|gif)|/[^\s\"'<>]+\.(?:jpg|jpeg|png|webp|gif))",
    re.IGNORECASE,
)
_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_BARE_DOMAIN_RE = re.compile(r"^[\w.-]+\.[a-z]{2,}", re.IGNORECASE)

# Smart quotes rewritten before the second JSON attempt
_QUOTE_TRANSLATION = str.maketrans({"«": '"', "»": '"', "“": '"', "”": '"', "‘": "'", "’": "'"})


def first_non_empty(strategies: Iterable[Strategy], raw: str) -> list[str]:
    """Run strategies in order and return the first non-empty result ([] if none)."""
    for strategy in strategies:
        result = strategy(raw)
        if result:
            return result
    return []


# ============================================================================
# Strategies
# ============================================================================


def _as_string_list(parsed) -> Optional[list[str]]:
    if not isinstance(parsed, list):
        return None
    values = [normalize_whitespace(entry if isinstance(entry, str) else json.dumps(entry)) for entry in parsed]
    return [value for value in values if value and value != "null"]


def parse_loose_json_array(raw: str) -> Optional[list[str]]:
    """Parse a JSON array of strings, tolerating smart quotes and guillemets.

    Returns None when the cell is not a bracketed array or cannot be parsed
    even after quote substitution.
    """
    trimmed = raw.strip()
    if not (trimmed.startswith("[") and trimmed.endswith("]")):
        return None

    parsed = safe_execute_sync(
        lambda: _as_string_list(json.loads(trimmed)),
        "Direct JSON array parse",
        log_level="debug",
    )
    if parsed is not None:
        return parsed

    normalized_quotes = trimmed.translate(_QUOTE_TRANSLATION)
    return safe_execute_sync(
        lambda: _as_string_list(json.loads(normalized_quotes)),
        "Smart-quote JSON array parse",
        log_level="debug",
    )


def extract_quoted_items(raw: str) -> list[str]:
    """Collect "double-quoted" segments, then «guillemet» segments."""
    items = [normalize_whitespace(match) for match in _DOUBLE_QUOTED_RE.findall(raw)]
    items += [normalize_whitespace(match) for match in _GUILLEMET_RE.findall(raw)]
    return [item for item in items if item]


def split_ingredients(raw: str) -> list[str]:
    """Naive ``;``/``,`` split, keeping tokens of at least two characters."""
    tokens = (normalize_whitespace(part) for part in _INGREDIENT_SPLIT_RE.split(raw))
    return unique_strings(token for token in tokens if len(token) > 1)


def _split_lines(raw: str) -> Optional[list[str]]:
    parts = [normalize_whitespace(part) for part in _INGREDIENT_SPLIT_RE.split(raw)]
    parts = [part for part in parts if part]
    return parts if len(parts) >= 2 else None


def split_directions(raw: str) -> list[str]:
    steps = (normalize_whitespace(part) for part in _DIRECTION_SPLIT_RE.split(raw))
    return [step for step in steps if step][:MAX_SPLIT_DIRECTIONS]


def _strip_edge_quotes(value: str) -> str:
    return normalize_whitespace(_EDGE_QUOTES_RE.sub("", value))


# ============================================================================
# Field extractors
# ============================================================================


def parse_ingredient_tokens(ner_raw: str, ingredients_raw: str) -> list[str]:
    """Distinct ingredient tokens, in first-seen order.

    Cascade: NER JSON array → quoted NER segments → quoted segments of the
    ingredients cell → ``;``/``,`` split of the ingredients cell.
    """
    from_ner = first_non_empty((parse_loose_json_array, extract_quoted_items), ner_raw)
    if from_ner:
        cleaned = (_strip_edge_quotes(item) for item in from_ner)
        return unique_strings(item for item in cleaned if item)

    quoted = extract_quoted_items(ingredients_raw)
    if quoted:
        return unique_strings(quoted)

    return split_ingredients(ingredients_raw)


def parse_ingredient_lines(ingredients_raw: str, ingredient_tokens: list[str]) -> list[str]:
    """Human-readable ingredient lines; falls back to the token list."""
    lines = first_non_empty((extract_quoted_items, _split_lines), ingredients_raw)
    return lines or list(ingredient_tokens)


def parse_directions(raw: str) -> list[str]:
    """Preparation steps: JSON array → quoted segments → sentence split (max 8 steps)."""
    return first_non_empty((parse_loose_json_array, extract_quoted_items, split_directions), raw)


def detect_image_url(record: Mapping[str, str]) -> Optional[str]:
    """Find the first image URL in the row, checking the usual image columns first."""
    candidates = [record[key] for key in IMAGE_PRIORITY_COLUMNS if record.get(key)]
    candidates.extend(record.values())
    for value in candidates:
        match = _IMAGE_URL_RE.search(value or "")
        if match:
            return match.group(1)
    return None


def safe_protocol_url(value: Optional[str]) -> Optional[str]:
    """Return an absolute http(s) URL, upgrading bare domains to https; None otherwise."""
    trimmed = (value or "").strip()
    if not trimmed:
        return None
    if _HTTP_URL_RE.match(trimmed):
        return trimmed
    if _BARE_DOMAIN_RE.match(trimmed):
        return f"https://{trimmed}"
    return None
