"""Locale-aware string folding used by every catalog and image component."""

import re
import unicodedata
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")
_COMBINING_MARKS_RE = re.compile("[\u0300-\u036f]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

SLUG_MAX_LENGTH = 64
DEFAULT_SLUG = "smoothie"


def normalize_whitespace(value: str) -> str:
    """Collapse regular and non-breaking whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", value.replace("\u00a0", " ")).strip()


def normalize_for_search(value: str) -> str:
    """Fold a string for matching: whitespace collapsed, accents removed, lowercased.

    "Pêche  Melba" and "peche melba" normalize to the same key.
    """
    decomposed = unicodedata.normalize("NFD", normalize_whitespace(value))
    return _COMBINING_MARKS_RE.sub("", decomposed).lower()


def slugify(value: str) -> str:
    """Build a URL-safe slug (max 64 chars), falling back to "smoothie" when nothing survives."""
    slug = _NON_ALNUM_RE.sub("-", normalize_for_search(value)).strip("-")
    return slug[:SLUG_MAX_LENGTH] or DEFAULT_SLUG


def unique_strings(values: Iterable[str]) -> list[str]:
    """Remove duplicates, preserving first-seen order."""
    return list(dict.fromkeys(values))
