"""Allergen and diet tag inference.

Keyword heuristics over normalized ingredient and direction text. False
negatives are expected for indirect references ("a splash of almond drink"
is caught, "plant milk" is not).
"""

from typing import Iterable, Sequence

from smoothies.models.models import PRESET_KEYS, RecipeTags
from smoothies.utils.text import normalize_for_search

DAIRY_TERMS = (
    "lait",
    "yaourt",
    "yogurt",
    "yogourt",
    "fromage blanc",
    "kefir",
    "kéfir",
    "cream",
    "creme",
    "crème",
    "whey",
    "lactose",
    "lait en poudre",
    "lait concentre",
    "lait concentré",
)
NON_VEGAN_EXTRA_TERMS = ("miel", "gelatine", "gélatine", "oeuf", "œuf")
NUT_TERMS = (
    "amande",
    "amandes",
    "noix",
    "noisette",
    "noisettes",
    "cajou",
    "cashew",
    "pistache",
    "pistaches",
    "pecan",
    "pécan",
    "macadamia",
)
PEANUT_TERMS = ("cacahuete", "cacahuètes", "arachide", "peanut")
SOY_TERMS = ("soja", "soy")
GLUTEN_TERMS = ("ble", "blé", "orge", "seigle", "avoine", "granola", "biscuit", "cookies", "cookie")
SESAME_TERMS = ("sesame", "sésame", "tahini")

# Exclusion presets: human label and description shown next to each filter chip
PRESET_LABELS: dict[str, tuple[str, str]] = {
    "vegan": ("Vegan", "Masque les recettes non vegan (lait, yaourt, miel, etc.)"),
    "lactose": ("Sans lactose", "Masque les recettes avec lait / yaourt / produits laitiers"),
    "nuts": ("Sans fruits à coque", "Masque amande, noix, noisette, cajou, pistache..."),
    "peanut": ("Sans arachide", "Masque cacahuète / peanut"),
    "soy": ("Sans soja", "Masque lait/produits de soja"),
    "gluten": ("Sans gluten", "Masque ingrédients contenant du blé/avoine/granola..."),
    "sesame": ("Sans sésame", "Masque sésame et tahini"),
}


def _normalize_terms(terms: Iterable[str]) -> tuple[str, ...]:
    return tuple(term for term in (normalize_for_search(t) for t in terms) if term)


_DAIRY = _normalize_terms(DAIRY_TERMS)
_NON_VEGAN_EXTRA = _normalize_terms(NON_VEGAN_EXTRA_TERMS)
_NUTS = _normalize_terms(NUT_TERMS)
_PEANUT = _normalize_terms(PEANUT_TERMS)
_SOY = _normalize_terms(SOY_TERMS)
_GLUTEN = _normalize_terms(GLUTEN_TERMS)
_SESAME = _normalize_terms(SESAME_TERMS)


def contains_any(haystacks: Sequence[str], terms: Sequence[str]) -> bool:
    """True if any (pre-normalized) term is a substring of any haystack."""
    return any(term in haystack for haystack in haystacks for term in terms)


def compute_tags(ingredient_tokens: Sequence[str], ingredients_raw: str, directions: Sequence[str]) -> RecipeTags:
    """Infer the seven allergen/diet flags for one recipe.

    vegan is derived, never asserted: it is False as soon as a dairy term or
    another non-vegan term (honey, gelatine, egg) shows up.
    """
    haystacks = [normalize_for_search(token) for token in ingredient_tokens]
    haystacks.append(normalize_for_search(ingredients_raw))
    haystacks.append(normalize_for_search(" ".join(directions)))

    has_lactose = contains_any(haystacks, _DAIRY)
    non_vegan = has_lactose or contains_any(haystacks, _NON_VEGAN_EXTRA)

    return RecipeTags(
        vegan=not non_vegan,
        lactose=has_lactose,
        nuts=contains_any(haystacks, _NUTS),
        peanut=contains_any(haystacks, _PEANUT),
        soy=contains_any(haystacks, _SOY),
        gluten=contains_any(haystacks, _GLUTEN),
        sesame=contains_any(haystacks, _SESAME),
    )


def matches_preset(tags: RecipeTags, preset: str) -> bool:
    """True when the recipe falls on the excluded side of a preset.

    The vegan preset hides non-vegan recipes; every other preset hides recipes
    carrying the flag.
    """
    if preset == "vegan":
        return not tags.vegan
    if preset in PRESET_KEYS:
        return bool(getattr(tags, preset))
    return False
