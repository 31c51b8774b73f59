"""Unit tests for Pydantic models validation."""

import pytest
from pydantic import ValidationError

from smoothies.models.models import (
    ImageSuggestionRequest,
    ImageSuggestionResponse,
    QueryOptions,
    Recipe,
    RecipeListResponse,
    RecipeTags,
)


class TestQueryOptions:
    """Test lenient normalisation of query parameters."""

    def test_defaults(self):
        options = QueryOptions()

        assert options.sort == "random"
        assert options.seed == "seed"
        assert options.offset == 0
        assert options.limit == 24
        assert options.exclude_presets == []

    def test_csv_lists(self):
        options = QueryOptions(exclude_ingredients="banane, ,lait", include_ids=["sm-1", " "])

        assert options.exclude_ingredients == ["banane", "lait"]
        assert options.include_ids == ["sm-1"]

    def test_unknown_presets_dropped(self):
        assert QueryOptions(exclude_presets="vegan,dairy,nuts").exclude_presets == ["vegan", "nuts"]

    def test_unknown_sort_becomes_random(self):
        assert QueryOptions(sort="popularity").sort == "random"
        assert QueryOptions(sort=None).sort == "random"

    def test_blank_seed(self):
        assert QueryOptions(seed="   ").seed == "seed"

    @pytest.mark.parametrize("raw, expected", [("-5", 0), ("12.7", 12), ("abc", 0), (None, 0)])
    def test_offset(self, raw, expected):
        assert QueryOptions(offset=raw).offset == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [(None, 24), ("0", 24), ("abc", 24), ("10", 10), ("999", 60), ("-1", 1), ("2.9", 2)],
    )
    def test_limit(self, raw, expected):
        assert QueryOptions(limit=raw).limit == expected

    def test_camel_case_aliases(self):
        options = QueryOptions.model_validate({"excludeIngredients": "kiwi", "excludePresets": "soy"})

        assert options.exclude_ingredients == ["kiwi"]
        assert options.exclude_presets == ["soy"]


class TestImageSuggestionRequest:
    def test_requires_title_or_tags(self):
        with pytest.raises(ValidationError, match="Either title or tags must be provided"):
            ImageSuggestionRequest(title="   ", tags=[])

    def test_tags_only(self):
        request = ImageSuggestionRequest(tags="banane, fraise")
        assert request.tags == ["banane", "fraise"]
        assert request.title is None

    def test_non_string_title_is_ignored(self):
        with pytest.raises(ValidationError):
            ImageSuggestionRequest(title=42)

    @pytest.mark.parametrize("raw, expected", [("1", True), ("TRUE", True), ("yes", True), ("no", False), (1, False)])
    def test_refresh(self, raw, expected):
        assert ImageSuggestionRequest(title="x", refresh=raw).refresh is expected

    @pytest.mark.parametrize("raw, expected", [("4", 4), (4.8, 4), ("abc", None), (None, None)])
    def test_limit(self, raw, expected):
        assert ImageSuggestionRequest(title="x", limit=raw).limit == expected


class TestRecipe:
    def _recipe(self, **overrides):
        fields = dict(
            id="sm-1",
            slug="banana-oat-1",
            title="Banana Oat",
            source="Marmiton",
            tags=RecipeTags(lactose=True, gluten=True),
            directions=["Mixer", "Servir"],
            search_blob="banana oat",
        )
        fields.update(overrides)
        return Recipe(**fields)

    def test_is_frozen(self):
        recipe = self._recipe()
        with pytest.raises(ValidationError):
            recipe.title = "Other"

    def test_popularity_is_non_negative(self):
        with pytest.raises(ValidationError):
            self._recipe(popularity_score=-1)

    def test_list_item_projection(self):
        item = self._recipe(image_url="https://img.example/a.jpg").to_list_item(order_score=7)
        dumped = item.model_dump(by_alias=True)

        assert dumped["hasImage"] is True
        assert dumped["directionsPreview"] == "Mixer"
        assert dumped["orderScore"] == 7
        assert dumped["tags"]["lactose"] is True
        assert "searchBlob" not in dumped
        assert "directions" not in dumped

    def test_detail_projection(self):
        detail = self._recipe().to_detail()

        assert detail.has_image is False
        assert detail.directions == ["Mixer", "Servir"]


def test_response_models_serialise_camel_case():
    page = RecipeListResponse(items=[], total=0, offset=0, next_offset=None, limit=24)
    suggestion = ImageSuggestionResponse(query="q", cache_key="k", cache_hit=False)

    assert page.model_dump(by_alias=True) == {"items": [], "total": 0, "offset": 0, "nextOffset": None, "limit": 24}
    assert suggestion.model_dump(by_alias=True)["cacheHit"] is False
