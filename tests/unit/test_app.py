"""Unit tests for app.py - HTTP routes over an injected context."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app import create_app
from smoothies.context import initialize_app_context
from smoothies.images.providers import PexelsProvider, PixabayProvider
from smoothies.models.models import ImageSuggestion


@pytest.fixture
def pexels():
    provider = PexelsProvider("test-key")
    provider.search = AsyncMock(
        return_value=[ImageSuggestion(url=f"https://images.pexels.com/{i}.jpg", provider="pexels") for i in range(6)]
    )
    return provider


@pytest.fixture
def client(tmp_path, sample_csv, settings, pexels):
    dataset = tmp_path / "smoothies.csv"
    dataset.write_text(sample_csv, encoding="utf-8")
    settings.IMAGE_CACHE_PATH = str(tmp_path / "cache" / "runtime.json")
    settings.IMAGE_CACHE_SEED_PATH = str(tmp_path / "missing-seed.json")

    context = initialize_app_context(settings, str(dataset), providers=[pexels, PixabayProvider("")])
    with TestClient(create_app(context)) as test_client:
        yield test_client


class TestSmoothieRoutes:
    def test_list_page(self, client):
        response = client.get("/api/smoothies", params={"sort": "name", "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 4
        assert body["nextOffset"] == 2
        assert body["limit"] == 2
        assert [item["slug"] for item in body["items"]] == ["banana-oat-1", "mangue-coco-4"]
        assert "directionsPreview" in body["items"][0]
        assert "searchBlob" not in body["items"][0]

    def test_filters(self, client):
        body = client.get(
            "/api/smoothies",
            params={"q": "mixer", "excludePresets": "lactose,unknown", "excludeIngredients": "kiwi"},
        ).json()

        assert body["total"] == 0

    def test_id_scope(self, client):
        body = client.get("/api/smoothies", params={"ids": "sm-1,sm-3", "sort": "rating"}).json()
        assert [item["id"] for item in body["items"]] == ["sm-1", "sm-3"]

    def test_invalid_numbers_fall_back(self, client):
        body = client.get("/api/smoothies", params={"limit": "abc", "offset": "-4"}).json()

        assert body["limit"] == 24
        assert body["offset"] == 0
        assert body["nextOffset"] is None

    def test_meta(self, client):
        body = client.get("/api/smoothies/meta").json()

        assert body["total"] == 4
        assert body["withImages"] == 1
        assert body["presetOptions"][0] == {
            "key": "lactose",
            "label": "Sans lactose",
            "description": "Masque les recettes avec lait / yaourt / produits laitiers",
            "count": 3,
        }

    def test_detail(self, client):
        body = client.get("/api/smoothies/banana-oat-1").json()

        assert body["title"] == "Banana Oat"
        assert body["ingredientsRaw"] == "banane, avoine, lait"
        assert body["sourceLink"] == "https://www.marmiton.org/banana"

    def test_detail_suffix_fallback(self, client):
        assert client.get("/api/smoothies/renamed-4").json()["title"] == "Mangue Coco"

    def test_detail_not_found(self, client):
        assert client.get("/api/smoothies/does-not-exist").status_code == 404


class TestImageSuggestionRoutes:
    def test_get_requires_title_or_tags(self, client):
        response = client.get("/api/image-suggestions")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters: provide title or tags"}

    def test_get_with_tags(self, client, pexels):
        response = client.get("/api/image-suggestions", params={"tags": "banane,fraise", "limit": "3"})

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "banana strawberry smoothie drink"
        assert body["providersUsed"] == ["pexels"]
        assert len(body["items"]) == 3
        assert body["items"][0]["provider"] == "pexels"

    def test_post_then_cache_hit(self, client, pexels):
        payload = {"title": "Smoothie mangue", "tags": ["mangue"]}

        first = client.post("/api/image-suggestions", json=payload).json()
        second = client.post("/api/image-suggestions", json=payload).json()

        assert first["cacheHit"] is False
        assert second["cacheHit"] is True
        assert pexels.search.await_count == 1

    def test_post_refresh(self, client, pexels):
        payload = {"tags": ["kiwi"]}
        client.post("/api/image-suggestions", json=payload)

        refreshed = client.post("/api/image-suggestions", json={**payload, "refresh": True}).json()

        assert refreshed["cacheHit"] is False
        assert pexels.search.await_count == 2

    def test_post_malformed_body(self, client):
        response = client.post(
            "/api/image-suggestions", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    def test_post_tags_must_be_a_list(self, client):
        response = client.post("/api/image-suggestions", json={"tags": "banane,fraise"})
        assert response.status_code == 400


def test_request_id_header(client):
    assert client.get("/api/smoothies/meta", headers={"X-Request-ID": "abc"}).headers["X-Request-ID"] == "abc"
    assert client.get("/api/smoothies/meta").headers["X-Request-ID"]
