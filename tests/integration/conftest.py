"""Pytest configuration and fixtures for integration tests.

Builds a generated dataset on disk and points the module-level config at it,
so the application is exercised through its default lifespan (no injected
context). Photo provider credentials are cleared: no test talks to the network.
"""

import csv
import io
import itertools

import pytest

from smoothies.utils.config import config

FRUITS = ["banane", "fraise", "mangue", "kiwi", "ananas", "pêche", "framboise", "pomme"]
EXTRAS = ["lait", "yaourt", "lait d'amande", "avoine", "miel", "eau", "graines de sésame", "jus d'orange"]
DATASET_SIZE = 30


def build_dataset_csv(size: int = DATASET_SIZE) -> str:
    """Generate a CSV with quoted JSON NER cells, multi-line directions and CRLF endings."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(["title", "ingredients", "directions", "link", "source", "NER"])

    fruit_pairs = itertools.cycle(itertools.combinations(FRUITS, 2))
    for index in range(size):
        first, second = next(fruit_pairs)
        extra = EXTRAS[index % len(EXTRAS)]
        ner = f'["{first}", "{second}", "{extra}"]'
        writer.writerow(
            [
                f"Smoothie {first} {second} n°{index}",
                f"1 {first}, 100 g {second}, 20 cl {extra}",
                "Couper les fruits.\nMixer le tout.",
                f"www.example.org/smoothie-{index}",
                "Example",
                ner,
            ]
        )
        if index == 10:
            writer.writerow(["", "", "", "", "", ""])

    return buffer.getvalue()


@pytest.fixture
def dataset_size():
    return DATASET_SIZE


@pytest.fixture
def dataset_path(tmp_path):
    path = tmp_path / "smoothies.csv"
    path.write_text(build_dataset_csv(), encoding="utf-8")
    return path


@pytest.fixture
def app_config(monkeypatch, tmp_path, dataset_path):
    """Point the module-level config at temporary files and disable every provider."""
    monkeypatch.setattr(config, "DATASET_PATH", str(dataset_path))
    monkeypatch.setattr(config, "IMAGE_CACHE_PATH", str(tmp_path / "cache" / "runtime.json"))
    monkeypatch.setattr(config, "IMAGE_CACHE_SEED_PATH", str(tmp_path / "seed.json"))
    for name in ("PEXELS_API_KEY", "PIXABAY_API_KEY", "UNSPLASH_ACCESS_KEY"):
        monkeypatch.setattr(config, name, "")
    return config
