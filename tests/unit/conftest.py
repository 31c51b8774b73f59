"""Shared fixtures for unit tests: a small smoothie dataset and its catalog."""

import pytest

from smoothies.catalog.csv_reader import parse_csv_rows
from smoothies.catalog.dataset import build_catalog
from smoothies.utils.config import Config

# Row 4 is blank and must not consume an ordinal, so "Mangue Coco" becomes sm-4
SAMPLE_CSV = "\r\n".join(
    [
        "title,ingredients,directions,link,source,NER,image",
        'Banana Oat,"banane, avoine, lait",Mixer. Servir.,www.marmiton.org/banana,Marmiton,,',
        'Smoothie Fraise Kiwi,"""fraise"" ""kiwi""","[""Laver les fruits"", ""Mixer""]",,,'
        '"[""fraise"", ""kiwi"", ""banane""]",https://img.example/fraise.jpg',
        "Pêche Amande,pêche; lait d'amande; miel,Mixer,,Blog,\"[\"\"pêche\"\", \"\"amande\"\", \"\"miel\"\"]\",",
        ",,,,,,",
        'Mangue Coco,"mangue, lait de coco, eau",Mixer,,,"[""mangue"", ""lait de coco"", ""eau""]",',
    ]
)


@pytest.fixture
def settings():
    """A fresh Config that tests may tweak without touching the module-level one."""
    return Config()


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture
def sample_rows(sample_csv):
    return parse_csv_rows(sample_csv)


@pytest.fixture
def catalog(sample_rows, settings):
    return build_catalog(sample_rows, settings)
