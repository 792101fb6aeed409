import pytest

from meta_engine.utils.detachment import extract_detachment


@pytest.mark.parametrize("list_text,expected", [
    ("Strike Force (2000 points)\n+ DETACHMENT: Gladius Task Force\n\nCHARACTERS", "Gladius Task Force"),
    ("DETACHMENT: Gladius Task Force", "Gladius Task Force"),
    ("Orks\nDetachment: Waaagh! Tribe\nWarboss", "Waaagh! Tribe"),
    ("++ Army Roster ++\n-- Ironstorm Spearhead Detachment --\nTechmarine", "Ironstorm Spearhead"),
])
def test_extracts_known_layouts(list_text, expected):
    assert extract_detachment(list_text) == expected


@pytest.mark.parametrize("list_text", [None, "", "Captain\nIntercessors x10"])
def test_returns_none_without_a_header(list_text):
    assert extract_detachment(list_text) is None
