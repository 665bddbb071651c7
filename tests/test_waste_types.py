import pytest

from waste_types import (
    WASTE_TYPES,
    accepts,
    get_waste_type_color,
    get_waste_type_icon,
    get_waste_type_label,
    is_valid_waste_type,
    normalize_waste_type,
)


@pytest.mark.parametrize("raw, expected", [
    ("plastic", "plastic"),
    ("Plastic", "plastic"),
    ("ELECTRONIC", "electronic"),
    (" glass ", None),
    ("furniture", None),
    ("", None),
    (None, None),
])
def test_normalize_waste_type(raw, expected):
    assert normalize_waste_type(raw) == expected


def test_catalog_has_the_eight_waste_types():
    assert set(WASTE_TYPES) == {
        "plastic", "paper", "organic", "glass", "metal", "electronic", "hazardous", "general",
    }


def test_accepts_is_case_insensitive_membership():
    assert accepts(["Organic", "general"], "organic")
    assert accepts(["PAPER"], normalize_waste_type("Paper"))
    assert not accepts(["plastics"], "plastic")
    assert not accepts(["paper & cardboard"], "paper")


def test_accepts_handles_missing_values():
    assert not accepts(None, "plastic")
    assert not accepts([], "plastic")
    assert not accepts(["general"], None)


def test_display_helpers():
    assert get_waste_type_label("Organic") == "Organic & Food Waste"
    assert get_waste_type_label("furniture") == "Unknown"
    assert get_waste_type_label("furniture", default="furniture") == "furniture"
    assert get_waste_type_icon("electronic") == "🔌"
    assert get_waste_type_icon("furniture") == "🗑️"
    assert get_waste_type_color("hazardous") == "#EF4444"
    assert get_waste_type_color(None) == "#6B7280"
    assert is_valid_waste_type("Metal")
    assert not is_valid_waste_type("wood")
