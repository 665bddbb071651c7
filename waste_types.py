"""
Waste type catalog shared by bins and schedules.

Every comparison between a bin category and a schedule's accepted waste
types goes through normalize_waste_type / accepts.
"""

from typing import Dict, Iterable, Optional

DEFAULT_ICON = "🗑️"
DEFAULT_COLOR = "#6B7280"

WASTE_TYPES: Dict[str, Dict[str, str]] = {
    "plastic": {
        "label": "Plastic & Polythene",
        "icon": "♻️",
        "color": "#F59E0B",
        "description": "Plastic bottles, bags, containers, polythene",
    },
    "paper": {
        "label": "Paper & Cardboard",
        "icon": "📄",
        "color": "#3B82F6",
        "description": "Newspapers, cardboard, paper waste",
    },
    "organic": {
        "label": "Organic & Food Waste",
        "icon": "🍂",
        "color": "#84CC16",
        "description": "Food scraps, garden waste, compostable materials",
    },
    "glass": {
        "label": "Glass",
        "icon": "🍾",
        "color": "#10B981",
        "description": "Glass bottles, jars, containers",
    },
    "metal": {
        "label": "Metal",
        "icon": "🥫",
        "color": "#6B7280",
        "description": "Cans, metal containers, scrap metal",
    },
    "electronic": {
        "label": "E-Waste",
        "icon": "🔌",
        "color": "#8B5CF6",
        "description": "Electronics, batteries, electrical items",
    },
    "hazardous": {
        "label": "Hazardous Waste",
        "icon": "⚠️",
        "color": "#EF4444",
        "description": "Chemicals, paints, toxic materials",
    },
    "general": {
        "label": "General Waste",
        "icon": DEFAULT_ICON,
        "color": DEFAULT_COLOR,
        "description": "Mixed waste, non-recyclable items",
    },
}


def normalize_waste_type(value: Optional[str]) -> Optional[str]:
    """Lower-case a category and return it if it is a known waste type, else None."""
    if not value or not isinstance(value, str):
        return None
    key = value.lower()
    return key if key in WASTE_TYPES else None


def is_valid_waste_type(value: Optional[str]) -> bool:
    return normalize_waste_type(value) is not None


def accepts(waste_types: Optional[Iterable[str]], waste_type: Optional[str]) -> bool:
    """Case-insensitive membership of waste_type in a schedule's waste type list."""
    if waste_type is None:
        return False
    target = waste_type.lower()
    return any(isinstance(wt, str) and wt.lower() == target for wt in waste_types or [])


def get_waste_type(value: Optional[str]) -> Optional[Dict[str, str]]:
    key = normalize_waste_type(value)
    return WASTE_TYPES[key] if key else None


def get_waste_type_label(value: Optional[str], default: Optional[str] = "Unknown") -> Optional[str]:
    info = get_waste_type(value)
    return info["label"] if info else default


def get_waste_type_icon(value: Optional[str]) -> str:
    info = get_waste_type(value)
    return info["icon"] if info else DEFAULT_ICON


def get_waste_type_color(value: Optional[str]) -> str:
    info = get_waste_type(value)
    return info["color"] if info else DEFAULT_COLOR
