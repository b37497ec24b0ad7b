# equipment_tracker/helpers/normalizer.py
"""
Field normalizers for spreadsheet cells and form input.

Every function here is total: any input (None, NaN, numbers, dates, text)
produces a value, never an exception.
"""
from datetime import date, datetime
from typing import Any, Iterable, Optional

import pandas as pd

DEFAULT_DEVICE_TYPE = "computer"

# Exact labels, Russian as written in the inventory workbook plus English
DEVICE_TYPE_LABELS = {
    "компьютер": "computer",
    "пк": "computer",
    "computer": "computer",
    "pc": "computer",
    "desktop": "computer",
    "ноутбук": "laptop",
    "laptop": "laptop",
    "notebook": "laptop",
    "нетбук": "netbook",
    "netbook": "netbook",
}

# Substring fallbacks, checked in order
DEVICE_TYPE_FRAGMENTS = (
    ("ноутбук", "laptop"),
    ("laptop", "laptop"),
    ("notebook", "laptop"),
    ("нетбук", "netbook"),
    ("netbook", "netbook"),
    ("компьютер", "computer"),
    ("computer", "computer"),
)

DEFAULT_MEDICAL_MARKERS = ("мед", "medical")

# Cells in the inventory-number column that are facility labels, not numbers
INVENTORY_NUMBER_DENYLIST = ("видеонаблюдение", "раздевалка")

BROKEN_KEYWORDS = ("неисправ", "сломан", "не работает", "поломка", "broken")
ISSUES_KEYWORDS = ("проблем", "медленн", "требует", "нужен", "issues", "slow")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-like cells
        return False


def cell_to_text(value: Any) -> str:
    """Render a raw cell as text; integral floats lose their trailing .0."""
    if _is_missing(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == 0:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return str(value)
    except Exception:
        return ""


def clean_string(raw: Any) -> Optional[str]:
    """Trim a value; empty after trimming becomes None."""
    cleaned = cell_to_text(raw).strip()
    return cleaned or None


def normalize_device_type(raw: Any) -> str:
    """Map a free-text type label to computer | laptop | netbook."""
    text = cell_to_text(raw).strip().lower()
    if not text:
        return DEFAULT_DEVICE_TYPE

    if text in DEVICE_TYPE_LABELS:
        return DEVICE_TYPE_LABELS[text]

    for fragment, device_type in DEVICE_TYPE_FRAGMENTS:
        if fragment in text:
            return device_type

    return DEFAULT_DEVICE_TYPE


def determine_building(location: Any, markers: Iterable[str] = DEFAULT_MEDICAL_MARKERS) -> str:
    """Return "medical" when the location mentions a medical-building marker, else "main"."""
    text = cell_to_text(location).lower()
    if text and any(marker.lower() in text for marker in markers if marker):
        return "medical"
    return "main"


def normalize_inventory_number(raw: Any) -> Optional[str]:
    text = clean_string(raw)
    if text is None:
        return None

    lowered = text.lower()
    if any(label in lowered for label in INVENTORY_NUMBER_DENYLIST):
        return None
    return text


def status_from_notes(notes: Any) -> str:
    """
    Derive a status from free-text notes.

    "broken" keywords win over "issues" keywords; no keyword means "working".
    """
    text = cell_to_text(notes).lower()
    if not text:
        return "working"
    if any(keyword in text for keyword in BROKEN_KEYWORDS):
        return "broken"
    if any(keyword in text for keyword in ISSUES_KEYWORDS):
        return "issues"
    return "working"
