"""
Normalization of raw ledger cell values.

Spreadsheet reads may return native booleans, strings such as "true"/"TRUE",
NaN for empty cells (pandas) or None.
"""
import math
from typing import Any


def is_blank(value: Any) -> bool:
    """Check if a cell value is empty (None, NaN or whitespace)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def parse_text(value: Any) -> str:
    """Convert a cell value to a stripped string ("" for blank cells)."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_bool(value: Any) -> bool:
    """
    Parse a boolean flag cell.

    Only a native True or the text "true" (any case) count as set.
    """
    if isinstance(value, bool):
        return value
    return parse_text(value).lower() == "true"
