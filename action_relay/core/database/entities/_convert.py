"""Helpers shared by entity <-> domain conversions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict


def plain_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace enum members with their stored values."""
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}
