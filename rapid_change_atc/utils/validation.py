#!/usr/bin/env python3
# Rapid Change ATC (tool-change macro engine)
# Copyright (C) 2026 Bob Kolbasowski
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
# Optional (not required by the license): If you make improvements, please consider
# contributing them back upstream (e.g., via a pull request) so others can benefit.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Lenient input coercion helpers.

Settings arrive from HTML forms and JSON payloads, so numbers may be
strings, blanks or garbage. Every helper here is total: it returns a
fallback instead of raising.
"""

import math
import re
from typing import Any, Optional, Sequence, TypeVar

__all__ = [
    "parse_int",
    "parse_float",
    "coerce_int",
    "coerce_float",
    "clamp",
    "choose",
    "to_bool",
    "to_text",
    "format_number",
]

T = TypeVar("T")

_LEADING_INT_PAT = re.compile(r"^[+-]?\d+")
_LEADING_FLOAT_PAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of a value.

    ``"12abc"`` gives 12, ``"3.7"`` and ``3.7`` give 3. Booleans, ``None``
    and text without a leading digit give ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    match = _LEADING_INT_PAT.match(str(value).strip())
    if not match:
        return None
    return int(match.group(0))


def parse_float(value: Any) -> Optional[float]:
    """Parse the leading finite number of a value, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    match = _LEADING_FLOAT_PAT.match(str(value).strip())
    if not match:
        return None
    try:
        number = float(match.group(0))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def coerce_int(value: Any, fallback: int) -> int:
    parsed = parse_int(value)
    return fallback if parsed is None else parsed


def coerce_float(value: Any, fallback: float = 0.0) -> float:
    parsed = parse_float(value)
    return fallback if parsed is None else parsed


def clamp(value, min_val, max_val):
    """Clamp value into [min_val, max_val]."""
    return min(max(value, min_val), max_val)


def choose(value: Any, allowed: Sequence[T], fallback: T) -> T:
    """Return value if it is one of the allowed choices, otherwise fallback."""
    if isinstance(value, str) and value in allowed:
        return value  # type: ignore[return-value]
    return fallback


def to_bool(value: Any, fallback: bool = False) -> bool:
    """Truthiness with ``None`` mapped to the fallback."""
    if value is None:
        return fallback
    return bool(value)


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def format_number(value: float, max_decimals: int = 6) -> str:
    """Format a number for a G-code word.

    Fixed-point with at most ``max_decimals`` places, trailing zeros and a
    bare dot trimmed (``-27.0`` becomes ``-27``, ``4.5e-05`` becomes
    ``0.000045``). Controllers do not accept exponent notation.
    """
    text = f"{float(value):.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text
