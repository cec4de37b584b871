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
# SPDX-License-Identifier: GPL-3.0-or-later
"""Pre-fetched per-tool X/Y/Z offset table.

Fetching the table is the host's job and happens before the engine runs;
the engine only calls ``lookup``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from rapid_change_atc.utils.exceptions import ToolTableError
from rapid_change_atc.utils.validation import coerce_float, parse_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOffsets:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_mapping(cls, data: Any) -> "ToolOffsets":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            x=coerce_float(data.get("x")),
            y=coerce_float(data.get("y")),
            z=coerce_float(data.get("z")),
        )


ZERO_OFFSETS = ToolOffsets()


class ToolOffsetProvider(Protocol):
    def lookup(self, tool_number: int) -> ToolOffsets: ...


class ToolOffsetTable:
    """Immutable tool number -> offsets mapping; missing tools read as zero."""

    def __init__(self, offsets: Mapping[int, ToolOffsets] | None = None):
        self._offsets: dict[int, ToolOffsets] = dict(offsets or {})

    def __len__(self) -> int:
        return len(self._offsets)

    def __contains__(self, tool_number: object) -> bool:
        return tool_number in self._offsets

    def lookup(self, tool_number: int) -> ToolOffsets:
        if not tool_number or tool_number <= 0:
            return ZERO_OFFSETS
        return self._offsets.get(tool_number, ZERO_OFFSETS)

    @classmethod
    def from_tools(cls, tools: Any) -> "ToolOffsetTable":
        """Build from the host tool list or a ``{tool: {x, y, z}}`` mapping.

        Host list entries look like ``{"toolNumber": 3, "offsets": {...}}``.
        Entries without a usable tool number are skipped.
        """
        offsets: dict[int, ToolOffsets] = {}
        if isinstance(tools, Mapping):
            items: Iterable[tuple[Any, Any]] = tools.items()
        elif isinstance(tools, (list, tuple)):
            items = (
                (entry.get("toolNumber"), entry.get("offsets"))
                for entry in tools
                if isinstance(entry, Mapping)
            )
        else:
            return cls()
        for raw_number, raw_offsets in items:
            number = parse_int(raw_number)
            if number is None or number <= 0:
                logger.debug(f"Skipping tool table entry {raw_number!r}")
                continue
            offsets[number] = ToolOffsets.from_mapping(raw_offsets)
        return cls(offsets)

    @classmethod
    def load(cls, path: str | Path) -> "ToolOffsetTable":
        """Read a tool table JSON file.

        Raises:
            ToolTableError: If the file cannot be read or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ToolTableError(f"Invalid JSON in tool table: {e}", str(path))
        except OSError as e:
            raise ToolTableError(f"Failed to read tool table: {e}", str(path))
        if isinstance(data, Mapping) and "tools" in data:
            data = data["tools"]
        return cls.from_tools(data)
