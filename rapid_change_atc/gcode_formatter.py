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
"""Indentation pass for O-word control blocks."""

from __future__ import annotations

import re
from typing import Iterable

from rapid_change_atc.utils.constants import INDENT_UNIT

O_WORD_PAT = re.compile(r"^O\S*\s+([A-Z]+)")

CLOSING_KEYWORDS = {"ENDIF", "ENDWHILE", "ENDREPEAT", "ENDSUB"}
OPENING_KEYWORDS = {"IF", "WHILE", "DO", "REPEAT", "SUB"}
BRANCH_KEYWORDS = {"ELSE", "ELSEIF"}


def _block_keyword(line: str) -> str | None:
    match = O_WORD_PAT.match(line.upper())
    return match.group(1) if match else None


def format_gcode(lines: Iterable[str] | str) -> list[str]:
    """Indent nested O-word blocks without reordering anything.

    Blank lines are dropped and every line is stripped first. Closing and
    branch keywords dedent before they are written, opening and branch
    keywords indent what follows. Unbalanced closers never push the indent
    below zero.
    """
    if isinstance(lines, str):
        lines = lines.split("\n")
    formatted: list[str] = []
    level = 0
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        keyword = _block_keyword(line)
        if keyword in CLOSING_KEYWORDS or keyword in BRANCH_KEYWORDS:
            level = max(0, level - 1)
        formatted.append(INDENT_UNIT * level + line)
        if keyword in OPENING_KEYWORDS or keyword in BRANCH_KEYWORDS:
            level += 1
    return formatted
