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

from __future__ import annotations

from rapid_change_atc.settings import AtcSettings, Point


def pocket_offset(settings: AtcSettings, tool_num: int) -> float:
    if tool_num <= 0:
        return 0.0
    sign = -1 if settings.direction == "Negative" else 1
    return (tool_num - 1) * settings.pocketDistance * sign


def pocket_position(settings: AtcSettings, tool_num: int) -> Point:
    """Absolute machine X/Y of the pocket holding ``tool_num``.

    Tool numbers <= 0 map to pocket 1 (the "no tool" source/target).
    """
    offset = pocket_offset(settings, tool_num)
    if settings.orientation == "Y":
        return Point(x=settings.pocket1.x, y=settings.pocket1.y + offset)
    return Point(x=settings.pocket1.x + offset, y=settings.pocket1.y)
