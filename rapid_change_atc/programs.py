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
"""Program builders: complete macros that replace a trigger token.

``*_nodes`` functions return the node tree; the matching ``build_*``
function renders and formats it into indented G-code lines.
"""

from __future__ import annotations

from rapid_change_atc.gcode_blocks import (
    Command,
    Comment,
    Conditional,
    Dwell,
    Message,
    Move,
    Node,
    Snippet,
    render,
)
from rapid_change_atc.gcode_formatter import format_gcode
from rapid_change_atc.pockets import pocket_position
from rapid_change_atc.routines import (
    SYNC,
    Routine,
    manual_fallback,
    safe_height,
    tool_length_setter,
    tool_load,
    verified_unload,
)
from rapid_change_atc.sensors import select_sensor_check
from rapid_change_atc.settings import AtcSettings
from rapid_change_atc.tool_offsets import ZERO_OFFSETS, ToolOffsets
from rapid_change_atc.utils.constants import (
    HOME_TLS_BLOCK,
    HOME_TOKEN,
    MARKER_MANUAL_LOAD_PROBE,
    MARKER_MANUAL_LOAD_TOOL,
    MARKER_MANUAL_UNLOAD_PROBE,
    MARKER_MANUAL_UNLOAD_TOOL,
    NO_TOOL,
    PROBE_TOOL_NUMBER,
    RESTORE_UNITS_LINE,
    SAVE_UNITS_LINE,
    TLS_END_LABEL,
    TLS_START_LABEL,
    TOOL_CHANGE_END_LABEL,
    TOOL_CHANGE_START_LABEL,
)


def _manual_section(settings: AtcSettings, marker: str, tool: int) -> Routine:
    return (
        safe_height(settings),
        SYNC,
        Message(marker),
        *manual_fallback(settings),
        Command(f"M61 Q{tool}"),
    )


def unload_section(settings: AtcSettings, current_tool: int) -> Routine:
    """Put the current tool away.

    Nothing to do for tool 0 (or below). Tool 99 runs the user's probe unload snippet
    (or asks the operator). Tools outside the magazine go straight to the
    operator. Magazine tools get the verified unload with one retry.
    """
    if current_tool <= NO_TOOL:
        return ()

    if current_tool == PROBE_TOOL_NUMBER:
        snippet = settings.probeUnloadGcode.strip()
        if snippet:
            return (
                Comment(f"Unload Probe Tool T{PROBE_TOOL_NUMBER}"),
                safe_height(settings),
                Snippet(snippet),
                Command(f"M61 Q{NO_TOOL}"),
            )
        return _manual_section(settings, MARKER_MANUAL_UNLOAD_PROBE, NO_TOOL)

    if current_tool > settings.pockets:
        return _manual_section(settings, MARKER_MANUAL_UNLOAD_TOOL, NO_TOOL)

    source = pocket_position(settings, current_tool)
    return (
        safe_height(settings),
        Move(x=source.x, y=source.y),
        *verified_unload(settings, select_sensor_check(settings.toolSensor)),
        Command(f"M61 Q{NO_TOOL}"),
    )


def load_section(settings: AtcSettings, tool: int, tls: Routine) -> Routine:
    """Fetch ``tool`` and measure it with the ``tls`` routine.

    Routing mirrors ``unload_section``: tool 0 or below does nothing, tool 99 uses
    the probe load snippet, tools outside the magazine are installed by
    the operator, magazine tools get the two-zone verified load.
    """
    if tool <= NO_TOOL:
        return ()

    if tool == PROBE_TOOL_NUMBER:
        snippet = settings.probeLoadGcode.strip()
        if snippet:
            return (
                Comment(f"Load Probe Tool T{PROBE_TOOL_NUMBER}"),
                safe_height(settings),
                Command(f"M61 Q{PROBE_TOOL_NUMBER}"),
                Snippet(snippet),
                *tls,
            )
        return (*_manual_section(settings, MARKER_MANUAL_LOAD_PROBE, PROBE_TOOL_NUMBER), *tls)

    if tool > settings.pockets:
        return (*_manual_section(settings, MARKER_MANUAL_LOAD_TOOL, tool), *tls)

    target = pocket_position(settings, tool)
    return (
        safe_height(settings),
        Move(x=target.x, y=target.y),
        *tool_load(settings, tool, select_sensor_check(settings.toolSensor)),
        *tls,
    )


def tool_change_nodes(
    settings: AtcSettings,
    current_tool: int,
    tool: int,
    offsets: ToolOffsets = ZERO_OFFSETS,
) -> Routine:
    """Unload ``current_tool``, load ``tool`` and measure it.

    Same-tool changes are not skipped; whether to short-circuit them is the
    caller's decision.
    """
    tls = tool_length_setter(settings, offsets)
    start_delay: Routine = ()
    if settings.atcStartDelay > 0:
        start_delay = (Dwell(settings.atcStartDelay),)
    return (
        Comment(TOOL_CHANGE_START_LABEL),
        Snippet(settings.preToolChangeGcode),
        Command(SAVE_UNITS_LINE),
        Command("G21"),
        Command("M5"),
        *start_delay,
        *unload_section(settings, current_tool),
        *load_section(settings, tool, tls),
        safe_height(settings),
        SYNC,
        Command(RESTORE_UNITS_LINE),
        Snippet(settings.postToolChangeGcode),
        Comment(TOOL_CHANGE_END_LABEL),
    )


def tls_nodes(settings: AtcSettings, offsets: ToolOffsets = ZERO_OFFSETS) -> Routine:
    """Stand-alone tool length measurement for ``$TLS``."""
    return (
        Comment(TLS_START_LABEL),
        Snippet(settings.preToolChangeGcode),
        Command(SAVE_UNITS_LINE),
        Command("G21"),
        *tool_length_setter(settings, offsets),
        safe_height(settings),
        SYNC,
        Command(RESTORE_UNITS_LINE),
        Snippet(settings.postToolChangeGcode),
        Comment(TLS_END_LABEL),
    )


def home_nodes(settings: AtcSettings, offsets: ToolOffsets = ZERO_OFFSETS) -> Routine:
    """Home, then measure the loaded tool if no length offset is active yet.

    The guard (offset register zero and a tool loaded) makes this fire on
    the first home of a session only.
    """
    measure = Conditional(
        block_id=HOME_TLS_BLOCK,
        expression="[#<_tool_offset> EQ 0] AND [#<_current_tool> NE 0]",
        body=(
            Snippet(settings.preToolChangeGcode),
            Command("G21"),
            *tool_length_setter(settings, offsets),
            safe_height(settings),
            SYNC,
            Move(x=0, y=0),
            Snippet(settings.postToolChangeGcode),
        ),
    )
    return (
        Command(HOME_TOKEN),
        Command(SAVE_UNITS_LINE),
        measure,
        Command(RESTORE_UNITS_LINE),
    )


def pocket_move_nodes(settings: AtcSettings) -> Routine:
    """Rapid to safe height, then over pocket 1."""
    modal = ("G53", "G21", "G90")
    return (
        Move(z=settings.zSafe, modal=modal),
        Move(x=settings.pocket1.x, y=settings.pocket1.y, modal=modal),
    )


def _layout(nodes: tuple[Node, ...]) -> list[str]:
    return format_gcode(render(nodes))


def build_tool_change_program(
    settings: AtcSettings,
    current_tool: int,
    tool: int,
    offsets: ToolOffsets = ZERO_OFFSETS,
) -> list[str]:
    return _layout(tool_change_nodes(settings, current_tool, tool, offsets))


def build_tls_program(settings: AtcSettings, offsets: ToolOffsets = ZERO_OFFSETS) -> list[str]:
    return _layout(tls_nodes(settings, offsets))


def build_home_program(settings: AtcSettings, offsets: ToolOffsets = ZERO_OFFSETS) -> list[str]:
    return _layout(home_nodes(settings, offsets))


def build_pocket_move_program(settings: AtcSettings) -> list[str]:
    return _layout(pocket_move_nodes(settings))
