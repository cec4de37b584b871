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
"""Routine builders: manual fallback, tool unload, tool load, tool length setter.

Each builder returns a tuple of ``gcode_blocks`` nodes. Sensor verification
outcomes are compiled in as O-word branches; nothing here observes the
machine.
"""

from __future__ import annotations

from rapid_change_atc.gcode_blocks import (
    Command,
    Comment,
    Dwell,
    Message,
    Move,
    Node,
)
from rapid_change_atc.sensors import SensorCheck, select_sensor_check
from rapid_change_atc.settings import AtcSettings
from rapid_change_atc.tool_offsets import ZERO_OFFSETS, ToolOffsets
from rapid_change_atc.utils.constants import (
    AUX_OUTPUT_DISABLED,
    COOLANT_AUX_OUTPUTS,
    LOAD_ENGAGE_CYCLES,
    LOAD_ZONE1_BLOCK,
    LOAD_ZONE2_BLOCK,
    MARKER_FAILED_LOAD_TOOL,
    MARKER_FAILED_UNLOAD_TOOL,
    SENSOR_SETTLE_DWELL,
    TLS_BACKOFF_DISTANCE,
    TLS_RETRACT_DISTANCE,
    TLS_SLOW_PROBE_DISTANCE,
    TLS_SLOW_PROBE_FEEDRATE,
    UNLOAD_CHECK_BLOCK,
    UNLOAD_RETRY_CHECK_BLOCK,
)
from rapid_change_atc.utils.validation import format_number

Routine = tuple[Node, ...]

SYNC = Dwell(0)
SETTLE = Dwell(SENSOR_SETTLE_DWELL)
WAIT_FOR_SPEED = Command("G65P6")


def safe_height(settings: AtcSettings) -> Move:
    return Move(z=settings.zSafe)


def manual_fallback(settings: AtcSettings) -> Routine:
    """Park over the manual tool bay and pause for the operator (M0)."""
    return (
        safe_height(settings),
        Move(x=settings.manualTool.x, y=settings.manualTool.y),
        Command("M0"),
    )


def failure(settings: AtcSettings, code: str) -> Routine:
    """Marker comment for the host followed by the manual fallback."""
    return (SYNC, Message(code), *manual_fallback(settings))


def _spin(settings: AtcSettings, spin_command: str) -> Routine:
    if settings.spindleAtSpeed:
        return (Command(spin_command),)
    return (WAIT_FOR_SPEED, Command(spin_command))


def _spin_stop(settings: AtcSettings) -> Routine:
    if settings.spindleAtSpeed:
        return (Command("M5"),)
    return (WAIT_FOR_SPEED, Command("M5"))


def _engage(settings: AtcSettings) -> Routine:
    return (
        Move(z=settings.zEngagement, feed=settings.engageFeedrate),
        Move(z=settings.retreat_height, feed=settings.engageFeedrate),
    )


def tool_unload(settings: AtcSettings) -> Routine:
    """One unload pass: spin in reverse down onto the pocket and back up to zone 1."""
    return (
        Move(z=settings.spin_off_height),
        *_spin(settings, f"M4 S{format_number(settings.unloadRpm)}"),
        *_engage(settings),
        *_spin_stop(settings),
        Move(z=settings.zone1),
        SETTLE,
    )


def verified_unload(settings: AtcSettings, sensor: SensorCheck | None = None) -> Routine:
    """Unload with a single retry, then fall back to the operator.

    The tool sensor still reporting a tool after the first pass triggers
    exactly one more pass; still present after that means the operator
    has to take over.
    """
    sensor = sensor or select_sensor_check(settings.toolSensor)
    unload = tool_unload(settings)
    retry_failed = sensor.condition(
        True,
        UNLOAD_RETRY_CHECK_BLOCK,
        body=failure(settings, MARKER_FAILED_UNLOAD_TOOL),
    )
    still_present = sensor.condition(
        True,
        UNLOAD_CHECK_BLOCK,
        body=(*unload, retry_failed),
    )
    return (*unload, still_present)


def tool_load(settings: AtcSettings, tool: int, sensor: SensorCheck | None = None) -> Routine:
    """Load ``tool`` from the pocket below and verify it with the two-zone check.

    Zone 1: nothing detected means the pick failed entirely.
    Zone 2: still detected means the tool is seated wrong.
    Only when both checks pass does the program reach ``M61``.
    """
    sensor = sensor or select_sensor_check(settings.toolSensor)
    engage_cycles: list[Node] = []
    for _ in range(LOAD_ENGAGE_CYCLES):
        engage_cycles.extend(_engage(settings))

    missed_seat = sensor.condition(
        True,
        LOAD_ZONE2_BLOCK,
        body=failure(settings, MARKER_FAILED_LOAD_TOOL),
    )
    zone_checks = sensor.condition(
        False,
        LOAD_ZONE1_BLOCK,
        body=failure(settings, MARKER_FAILED_LOAD_TOOL),
        orelse=(Move(z=settings.zone2), SETTLE, missed_seat),
    )
    return (
        Move(z=settings.spin_off_height),
        *_spin(settings, f"M3 S{format_number(settings.loadRpm)}"),
        *engage_cycles,
        *_spin_stop(settings),
        Move(z=settings.zone1),
        SETTLE,
        zone_checks,
        Command(f"M61 Q{tool}"),
    )


def _aux_output_commands(settings: AtcSettings) -> tuple[Routine, Routine]:
    output = settings.tlsAuxOutput
    if isinstance(output, str) and output in COOLANT_AUX_OUTPUTS:
        return (SYNC, Command(output), SYNC), (SYNC, Command("M9"), SYNC)
    if isinstance(output, int) and output > AUX_OUTPUT_DISABLED:
        return (
            (SYNC, Command(f"M64 P{output}"), SYNC),
            (SYNC, Command(f"M65 P{output}"), SYNC),
        )
    return (), ()


def tool_length_setter(settings: AtcSettings, offsets: ToolOffsets = ZERO_OFFSETS) -> Routine:
    """Measure the loaded tool on the tool setter and apply the new G43.1 offset.

    The setter position is shifted by the tool's X/Y offset; a non-zero Z
    offset adds a relative approach before probing. The new offset is the
    probe trigger Z (#5063) plus the active work coordinate system's Z
    offset.
    """
    aux_on, aux_off = _aux_output_commands(settings)
    extra_z: Routine = ()
    if offsets.z:
        extra_z = (Move(z=offsets.z, modal=("G91",)), Command("G90"))
    seek = -abs(settings.seekDistance)
    return (
        safe_height(settings),
        Move(x=settings.toolSetter.x + offsets.x, y=settings.toolSetter.y + offsets.y),
        Move(z=settings.zProbeStart),
        *extra_z,
        *aux_on,
        Command("G43.1 Z0"),
        Command(f"G38.2 G91 Z{format_number(seek)} F{format_number(settings.seekFeedrate)}"),
        SETTLE,
        Move(z=TLS_BACKOFF_DISTANCE, modal=("G91",)),
        Command(
            f"G38.2 G91 Z{format_number(-TLS_SLOW_PROBE_DISTANCE)} "
            f"F{format_number(TLS_SLOW_PROBE_FEEDRATE)}"
        ),
        Move(z=TLS_RETRACT_DISTANCE, modal=("G91",)),
        Command("G90"),
        *aux_off,
        Command("#<_ofs_idx> = [#5220 * 20 + 5203]"),
        Command("#<_cur_wcs_z_ofs> = #[#<_ofs_idx>]"),
        Command("#<_nc_last_tlo> = [#5063 + #<_cur_wcs_z_ofs>]"),
        Command("G43.1 Z[#<_nc_last_tlo>]"),
        Comment("Notify host that the tool length offset is set"),
        Command("$#=_tool_offset"),
    )
