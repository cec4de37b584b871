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
"""Tool sensor checks.

The generator cannot see the sensor, so a check is compiled into an O-word
IF block that the controller evaluates later. One strategy is selected per
call from the configured sensor name:

- ``Aux P<n>``: sample digital input ``n`` with M66, branch on #5399
- ``Probe/TLS``: probe and tool setter states combined (AND when idle,
  OR when triggered)
- any native state variable: branch on it directly
"""

from __future__ import annotations

from typing import Sequence

from rapid_change_atc.gcode_blocks import Conditional, Node
from rapid_change_atc.utils.constants import (
    AUX_INPUT_RESULT_VAR,
    AUX_INPUT_TIMEOUT,
    AUX_INPUT_WAIT_MODE,
    AUX_SENSOR_PAT,
    DEFAULT_TOOL_SENSOR,
    SENSOR_PROBE_TLS,
)
from rapid_change_atc.utils.validation import format_number


class SensorCheck:
    """Base strategy: guard lines plus a triggered/not-triggered expression."""

    def guard(self) -> tuple[str, ...]:
        return ()

    def expression(self, triggered: bool) -> str:
        raise NotImplementedError

    def condition(
        self,
        triggered: bool,
        block_id: int,
        body: Sequence[Node] = (),
        orelse: Sequence[Node] = (),
    ) -> Conditional:
        """Build the IF block that runs ``body`` when the sensor state matches."""
        return Conditional(
            block_id=block_id,
            expression=self.expression(triggered),
            body=tuple(body),
            orelse=tuple(orelse),
            guard=self.guard(),
        )


class AuxPortSensor(SensorCheck):
    def __init__(self, port: int):
        self.port = port

    def guard(self) -> tuple[str, ...]:
        return (
            f"M66 P{self.port} L{AUX_INPUT_WAIT_MODE} Q{format_number(AUX_INPUT_TIMEOUT)}",
        )

    def expression(self, triggered: bool) -> str:
        # M66 leaves -1 in #5399 when the input never went high.
        op = "NE" if triggered else "EQ"
        return f"{AUX_INPUT_RESULT_VAR} {op} -1"

    def __repr__(self) -> str:
        return f"AuxPortSensor(port={self.port})"


class CombinedProbeToolsetterSensor(SensorCheck):
    def expression(self, triggered: bool) -> str:
        if triggered:
            return "#<_probe_state> EQ 1 OR #<_toolsetter_state> EQ 1"
        return "#<_probe_state> EQ 0 AND #<_toolsetter_state> EQ 0"

    def __repr__(self) -> str:
        return "CombinedProbeToolsetterSensor()"


class NamedStateSensor(SensorCheck):
    def __init__(self, name: str):
        self.name = name

    def expression(self, triggered: bool) -> str:
        return f"#<{self.name}> EQ {1 if triggered else 0}"

    def __repr__(self) -> str:
        return f"NamedStateSensor(name={self.name!r})"


def select_sensor_check(tool_sensor: str | None) -> SensorCheck:
    name = tool_sensor or DEFAULT_TOOL_SENSOR
    aux = AUX_SENSOR_PAT.match(name)
    if aux:
        return AuxPortSensor(int(aux.group(1)))
    if name == SENSOR_PROBE_TLS:
        return CombinedProbeToolsetterSensor()
    return NamedStateSensor(name)
