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
"""Settings record and normalizer.

``normalize_settings`` never rejects input: every field has a deterministic
fallback, so the returned ``AtcSettings`` is always internally consistent.
Feeding ``AtcSettings.to_dict()`` back in yields an equal record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from rapid_change_atc.utils.constants import (
    ATC_START_DELAY_DEFAULT,
    ATC_START_DELAY_MAX,
    ATC_START_DELAY_MIN,
    AUX_OUTPUT_DISABLED,
    AUX_SENSOR_PAT,
    COLLET_LOAD_RPM,
    COLLET_SIZES,
    COLLET_UNLOAD_RPM,
    COLLET_Z_RETREAT,
    COOLANT_AUX_OUTPUTS,
    DEFAULT_COLLET_SIZE,
    DEFAULT_DIRECTION,
    DEFAULT_MODEL,
    DEFAULT_ORIENTATION,
    DEFAULT_TOOL_SENSOR,
    DIRECTIONS,
    FLOAT_FIELD_DEFAULTS,
    LOAD_RPM_DEFAULT,
    MODELS,
    NATIVE_SENSOR_STATES,
    ORIENTATIONS,
    POCKETS_DEFAULT,
    POCKETS_MAX,
    POCKETS_MIN,
    RPM_MAX,
    RPM_MIN,
    SENSOR_PROBE_TLS,
    SPINDLE_AT_SPEED_DEFAULT,
    TEXT_FIELDS,
    UNLOAD_RPM_DEFAULT,
    Z_RETREAT_DEFAULT,
)
from rapid_change_atc.utils.validation import (
    choose,
    clamp,
    coerce_float,
    coerce_int,
    parse_float,
    to_bool,
    to_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class AtcSettings:
    colletSize: str = DEFAULT_COLLET_SIZE
    model: str = DEFAULT_MODEL
    orientation: str = DEFAULT_ORIENTATION
    direction: str = DEFAULT_DIRECTION
    pockets: int = POCKETS_DEFAULT
    atcStartDelay: int = ATC_START_DELAY_DEFAULT
    showMacroCommand: bool = False
    performTlsAfterHome: bool = False
    spindleAtSpeed: bool = SPINDLE_AT_SPEED_DEFAULT
    addProbe: bool = False

    pocket1: Point = Point()
    toolSetter: Point = Point()
    manualTool: Point = Point()
    pocketDistance: float = FLOAT_FIELD_DEFAULTS["pocketDistance"]

    zEngagement: float = FLOAT_FIELD_DEFAULTS["zEngagement"]
    zSafe: float = FLOAT_FIELD_DEFAULTS["zSafe"]
    zSpinOff: float = FLOAT_FIELD_DEFAULTS["zSpinOff"]
    zRetreat: float = Z_RETREAT_DEFAULT
    zProbeStart: float = FLOAT_FIELD_DEFAULTS["zProbeStart"]
    zone1: float = FLOAT_FIELD_DEFAULTS["zone1"]
    zone2: float = FLOAT_FIELD_DEFAULTS["zone2"]

    loadRpm: int = LOAD_RPM_DEFAULT
    unloadRpm: int = UNLOAD_RPM_DEFAULT
    engageFeedrate: float = FLOAT_FIELD_DEFAULTS["engageFeedrate"]

    seekDistance: float = FLOAT_FIELD_DEFAULTS["seekDistance"]
    seekFeedrate: float = FLOAT_FIELD_DEFAULTS["seekFeedrate"]
    toolSensor: str = DEFAULT_TOOL_SENSOR
    tlsAuxOutput: int | str = AUX_OUTPUT_DISABLED

    probeLoadGcode: str = ""
    probeUnloadGcode: str = ""
    preToolChangeGcode: str = ""
    postToolChangeGcode: str = ""
    abortEventGcode: str = ""

    @property
    def spin_off_height(self) -> float:
        """Height at which the spindle starts turning above the pocket."""
        return self.zEngagement + self.zSpinOff

    @property
    def retreat_height(self) -> float:
        return self.zEngagement + self.zRetreat

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the host's camelCase settings schema."""
        data: dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            data[name] = value.to_dict() if isinstance(value, Point) else value
        return data


def _collet_default(table: Mapping[str, Any], collet: str, fallback):
    return table.get(collet, fallback)


def _explicit(raw: Mapping[str, Any], key: str) -> bool:
    return raw.get(key) is not None


def _sanitize_point(value: Any) -> Point:
    if isinstance(value, Point):
        return value
    if not isinstance(value, Mapping):
        value = {}
    return Point(x=coerce_float(value.get("x")), y=coerce_float(value.get("y")))


def _sanitize_rpm(raw: Mapping[str, Any], key: str, fallback: int) -> int:
    if not _explicit(raw, key):
        return fallback
    parsed = parse_float(raw.get(key))
    if parsed is None:
        logger.debug(f"{key}={raw.get(key)!r} is not numeric, using {fallback}")
        return fallback
    return int(clamp(int(parsed), RPM_MIN, RPM_MAX))


def _sanitize_tool_sensor(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_TOOL_SENSOR
    aux = AUX_SENSOR_PAT.match(value)
    if aux:
        return f"Aux P{int(aux.group(1))}"
    if value == SENSOR_PROBE_TLS or value in NATIVE_SENSOR_STATES:
        return value
    logger.debug(f"Unknown tool sensor {value!r}, using {DEFAULT_TOOL_SENSOR}")
    return DEFAULT_TOOL_SENSOR


def _sanitize_aux_output(value: Any) -> int | str:
    if isinstance(value, str) and value.strip().upper() in COOLANT_AUX_OUTPUTS:
        return value.strip().upper()
    parsed = parse_float(value)
    if parsed is None or parsed < 0:
        return AUX_OUTPUT_DISABLED
    return int(parsed)


def normalize_settings(raw: Mapping[str, Any] | AtcSettings | None = None) -> AtcSettings:
    """Validate and clamp a raw configuration into an ``AtcSettings`` record.

    Args:
        raw: Partial settings mapping (camelCase keys), an existing record,
            or ``None``

    Returns:
        A complete settings record. Never raises.
    """
    if isinstance(raw, AtcSettings):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}

    # Older payloads kept the collet size in ``model``.
    collet = choose(
        raw.get("colletSize") if raw.get("colletSize") is not None else raw.get("model"),
        COLLET_SIZES,
        DEFAULT_COLLET_SIZE,
    )
    model_value = None
    for key in ("model", "trip", "modelName", "machineModel"):
        if raw.get(key) is not None:
            model_value = raw.get(key)
            break

    delay_value = raw.get("atcStartDelay")
    if delay_value is None:
        delay_value = raw.get("spindleDelay")

    z_retreat_default = _collet_default(COLLET_Z_RETREAT, collet, Z_RETREAT_DEFAULT)
    z_retreat = (
        coerce_float(raw.get("zRetreat"), z_retreat_default)
        if _explicit(raw, "zRetreat")
        else z_retreat_default
    )

    floats = {
        key: coerce_float(raw.get(key), fallback)
        for key, fallback in FLOAT_FIELD_DEFAULTS.items()
    }
    snippets = {key: to_text(raw.get(key)) for key in TEXT_FIELDS}

    return AtcSettings(
        colletSize=collet,
        model=choose(model_value, MODELS, DEFAULT_MODEL),
        orientation=choose(raw.get("orientation"), ORIENTATIONS, DEFAULT_ORIENTATION),
        direction=choose(raw.get("direction"), DIRECTIONS, DEFAULT_DIRECTION),
        pockets=clamp(coerce_int(raw.get("pockets"), POCKETS_DEFAULT), POCKETS_MIN, POCKETS_MAX),
        atcStartDelay=clamp(
            coerce_int(delay_value, ATC_START_DELAY_DEFAULT),
            ATC_START_DELAY_MIN,
            ATC_START_DELAY_MAX,
        ),
        showMacroCommand=to_bool(raw.get("showMacroCommand")),
        performTlsAfterHome=to_bool(raw.get("performTlsAfterHome")),
        spindleAtSpeed=to_bool(raw.get("spindleAtSpeed"), SPINDLE_AT_SPEED_DEFAULT),
        addProbe=to_bool(raw.get("addProbe")),
        pocket1=_sanitize_point(raw.get("pocket1")),
        toolSetter=_sanitize_point(raw.get("toolSetter")),
        manualTool=_sanitize_point(raw.get("manualTool")),
        zRetreat=z_retreat,
        loadRpm=_sanitize_rpm(
            raw, "loadRpm", _collet_default(COLLET_LOAD_RPM, collet, LOAD_RPM_DEFAULT)
        ),
        unloadRpm=_sanitize_rpm(
            raw, "unloadRpm", _collet_default(COLLET_UNLOAD_RPM, collet, UNLOAD_RPM_DEFAULT)
        ),
        toolSensor=_sanitize_tool_sensor(raw.get("toolSensor")),
        tlsAuxOutput=_sanitize_aux_output(raw.get("tlsAuxOutput")),
        **floats,
        **snippets,
    )
