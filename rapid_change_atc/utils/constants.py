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

"""Constants and configuration values for Rapid Change ATC.

This module centralizes all magic numbers, default values, and configuration
constants used by the macro engine.
"""

import re
from typing import Dict, Tuple

# ============================================================================
# MACHINE / MAGAZINE ENUMERATIONS
# ============================================================================

COLLET_SIZES: Tuple[str, ...] = ("ER11", "ER16", "ER20", "ER25", "ER32")
"""Supported collet sizes."""

MODELS: Tuple[str, ...] = ("Basic", "Pro", "Premium")
"""Supported magazine models."""

ORIENTATIONS: Tuple[str, ...] = ("X", "Y")
"""Axis along which the pockets are laid out."""

DIRECTIONS: Tuple[str, ...] = ("Positive", "Negative")
"""Direction from pocket 1 to pocket 2."""

DEFAULT_COLLET_SIZE = "ER20"
DEFAULT_MODEL = "Pro"
DEFAULT_ORIENTATION = "Y"
DEFAULT_DIRECTION = "Negative"

# ============================================================================
# BOUNDED INTEGER RANGES
# ============================================================================

POCKETS_DEFAULT = 6
POCKETS_MIN = 1
POCKETS_MAX = 8

ATC_START_DELAY_DEFAULT = 0
"""Dwell (seconds) before the tool change starts."""

ATC_START_DELAY_MIN = 0
ATC_START_DELAY_MAX = 10

RPM_MIN = 500
RPM_MAX = 2000

# ============================================================================
# COLLET-DEPENDENT DEFAULTS
# ============================================================================

COLLET_LOAD_RPM: Dict[str, int] = {"ER16": 1600}
COLLET_UNLOAD_RPM: Dict[str, int] = {"ER16": 2000}
COLLET_Z_RETREAT: Dict[str, float] = {"ER16": 17.0}

LOAD_RPM_DEFAULT = 1200
UNLOAD_RPM_DEFAULT = 1500
Z_RETREAT_DEFAULT = 7.0
SPINDLE_AT_SPEED_DEFAULT = True
"""Trust the controller's own at-speed monitoring unless told otherwise."""

# ============================================================================
# NUMERIC FIELD DEFAULTS
# ============================================================================

FLOAT_FIELD_DEFAULTS: Dict[str, float] = {
    "pocketDistance": 45.0,
    "zEngagement": -50.0,
    "zSafe": 0.0,
    "zSpinOff": 23.0,
    "zProbeStart": -20.0,
    "zone1": -27.0,
    "zone2": -22.0,
    "engageFeedrate": 3500.0,
    "seekDistance": 50.0,
    "seekFeedrate": 500.0,
}

TEXT_FIELDS: Tuple[str, ...] = (
    "probeLoadGcode",
    "probeUnloadGcode",
    "preToolChangeGcode",
    "postToolChangeGcode",
    "abortEventGcode",
)
"""Free-text G-code snippets supplied by the user."""

# ============================================================================
# SENSORS AND AUXILIARY OUTPUTS
# ============================================================================

SENSOR_PROBE_TLS = "Probe/TLS"
"""Virtual sensor combining probe and tool setter inputs."""

NATIVE_SENSOR_STATES: Tuple[str, ...] = ("_probe_state", "_toolsetter_state")
"""Controller state variables usable directly as a tool sensor."""

DEFAULT_TOOL_SENSOR = SENSOR_PROBE_TLS

AUX_SENSOR_PAT = re.compile(r"^\s*Aux\s*P(\d+)\s*$", re.IGNORECASE)

AUX_INPUT_WAIT_MODE = 3
"""M66 L3: wait for the input to go high (returns immediately on timeout)."""

AUX_INPUT_TIMEOUT = 0.2
AUX_INPUT_RESULT_VAR = "#5399"
"""Parameter holding the result of the last M66 read (-1 on timeout)."""

COOLANT_AUX_OUTPUTS: Tuple[str, ...] = ("M7", "M8")
AUX_OUTPUT_DISABLED = -1

# ============================================================================
# RESERVED TOOLS
# ============================================================================

NO_TOOL = 0
PROBE_TOOL_NUMBER = 99

# ============================================================================
# CONDITIONAL BLOCK IDS
# ============================================================================

UNLOAD_CHECK_BLOCK = 100
UNLOAD_RETRY_CHECK_BLOCK = 101
LOAD_ZONE1_BLOCK = 300
LOAD_ZONE2_BLOCK = 301
HOME_TLS_BLOCK = 100

# ============================================================================
# MOTION CONSTANTS
# ============================================================================

SENSOR_SETTLE_DWELL = 0.2
"""Dwell (seconds) before sampling the tool sensor."""

LOAD_ENGAGE_CYCLES = 3
"""Seat/retreat cycles used to settle a tool before verification."""

TLS_BACKOFF_DISTANCE = 2.0
TLS_SLOW_PROBE_DISTANCE = 4.0
TLS_SLOW_PROBE_FEEDRATE = 75.0
TLS_RETRACT_DISTANCE = 5.0

# ============================================================================
# HOST MARKERS AND PROGRAM LABELS
# ============================================================================

MARKER_NAMESPACE = "PLUGIN_RAPIDCHANGEATC"

MARKER_FAILED_LOAD_TOOL = "FAILED_LOAD_TOOL"
MARKER_FAILED_UNLOAD_TOOL = "FAILED_UNLOAD_TOOL"
MARKER_MANUAL_LOAD_TOOL = "MANUAL_LOAD_TOOL"
MARKER_MANUAL_UNLOAD_TOOL = "MANUAL_UNLOAD_TOOL"
MARKER_MANUAL_LOAD_PROBE = "MANUAL_LOAD_PROBE"
MARKER_MANUAL_UNLOAD_PROBE = "MANUAL_UNLOAD_PROBE"

TOOL_CHANGE_START_LABEL = "Start of RapidChangeATC Plugin Sequence"
TOOL_CHANGE_END_LABEL = "End of RapidChangeATC Plugin Sequence"
TLS_START_LABEL = "Start of Tool Length Setter"
TLS_END_LABEL = "End of Tool Length Setter"

SAVE_UNITS_LINE = "#<return_units> = [20 + #<_metric>]"
RESTORE_UNITS_LINE = "G[#<return_units>]"

# ============================================================================
# TRIGGER TOKENS
# ============================================================================

HOME_TOKEN = "$H"
TLS_TOKEN = "$TLS"
POCKET1_TOKEN = "$POCKET1"

M6_PAT = re.compile(
    r"(?:^|[^A-Z])M0*6(?:\s*T0*(\d+)|(?=[^0-9T])|$)"
    r"|(?:^|[^A-Z])T0*(\d+)\s*M0*6(?:[^0-9]|$)",
    re.IGNORECASE,
)
"""Tool change in either ``M6 Tn`` or ``Tn M6`` order, leading zeros allowed."""

LINE_NUMBER_PAT = re.compile(r"^N\d+\s*", re.IGNORECASE)

INDENT_UNIT = "  "
"""Indentation used for each nested O-word block."""

# ============================================================================
# SETTINGS STORAGE
# ============================================================================

CONFIG_DIR_ENV = "RAPID_CHANGE_ATC_CONFIG_DIR"
"""Environment variable overriding the settings directory."""

CONFIG_DIRNAME = "RapidChangeATC"
SETTINGS_FILENAME = "settings.json"
SETTINGS_BACKUP_SUFFIX = ".backup"
SETTINGS_TEMP_SUFFIX = ".tmp"
