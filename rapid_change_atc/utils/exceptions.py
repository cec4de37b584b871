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

"""Custom exceptions for Rapid Change ATC.

The macro engine itself never raises: bad settings are defaulted and
unrecognized commands pass through. These exceptions belong to the
host-side layers around it (settings storage, tool table loading, CLI).
"""

from typing import Optional


class RapidChangeAtcException(Exception):
    """Base exception for all Rapid Change ATC errors."""
    pass


# ============================================================================
# SETTINGS EXCEPTIONS
# ============================================================================

class SettingsException(RapidChangeAtcException):
    """Base exception for settings errors."""
    pass


class SettingsLoadError(SettingsException):
    """Failed to load settings file."""
    pass


class SettingsSaveError(SettingsException):
    """Failed to save settings file."""
    pass


# ============================================================================
# TOOL TABLE EXCEPTIONS
# ============================================================================

class ToolTableError(RapidChangeAtcException):
    """Tool offset table could not be read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


# ============================================================================
# G-CODE SOURCE EXCEPTIONS
# ============================================================================

class GcodeFileError(RapidChangeAtcException):
    """Error reading or writing a G-code file."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
