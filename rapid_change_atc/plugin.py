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
"""Host adapter around ``process``.

The host owns settings persistence; this adapter only reads snapshots
from, and writes sanitized payloads back to, a ``SettingsRepository``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol, Sequence

from rapid_change_atc.commands import CommandEntry, MachineContext, process
from rapid_change_atc.settings import AtcSettings, normalize_settings

logger = logging.getLogger(__name__)


class SettingsRepository(Protocol):
    def get_settings(self) -> dict[str, Any]: ...
    def set_settings(self, data: dict[str, Any]) -> None: ...


def is_configured(raw: Mapping[str, Any] | None) -> bool:
    """The magazine must have been set up (pocket 1 and pocket count) at least once."""
    if not raw:
        return False
    return bool(raw.get("pocket1")) and bool(raw.get("pockets"))


class RapidChangeAtc:
    def __init__(self, repository: SettingsRepository):
        self.repository = repository

    def current_settings(self) -> AtcSettings:
        return normalize_settings(self.repository.get_settings() or {})

    def on_before_command(
        self,
        commands: Sequence[CommandEntry | Mapping[str, Any]],
        context: MachineContext | Mapping[str, Any] | None = None,
    ) -> list[CommandEntry]:
        raw = self.repository.get_settings() or {}
        if not is_configured(raw):
            logger.info("Plugin not configured, skipping command handling")
            return [
                entry if isinstance(entry, CommandEntry) else CommandEntry.from_dict(entry)
                for entry in commands
            ]
        return process(commands, context, normalize_settings(raw))

    def save_settings(self, payload: Mapping[str, Any] | None) -> AtcSettings:
        """Sanitize a settings payload and merge it over the stored snapshot."""
        sanitized = normalize_settings(payload or {})
        existing = self.repository.get_settings() or {}
        self.repository.set_settings({**existing, **sanitized.to_dict()})
        logger.info("Rapid Change ATC settings saved")
        return sanitized
