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
"""Command scanner and splicer.

``process`` looks for trigger tokens among the caller's original commands
and replaces each matched entry with the expanded macro. Handlers run in a
fixed order (home, TLS, pocket move, tool change) and each expands at most
its first match. Generated entries are never original, so they are never
scanned again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from rapid_change_atc.programs import (
    build_home_program,
    build_pocket_move_program,
    build_tls_program,
    build_tool_change_program,
)
from rapid_change_atc.settings import AtcSettings, normalize_settings
from rapid_change_atc.tool_offsets import ToolOffsetProvider, ToolOffsetTable
from rapid_change_atc.utils.constants import (
    HOME_TOKEN,
    LINE_NUMBER_PAT,
    M6_PAT,
    NO_TOOL,
    POCKET1_TOKEN,
    TLS_TOKEN,
)
from rapid_change_atc.utils.logging_config import MACRO_LOGGER_NAME
from rapid_change_atc.utils.validation import parse_int

logger = logging.getLogger(__name__)
macro_logger = logging.getLogger(MACRO_LOGGER_NAME)

_EMPTY_META: Mapping[str, Any] = MappingProxyType({})
_SILENT_META: Mapping[str, Any] = MappingProxyType({"silent": True})


@dataclass(frozen=True)
class CommandEntry:
    command: str
    displayCommand: str | None = None
    isOriginal: bool = False
    meta: Mapping[str, Any] = field(default_factory=lambda: _EMPTY_META)

    @property
    def silent(self) -> bool:
        return bool(self.meta.get("silent"))

    @classmethod
    def original(cls, command: str) -> "CommandEntry":
        return cls(command=command, isOriginal=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CommandEntry":
        meta = data.get("meta")
        return cls(
            command=str(data.get("command") or ""),
            displayCommand=data.get("displayCommand"),
            isOriginal=bool(data.get("isOriginal")),
            meta=MappingProxyType(dict(meta)) if isinstance(meta, Mapping) else _EMPTY_META,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "displayCommand": self.displayCommand,
            "isOriginal": self.isOriginal,
            "meta": dict(self.meta),
        }


@dataclass(frozen=True)
class MachineContext:
    """Read-only machine snapshot for one ``process`` call."""

    current_tool: int = NO_TOOL
    tool_offsets: ToolOffsetProvider = field(default_factory=ToolOffsetTable)
    line_number: int | None = None
    source_id: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "MachineContext":
        """Build from the host context (``machineState.tool``, ``tools``, ...)."""
        data = data or {}
        machine_state = data.get("machineState")
        tool = None
        if isinstance(machine_state, Mapping):
            tool = parse_int(machine_state.get("tool"))
        line_number = parse_int(data.get("lineNumber"))
        source_id = data.get("sourceId")
        return cls(
            current_tool=tool if tool is not None and tool >= 0 else NO_TOOL,
            tool_offsets=ToolOffsetTable.from_tools(data.get("tools")),
            line_number=line_number,
            source_id=str(source_id) if source_id is not None else None,
        )

    def describe_location(self) -> str:
        if self.line_number is not None:
            return f"at line {self.line_number}"
        return f"from {self.source_id or 'unknown source'}"


# ============================================================================
# TOKEN RECOGNITION
# ============================================================================

def is_gcode_comment(command: str) -> bool:
    """True for ``;`` comments and lines that are a single ``( ... )`` comment."""
    line = LINE_NUMBER_PAT.sub("", command.strip())
    if line.startswith(";"):
        return True
    return line.startswith("(") and line.endswith(")")


def parse_m6_command(command: Any) -> int | None:
    """Tool number of an ``M6 Tn`` / ``Tn M6`` command, or ``None``.

    A bare ``M6`` without a tool word is not a trigger.
    """
    if not command or not isinstance(command, str):
        return None
    if is_gcode_comment(command):
        return None
    match = M6_PAT.search(command.strip().upper())
    if not match:
        return None
    digits = match.group(1) or match.group(2)
    return int(digits) if digits else None


def _is_token(entry: CommandEntry, token: str) -> bool:
    return entry.isOriginal and entry.command.strip().upper() == token


def _find(commands: Sequence[CommandEntry], predicate: Callable[[CommandEntry], bool]) -> int:
    for idx, entry in enumerate(commands):
        if predicate(entry):
            return idx
    return -1


# ============================================================================
# SPLICING
# ============================================================================

def expand_entry(
    original: CommandEntry,
    program: Sequence[str],
    show_macro_command: bool,
) -> list[CommandEntry]:
    """Turn program lines into command entries that replace ``original``.

    With the macro hidden, the first entry displays the original trigger
    text and the rest are silent. With it shown, every line displays
    itself.
    """
    expanded: list[CommandEntry] = []
    for idx, line in enumerate(program):
        if idx == 0:
            expanded.append(
                CommandEntry(
                    command=line,
                    displayCommand=None if show_macro_command else original.command.strip(),
                )
            )
        else:
            expanded.append(
                CommandEntry(
                    command=line,
                    meta=_EMPTY_META if show_macro_command else _SILENT_META,
                )
            )
    return expanded


def splice(
    commands: Sequence[CommandEntry],
    index: int,
    replacement: Sequence[CommandEntry],
) -> list[CommandEntry]:
    return [*commands[:index], *replacement, *commands[index + 1:]]


def _replace(
    commands: list[CommandEntry],
    index: int,
    program: Sequence[str],
    settings: AtcSettings,
) -> list[CommandEntry]:
    trigger = commands[index].command.strip()
    macro_logger.debug(f"{trigger} expanded to {len(program)} lines:\n" + "\n".join(program))
    return splice(commands, index, expand_entry(commands[index], program, settings.showMacroCommand))


# ============================================================================
# HANDLERS
# ============================================================================

def handle_home_command(
    commands: list[CommandEntry],
    context: MachineContext,
    settings: AtcSettings,
) -> list[CommandEntry]:
    if not settings.performTlsAfterHome:
        return commands
    index = _find(commands, lambda entry: _is_token(entry, HOME_TOKEN))
    if index == -1:
        return commands
    logger.info("$H command detected, adding tool length setter check after homing")
    offsets = context.tool_offsets.lookup(context.current_tool)
    program = build_home_program(settings, offsets)
    return _replace(commands, index, program, settings)


def handle_tls_command(
    commands: list[CommandEntry],
    context: MachineContext,
    settings: AtcSettings,
) -> list[CommandEntry]:
    index = _find(commands, lambda entry: _is_token(entry, TLS_TOKEN))
    if index == -1:
        return commands
    logger.info(f"$TLS command detected, measuring T{context.current_tool}")
    offsets = context.tool_offsets.lookup(context.current_tool)
    program = build_tls_program(settings, offsets)
    return _replace(commands, index, program, settings)


def handle_pocket1_command(
    commands: list[CommandEntry],
    context: MachineContext,
    settings: AtcSettings,
) -> list[CommandEntry]:
    index = _find(commands, lambda entry: _is_token(entry, POCKET1_TOKEN))
    if index == -1:
        return commands
    logger.info("$POCKET1 command detected, moving to pocket 1 position")
    program = build_pocket_move_program(settings)
    return _replace(commands, index, program, settings)


def handle_m6_command(
    commands: list[CommandEntry],
    context: MachineContext,
    settings: AtcSettings,
) -> list[CommandEntry]:
    index = _find(
        commands,
        lambda entry: entry.isOriginal and parse_m6_command(entry.command) is not None,
    )
    if index == -1:
        return commands
    tool = parse_m6_command(commands[index].command)
    if tool is None:
        return commands
    logger.info(
        f"M6 detected with tool T{tool} {context.describe_location()}, "
        f"current tool: T{context.current_tool}, executing tool change program"
    )
    offsets = context.tool_offsets.lookup(tool)
    program = build_tool_change_program(settings, context.current_tool, tool, offsets)
    return _replace(commands, index, program, settings)


HANDLERS = (
    handle_home_command,
    handle_tls_command,
    handle_pocket1_command,
    handle_m6_command,
)


def process(
    commands: Sequence[CommandEntry | Mapping[str, Any]],
    context: MachineContext | Mapping[str, Any] | None,
    settings: AtcSettings | Mapping[str, Any] | None,
) -> list[CommandEntry]:
    """Expand trigger tokens in ``commands`` into full macros.

    Args:
        commands: Command entries (or host dicts) in stream order
        context: Machine snapshot, or the host context mapping
        settings: Settings record or raw settings mapping

    Returns:
        A new command list; the input is left untouched. Never raises for
        malformed settings or unrecognized commands.
    """
    entries = [
        entry if isinstance(entry, CommandEntry) else CommandEntry.from_dict(entry)
        for entry in commands
    ]
    if not isinstance(context, MachineContext):
        context = MachineContext.from_dict(context)
    if not isinstance(settings, AtcSettings):
        settings = normalize_settings(settings)

    for handler in HANDLERS:
        entries = handler(entries, context, settings)
    return entries
