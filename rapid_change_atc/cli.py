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
"""Command-line interface: expand a G-code file offline.

Each line is fed through the engine the way the sender feeds commands one
at a time, so every trigger in the file gets expanded and the current tool
follows the tool changes.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from rapid_change_atc import __version__
from rapid_change_atc.commands import (
    CommandEntry,
    MachineContext,
    parse_m6_command,
    process,
)
from rapid_change_atc.settings import AtcSettings, normalize_settings
from rapid_change_atc.tool_offsets import ToolOffsetTable
from rapid_change_atc.utils.config import SettingsStore
from rapid_change_atc.utils.exceptions import GcodeFileError, RapidChangeAtcException
from rapid_change_atc.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def expand_lines(
    lines: Iterable[str],
    settings: AtcSettings,
    tool_table: ToolOffsetTable | None = None,
    current_tool: int = 0,
) -> Iterator[str]:
    """Yield the G-code that would actually be sent for ``lines``."""
    tool_table = tool_table or ToolOffsetTable()
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        context = MachineContext(current_tool=current_tool, tool_offsets=tool_table)
        for entry in process([CommandEntry.original(line)], context, settings):
            yield entry.command
        tool = parse_m6_command(line)
        if tool is not None:
            current_tool = tool


def _read_lines(path: str) -> list[str]:
    if path == "-":
        return sys.stdin.read().splitlines()
    try:
        return Path(path).read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as e:
        raise GcodeFileError(f"Failed to read G-code file: {e}", path)


def _load_settings(path: str | None) -> AtcSettings:
    store = SettingsStore(path) if path else SettingsStore()
    store.load()
    return normalize_settings(store.get_settings())


def _cmd_expand(args: argparse.Namespace) -> int:
    settings = _load_settings(args.settings)
    if args.show_macro:
        settings = normalize_settings({**settings.to_dict(), "showMacroCommand": True})
    tool_table = ToolOffsetTable.load(args.tools) if args.tools else ToolOffsetTable()
    output = expand_lines(_read_lines(args.file), settings, tool_table, args.current_tool)
    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                for line in output:
                    f.write(line + "\n")
        except OSError as e:
            raise GcodeFileError(f"Failed to write G-code file: {e}", args.output)
        logger.info(f"Expanded program written to {args.output}")
    else:
        for line in output:
            print(line)
    return 0


def _cmd_settings(args: argparse.Namespace) -> int:
    settings = _load_settings(args.settings)
    print(json.dumps(settings.to_dict(), indent=2, sort_keys=True))
    return 0


def _tool_number(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid tool number: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"tool number must be 0 or greater, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rapid-change-atc",
        description="Expand Rapid Change ATC trigger commands into full G-code macros.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on the console")
    sub = parser.add_subparsers(dest="command", required=True)

    expand = sub.add_parser("expand", help="expand a G-code file ('-' for stdin)")
    expand.add_argument("file")
    expand.add_argument("-s", "--settings", help="settings JSON (default: user config file)")
    expand.add_argument("-t", "--tools", help="tool offset table JSON")
    expand.add_argument(
        "-c", "--current-tool", type=_tool_number, default=0, help="tool loaded at start"
    )
    expand.add_argument("-o", "--output", help="write to a file instead of stdout")
    expand.add_argument("--show-macro", action="store_true", help="force showMacroCommand on")
    expand.set_defaults(func=_cmd_expand)

    show = sub.add_parser("settings", help="print the normalized settings")
    show.add_argument("-s", "--settings", help="settings JSON (default: user config file)")
    show.set_defaults(func=_cmd_settings)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except RapidChangeAtcException as e:
        logger.error(str(e))
        return 1
