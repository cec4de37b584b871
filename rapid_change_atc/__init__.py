"""Rapid Change ATC - tool-change macro engine.

Expands tool change, tool length setter, pocket move and home triggers in a
CNC command stream into complete, sensor-verified G-code macros.
"""

__version__ = "1.2"
__author__ = "Bob Kolbasowski"

from .commands import CommandEntry, MachineContext, process
from .settings import AtcSettings, normalize_settings
from .tool_offsets import ToolOffsets, ToolOffsetTable

__all__ = [
    "AtcSettings",
    "CommandEntry",
    "MachineContext",
    "ToolOffsetTable",
    "ToolOffsets",
    "normalize_settings",
    "process",
]
