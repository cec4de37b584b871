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
"""Typed instruction nodes for generated macros.

Routine builders return tuples of nodes instead of text so each routine
can be inspected structurally. ``render`` flattens a node tree into bare
G-code lines; indentation is a separate pass (``gcode_formatter``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, TypeAlias, Union

from rapid_change_atc.utils.constants import MARKER_NAMESPACE
from rapid_change_atc.utils.validation import format_number


@dataclass(frozen=True)
class Command:
    """A raw G-code line emitted verbatim."""

    text: str


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Message:
    """Operator marker the host pattern-matches: ``(MSG, NS:CODE)``."""

    code: str
    namespace: str = MARKER_NAMESPACE

    @property
    def text(self) -> str:
        return f"(MSG, {self.namespace}:{self.code})"


@dataclass(frozen=True)
class Move:
    """Straight move. Rapid (G0) unless a feed is given (G1)."""

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None
    modal: tuple[str, ...] = ("G53",)

    @property
    def rapid(self) -> bool:
        return self.feed is None

    @property
    def text(self) -> str:
        words = list(self.modal)
        words.append("G0" if self.rapid else "G1")
        for axis, value in (("X", self.x), ("Y", self.y), ("Z", self.z)):
            if value is not None:
                words.append(f"{axis}{format_number(value)}")
        if self.feed is not None:
            words.append(f"F{format_number(self.feed)}")
        return " ".join(words)


@dataclass(frozen=True)
class Dwell:
    seconds: float

    @property
    def text(self) -> str:
        return f"G4 P{format_number(self.seconds)}"


@dataclass(frozen=True)
class Snippet:
    """User-supplied G-code; may span several lines or be empty."""

    text: str

    def lines(self) -> list[str]:
        return [line.strip() for line in self.text.splitlines() if line.strip()]


@dataclass(frozen=True)
class Conditional:
    """O-word IF block, optionally preceded by guard lines and with an ELSE."""

    block_id: int
    expression: str
    body: tuple["Node", ...]
    orelse: tuple["Node", ...] = ()
    guard: tuple[str, ...] = ()

    @property
    def opener(self) -> str:
        return f"o{self.block_id} IF [{self.expression}]"

    @property
    def closer(self) -> str:
        return f"o{self.block_id} ENDIF"


Node: TypeAlias = Union[Command, Comment, Message, Move, Dwell, Snippet, Conditional]


def render(nodes: Iterable[Node]) -> list[str]:
    """Flatten nodes into unindented G-code lines."""
    return list(_iter_lines(nodes))


def _iter_lines(nodes: Iterable[Node]) -> Iterator[str]:
    for node in nodes:
        if isinstance(node, Conditional):
            yield from node.guard
            yield node.opener
            yield from _iter_lines(node.body)
            if node.orelse:
                yield f"o{node.block_id} ELSE"
                yield from _iter_lines(node.orelse)
            yield node.closer
        elif isinstance(node, Snippet):
            yield from node.lines()
        elif isinstance(node, Comment):
            yield f"({node.text})"
        else:
            yield node.text


def walk(nodes: Sequence[Node]) -> Iterator[Node]:
    """Depth-first iteration over every node, including nested branches."""
    for node in nodes:
        yield node
        if isinstance(node, Conditional):
            yield from walk(node.body)
            yield from walk(node.orelse)
