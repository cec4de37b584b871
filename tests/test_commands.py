import re

import pytest

from rapid_change_atc.commands import (
    CommandEntry,
    MachineContext,
    is_gcode_comment,
    parse_m6_command,
    process,
)
from rapid_change_atc.settings import normalize_settings
from rapid_change_atc.tool_offsets import ToolOffsets, ToolOffsetTable

EXPONENT_PAT = re.compile(r"\d[eE][+-]?\d")


def originals(*commands):
    return [CommandEntry.original(c) for c in commands]


@pytest.mark.parametrize(
    "command, expected",
    [
        ("M6 T2", 2),
        ("T2 M6", 2),
        ("m06 t003", 3),
        ("M6T5", 5),
        ("N10 M6 T4", 4),
        ("T0 M6", 0),
        ("G0 X1 M6 T7", 7),
        ("M6", None),
        ("M61 Q2", None),
        ("M60", None),
        ("G0 X1", None),
        ("(M6 T2)", None),
        ("; M6 T2", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_m6_command(command, expected):
    assert parse_m6_command(command) == expected


@pytest.mark.parametrize(
    "command, expected",
    [("; note", True), ("(tool change)", True), ("N20 (note)", True),
     ("G0 X1 (move)", False), ("M6 T1", False)],
)
def test_is_gcode_comment(command, expected):
    assert is_gcode_comment(command) is expected


def test_unrecognized_commands_pass_through(settings):
    commands = originals("G0 X1", "G1 Y2 F100")
    assert process(commands, MachineContext(), settings) == commands


def test_m6_expansion_keeps_surrounding_order(settings):
    result = process(originals("G0 X1", "M6 T2", "G1 Y2"), MachineContext(), settings)
    assert result[0].command == "G0 X1"
    assert result[-1].command == "G1 Y2"
    assert result[1].command == "(Start of RapidChangeATC Plugin Sequence)"
    assert result[-2].command == "(End of RapidChangeATC Plugin Sequence)"
    assert "M61 Q2" in [entry.command for entry in result]


def test_only_first_m6_is_expanded(settings):
    result = process(originals("M6 T1", "M6 T2"), MachineContext(), settings)
    assert result[-1] == CommandEntry.original("M6 T2")
    assert "M61 Q1" in [entry.command for entry in result]


def test_hidden_macro_shows_trigger_once(settings):
    result = process(originals("M6 T2"), MachineContext(), settings)
    assert result[0].displayCommand == "M6 T2"
    assert not result[0].silent
    assert all(entry.silent for entry in result[1:])
    assert all(entry.displayCommand is None for entry in result[1:])
    assert not any(entry.isOriginal for entry in result)


def test_shown_macro_displays_every_line(raw_settings):
    s = normalize_settings({**raw_settings, "showMacroCommand": True})
    result = process(originals("M6 T2"), MachineContext(), s)
    assert all(entry.displayCommand is None for entry in result)
    assert not any(entry.silent for entry in result)


def test_non_original_entries_are_not_scanned(settings):
    generated = [CommandEntry("M6 T2"), CommandEntry("$TLS")]
    assert process(generated, MachineContext(), settings) == generated


def test_comment_lines_are_not_triggers(settings):
    commands = originals("(M6 T2)", "; M6 T3")
    assert process(commands, MachineContext(), settings) == commands


def test_home_only_expanded_when_enabled(raw_settings, settings):
    assert process(originals("$H"), MachineContext(current_tool=1), settings) == originals("$H")

    s = normalize_settings({**raw_settings, "performTlsAfterHome": True})
    result = process(originals("$H"), MachineContext(current_tool=1), s)
    assert result[0].command == "$H"
    assert result[0].displayCommand == "$H"
    assert "o100 ENDIF" in [entry.command for entry in result]


def test_tls_uses_current_tool_offsets(raw_settings):
    s = normalize_settings({**raw_settings, "toolSetter": {"x": 100, "y": 200}})
    context = MachineContext(
        current_tool=3, tool_offsets=ToolOffsetTable({3: ToolOffsets(x=1, y=2)})
    )
    commands = [entry.command for entry in process(originals("$TLS"), context, s)]
    assert commands[0] == "(Start of Tool Length Setter)"
    assert "G53 G0 X101 Y202" in commands


def test_m6_uses_target_tool_offsets(raw_settings):
    s = normalize_settings({**raw_settings, "toolSetter": {"x": 100, "y": 200}})
    context = MachineContext(
        current_tool=1,
        tool_offsets=ToolOffsetTable({1: ToolOffsets(x=9, y=9), 2: ToolOffsets(x=-1, y=-2)}),
    )
    commands = [entry.command for entry in process(originals("M6 T2"), context, s)]
    assert "G53 G0 X99 Y198" in commands
    assert "G53 G0 X109 Y209" not in commands


def test_pocket1_move(raw_settings):
    s = normalize_settings({**raw_settings, "pocket1": {"x": 5, "y": 6}})
    result = process(originals("$pocket1"), MachineContext(), s)
    assert [entry.command for entry in result] == ["G53 G21 G90 G0 Z0", "G53 G21 G90 G0 X5 Y6"]


def test_each_token_kind_expands_in_one_call(raw_settings):
    s = normalize_settings({**raw_settings, "performTlsAfterHome": True})
    result = process(originals("$H", "$TLS", "$POCKET1", "M6 T1"), MachineContext(), s)
    commands = [entry.command for entry in result]
    assert commands[0] == "$H"
    assert "(Start of Tool Length Setter)" in commands
    assert "G53 G21 G90 G0 X0 Y0" in commands
    assert "M61 Q1" in commands
    assert not any(entry.isOriginal for entry in result)


def test_input_list_is_not_mutated(settings):
    commands = originals("M6 T2")
    snapshot = list(commands)
    process(commands, MachineContext(), settings)
    assert commands == snapshot


def test_host_dicts_and_raw_settings(raw_settings):
    result = process(
        [{"command": "M6 T2", "isOriginal": True}],
        {"machineState": {"tool": "1"}, "lineNumber": 12},
        raw_settings,
    )
    commands = [entry.command for entry in result]
    assert "M4 S1500" in commands
    assert "M61 Q2" in commands


def test_malformed_settings_never_raise():
    result = process(originals("M6 T1"), None, {"pockets": "lots", "loadRpm": "fast"})
    assert "M3 S1200" in [entry.command for entry in result]


def test_machine_context_from_host_dict():
    context = MachineContext.from_dict(
        {
            "machineState": {"tool": 4},
            "tools": [{"toolNumber": 4, "offsets": {"x": 1, "y": 2, "z": 3}}],
            "lineNumber": "7",
            "sourceId": "job.nc",
        }
    )
    assert context.current_tool == 4
    assert context.tool_offsets.lookup(4) == ToolOffsets(1, 2, 3)
    assert context.describe_location() == "at line 7"
    assert MachineContext.from_dict({"sourceId": "console"}).describe_location() == "from console"
    assert MachineContext.from_dict(None).current_tool == 0


def test_command_entry_dict_round_trip():
    entry = CommandEntry("G0 X1", meta={"silent": True})
    again = CommandEntry.from_dict(entry.to_dict())
    assert again.command == "G0 X1"
    assert again.silent
    assert not again.isOriginal


def test_tiny_tool_offset_renders_without_exponent(settings):
    context = MachineContext(tool_offsets=ToolOffsetTable({2: ToolOffsets(x=0.00001)}))
    commands = [entry.command for entry in process(originals("M6 T2"), context, settings)]
    assert "G53 G0 X0.00001 Y0" in commands
    assert not any(EXPONENT_PAT.search(command) for command in commands)


def test_tiny_pocket_distance_renders_without_exponent(raw_settings):
    s = normalize_settings({**raw_settings, "pocketDistance": 0.000045})
    commands = [entry.command for entry in process(originals("M6 T2"), MachineContext(), s)]
    assert "G53 G0 X0 Y-0.000045" in commands
    assert not any(EXPONENT_PAT.search(command) for command in commands)
