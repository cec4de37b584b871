from rapid_change_atc.gcode_formatter import format_gcode


def test_nested_blocks_are_indented():
    lines = [
        "o100 IF [#5399 NE -1]",
        "M4 S1500",
        "o101 IF [#5399 NE -1]",
        "M0",
        "o101 ENDIF",
        "o100 ENDIF",
        "M61 Q0",
    ]
    assert format_gcode(lines) == [
        "o100 IF [#5399 NE -1]",
        "  M4 S1500",
        "  o101 IF [#5399 NE -1]",
        "    M0",
        "  o101 ENDIF",
        "o100 ENDIF",
        "M61 Q0",
    ]


def test_else_branch_sits_at_block_level():
    lines = ["o300 IF [x]", "G0 Z1", "o300 ELSE", "G0 Z2", "o300 ENDIF", "M5"]
    assert format_gcode(lines) == [
        "o300 IF [x]",
        "  G0 Z1",
        "o300 ELSE",
        "  G0 Z2",
        "o300 ENDIF",
        "M5",
    ]


def test_elseif_is_a_branch():
    lines = ["o1 IF [a]", "M0", "o1 ELSEIF [b]", "M1", "o1 ENDIF"]
    assert format_gcode(lines) == ["o1 IF [a]", "  M0", "o1 ELSEIF [b]", "  M1", "o1 ENDIF"]


def test_repeat_and_while_blocks():
    lines = ["o2 REPEAT [3]", "G0 X1", "o2 ENDREPEAT", "o3 WHILE [1]", "M0", "o3 ENDWHILE", "M5"]
    assert format_gcode(lines) == [
        "o2 REPEAT [3]",
        "  G0 X1",
        "o2 ENDREPEAT",
        "o3 WHILE [1]",
        "  M0",
        "o3 ENDWHILE",
        "M5",
    ]


def test_unbalanced_closers_never_go_negative():
    assert format_gcode(["o1 ENDIF", "o1 ENDIF", "G0 X0"]) == ["o1 ENDIF", "o1 ENDIF", "G0 X0"]


def test_blank_lines_dropped_and_lines_stripped():
    assert format_gcode("  G0 X0  \n\n   \nM5\n") == ["G0 X0", "M5"]


def test_lowercase_keywords():
    assert format_gcode(["o5 if [1]", "m0", "o5 endif"]) == ["o5 if [1]", "  m0", "o5 endif"]


def test_non_oword_lines_untouched():
    lines = ["(MSG, PLUGIN_RAPIDCHANGEATC:FAILED_LOAD_TOOL)", "G43.1 Z[#<_nc_last_tlo>]"]
    assert format_gcode(lines) == lines
