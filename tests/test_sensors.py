from rapid_change_atc.gcode_blocks import Command, render
from rapid_change_atc.sensors import (
    AuxPortSensor,
    CombinedProbeToolsetterSensor,
    NamedStateSensor,
    select_sensor_check,
)


def test_select_aux_port():
    check = select_sensor_check("Aux P2")
    assert isinstance(check, AuxPortSensor)
    assert check.port == 2
    assert check.guard() == ("M66 P2 L3 Q0.2",)
    assert check.expression(True) == "#5399 NE -1"
    assert check.expression(False) == "#5399 EQ -1"


def test_select_combined_probe_and_toolsetter():
    check = select_sensor_check("Probe/TLS")
    assert isinstance(check, CombinedProbeToolsetterSensor)
    assert check.guard() == ()
    assert check.expression(False) == "#<_probe_state> EQ 0 AND #<_toolsetter_state> EQ 0"
    assert check.expression(True) == "#<_probe_state> EQ 1 OR #<_toolsetter_state> EQ 1"


def test_select_named_state():
    check = select_sensor_check("_toolsetter_state")
    assert isinstance(check, NamedStateSensor)
    assert check.expression(True) == "#<_toolsetter_state> EQ 1"
    assert check.expression(False) == "#<_toolsetter_state> EQ 0"


def test_missing_sensor_uses_combined_check():
    assert isinstance(select_sensor_check(None), CombinedProbeToolsetterSensor)
    assert isinstance(select_sensor_check(""), CombinedProbeToolsetterSensor)


def test_condition_renders_guard_before_block():
    block = AuxPortSensor(5).condition(True, 100, body=(Command("M0"),))
    assert render([block]) == [
        "M66 P5 L3 Q0.2",
        "o100 IF [#5399 NE -1]",
        "M0",
        "o100 ENDIF",
    ]


def test_condition_with_else_branch():
    block = NamedStateSensor("_probe_state").condition(
        False, 300, body=(Command("M0"),), orelse=(Command("G4 P0"),)
    )
    assert render([block]) == [
        "o300 IF [#<_probe_state> EQ 0]",
        "M0",
        "o300 ELSE",
        "G4 P0",
        "o300 ENDIF",
    ]
