import json
import logging

import pytest

from rapid_change_atc.cli import expand_lines, main
from rapid_change_atc.settings import normalize_settings
from rapid_change_atc.tool_offsets import ToolOffsets, ToolOffsetTable
from rapid_change_atc.utils.logging_config import APP_LOGGER_NAME, MACRO_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_app_logger():
    yield
    for name in (APP_LOGGER_NAME, MACRO_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def settings_file(tmp_path, raw_settings):
    path = tmp_path / "atc.json"
    path.write_text(json.dumps(raw_settings))
    return path


def test_expand_lines_tracks_current_tool(settings):
    out = list(expand_lines(["G0 X0", "", "M6 T1", "G1 X5", "M6 T2"], settings))
    assert out[0] == "G0 X0"
    assert "G1 X5" in out
    first = out.index("M61 Q1")
    assert out.index("G1 X5") > first
    second_change = out[out.index("G1 X5"):]
    assert "M4 S1500" in second_change
    assert second_change.index("M61 Q0") < second_change.index("M61 Q2")


def test_expand_lines_uses_tool_table(raw_settings):
    s = normalize_settings({**raw_settings, "toolSetter": {"x": 50, "y": 50}})
    table = ToolOffsetTable({1: ToolOffsets(x=2, y=3)})
    out = list(expand_lines(["M6 T1"], s, table))
    assert "G53 G0 X52 Y53" in out


def test_main_expand_to_stdout(tmp_path, settings_file, capsys):
    program = tmp_path / "job.nc"
    program.write_text("G21\nM6 T3\nM30\n")
    assert main(["expand", str(program), "-s", str(settings_file)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "G21"
    assert out[-1] == "M30"
    assert "G53 G0 X0 Y-90" in out


def test_main_expand_to_file(tmp_path, settings_file):
    program = tmp_path / "job.nc"
    program.write_text("M6 T2\n")
    target = tmp_path / "out.nc"
    assert main(["expand", str(program), "-s", str(settings_file), "-c", "1",
                 "-o", str(target)]) == 0
    lines = target.read_text().splitlines()
    assert "M4 S1500" in lines
    assert "M61 Q2" in lines


def test_main_missing_file_fails(tmp_path):
    assert main(["expand", str(tmp_path / "absent.nc")]) == 1


def test_main_bad_tool_table_fails(tmp_path, settings_file):
    program = tmp_path / "job.nc"
    program.write_text("M6 T2\n")
    tools = tmp_path / "tools.json"
    tools.write_text("{oops")
    assert main(["expand", str(program), "-s", str(settings_file), "-t", str(tools)]) == 1


def test_main_settings_prints_normalized(settings_file, capsys):
    assert main(["settings", "-s", str(settings_file)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["pockets"] == 6
    assert data["colletSize"] == "ER20"


def test_expanded_programs_are_logged(tmp_path, settings_file, isolated_config_dir):
    program = tmp_path / "job.nc"
    program.write_text("M6 T3\n")
    assert main(["expand", str(program), "-s", str(settings_file), "-o", str(tmp_path / "o.nc")]) == 0
    macro_log = (isolated_config_dir / "logs" / "macros.log").read_text()
    assert "M6 T3 expanded to" in macro_log
    assert "M61 Q3" in macro_log


@pytest.mark.parametrize("value", ["-1", "two"])
def test_main_rejects_bad_current_tool(tmp_path, value):
    program = tmp_path / "job.nc"
    program.write_text("M6 T2\n")
    with pytest.raises(SystemExit) as excinfo:
        main(["expand", str(program), "-c", value])
    assert excinfo.value.code == 2
