import json

import pytest

from rapid_change_atc.tool_offsets import ZERO_OFFSETS, ToolOffsets, ToolOffsetTable
from rapid_change_atc.utils.exceptions import ToolTableError


def test_missing_and_empty_tools_read_as_zero():
    table = ToolOffsetTable({2: ToolOffsets(1, 1, 1)})
    assert table.lookup(0) == ZERO_OFFSETS
    assert table.lookup(-3) == ZERO_OFFSETS
    assert table.lookup(5) == ZERO_OFFSETS
    assert table.lookup(2) == ToolOffsets(1, 1, 1)


def test_from_host_tool_list():
    table = ToolOffsetTable.from_tools(
        [
            {"toolNumber": 1, "offsets": {"x": "0.5", "y": None, "z": -2}},
            {"toolNumber": "bad", "offsets": {"x": 1}},
            {"toolNumber": 0, "offsets": {"x": 1}},
            "junk",
        ]
    )
    assert len(table) == 1
    assert table.lookup(1) == ToolOffsets(0.5, 0.0, -2.0)


def test_from_mapping_with_string_keys():
    table = ToolOffsetTable.from_tools({"3": {"x": 1, "y": 2, "z": 3}})
    assert 3 in table
    assert table.lookup(3) == ToolOffsets(1, 2, 3)


@pytest.mark.parametrize("tools", [None, "nope", 12])
def test_unusable_input_gives_empty_table(tools):
    assert len(ToolOffsetTable.from_tools(tools)) == 0


def test_load_from_file(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(json.dumps({"tools": [{"toolNumber": 4, "offsets": {"y": 7}}]}))
    assert ToolOffsetTable.load(path).lookup(4) == ToolOffsets(y=7)


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("{not json")
    with pytest.raises(ToolTableError) as excinfo:
        ToolOffsetTable.load(path)
    assert excinfo.value.path == str(path)


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ToolTableError):
        ToolOffsetTable.load(tmp_path / "absent.json")
