from rapid_change_atc.commands import CommandEntry, MachineContext
from rapid_change_atc.plugin import RapidChangeAtc, is_configured


class MemoryRepository:
    def __init__(self, data=None):
        self.data = dict(data or {})

    def get_settings(self):
        return dict(self.data)

    def set_settings(self, data):
        self.data = dict(data)


def test_is_configured():
    assert not is_configured(None)
    assert not is_configured({})
    assert not is_configured({"pockets": 6})
    assert is_configured({"pockets": 6, "pocket1": {"x": 0, "y": 0}})


def test_unconfigured_plugin_passes_commands_through():
    plugin = RapidChangeAtc(MemoryRepository())
    commands = [CommandEntry.original("M6 T2")]
    assert plugin.on_before_command(commands) == commands


def test_configured_plugin_expands(raw_settings):
    plugin = RapidChangeAtc(MemoryRepository(raw_settings))
    result = plugin.on_before_command(
        [{"command": "M6 T2", "isOriginal": True}], MachineContext(current_tool=0)
    )
    assert "M61 Q2" in [entry.command for entry in result]


def test_save_settings_sanitizes_and_merges():
    repo = MemoryRepository({"unrelated": "keep", "pockets": 4})
    plugin = RapidChangeAtc(repo)
    saved = plugin.save_settings({"pockets": "20", "loadRpm": 9000, "toolSensor": "aux p3"})
    assert saved.pockets == 8
    assert repo.data["unrelated"] == "keep"
    assert repo.data["pockets"] == 8
    assert repo.data["loadRpm"] == 2000
    assert repo.data["toolSensor"] == "Aux P3"
    assert plugin.current_settings() == saved
