import pytest

from rapid_change_atc.settings import normalize_settings


@pytest.fixture
def raw_settings():
    return {
        "pockets": 6,
        "pocket1": {"x": 0, "y": 0},
        "pocketDistance": 45,
        "orientation": "Y",
        "direction": "Negative",
        "toolSetter": {"x": 0, "y": 0},
        "manualTool": {"x": 0, "y": 0},
    }


@pytest.fixture
def settings(raw_settings):
    return normalize_settings(raw_settings)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    monkeypatch.setenv("RAPID_CHANGE_ATC_CONFIG_DIR", str(config_dir))
    return config_dir
