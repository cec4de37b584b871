"""Utility modules for Rapid Change ATC."""

from .constants import *
from .exceptions import *
from .validation import *
from .config import SettingsStore, get_settings_path

__all__ = [
    # Config
    "SettingsStore",
    "get_settings_path",
]
