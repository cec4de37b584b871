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
# Optional (not required by the license): If you make improvements, please consider
# contributing them back upstream (e.g., via a pull request) so others can benefit.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""JSON-backed settings repository.

The macro engine only ever reads a settings snapshot. ``SettingsStore`` is
the host-owned side of that contract: it keeps the raw snapshot (not the
normalized record, so unknown keys survive) and hands out deep copies.
"""

import copy
import json
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .constants import (
    CONFIG_DIR_ENV,
    CONFIG_DIRNAME,
    SETTINGS_BACKUP_SUFFIX,
    SETTINGS_FILENAME,
    SETTINGS_TEMP_SUFFIX,
)
from .exceptions import SettingsLoadError, SettingsSaveError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def get_default_settings_dir() -> str:
    """Directory holding settings and logs.

    ``RAPID_CHANGE_ATC_CONFIG_DIR`` wins. Otherwise the per-user config
    root (``LOCALAPPDATA`` on Windows, ``XDG_CONFIG_HOME`` elsewhere,
    the home directory as a last resort) plus ``RapidChangeATC``.
    """
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return override
    if sys.platform.startswith("win"):
        root = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA")
    else:
        root = os.getenv("XDG_CONFIG_HOME")
    return str(Path(root or Path.home()) / CONFIG_DIRNAME)


def get_settings_path() -> str:
    """Full path of the settings file; the directory is created on demand."""
    candidates = (
        Path(get_default_settings_dir()),
        Path.home() / ".rapid_change_atc",
    )
    for directory in candidates:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot use settings directory {directory}: {e}")
            continue
        return str(directory / SETTINGS_FILENAME)
    return str(Path.cwd() / SETTINGS_FILENAME)


def _read_json_object(path: PathLike) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsLoadError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise SettingsLoadError(f"Failed to read {path}: {e}")
    if not isinstance(data, dict):
        raise SettingsLoadError(f"{path} must contain a JSON object")
    return data


def _write_atomic(path: Path, data: Dict[str, Any]) -> None:
    """Write through a temp file, keeping a copy of the previous file as backup."""
    temp_path = path.with_name(path.name + SETTINGS_TEMP_SUFFIX)
    backup_path = path.with_name(path.name + SETTINGS_BACKUP_SUFFIX)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        temp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        if path.exists():
            shutil.copy2(path, backup_path)
        temp_path.replace(path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


class SettingsStore:
    """Raw Rapid Change ATC settings snapshot persisted as JSON.

    Satisfies the ``SettingsRepository`` protocol used by ``plugin.RapidChangeAtc``.

    Example:
        store = SettingsStore()
        store.load()
        store.set_settings({"pockets": 6, "pocket1": {"x": 10, "y": 20}})
        store.save()
    """

    def __init__(self, filepath: Optional[PathLike] = None):
        self.filepath = Path(filepath) if filepath else Path(get_settings_path())
        self.data: Dict[str, Any] = {}
        logger.debug(f"Settings file: {self.filepath}")

    def load(self) -> bool:
        """Read the snapshot from disk.

        Returns:
            False when there is no settings file yet (the snapshot stays empty)

        Raises:
            SettingsLoadError: If the file exists but is unreadable or not a JSON object
        """
        if not self.filepath.exists():
            logger.info(f"No settings file at {self.filepath}, starting unconfigured")
            return False
        try:
            self.data = _read_json_object(self.filepath)
        except SettingsLoadError as e:
            logger.error(str(e))
            raise
        logger.info(f"Loaded {len(self.data)} settings from {self.filepath}")
        return True

    def save(self) -> None:
        """Persist the snapshot.

        Raises:
            SettingsSaveError: If the file cannot be written or the snapshot
                is not JSON serializable
        """
        try:
            _write_atomic(self.filepath, self.data)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write settings: {e}")
            raise SettingsSaveError(f"Failed to save {self.filepath}: {e}")
        logger.info("Settings saved")

    def get_settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    def set_settings(self, data: Dict[str, Any]) -> None:
        """Replace the in-memory snapshot; ``save`` persists it."""
        self.data = copy.deepcopy(dict(data))

    def import_from_file(self, filepath: PathLike) -> None:
        """Replace the snapshot with an exported settings file.

        Raises:
            SettingsLoadError: If the file is unreadable or not a JSON object
        """
        self.data = _read_json_object(filepath)
        logger.info(f"Settings imported from {filepath}")
