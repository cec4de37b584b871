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

"""Logging setup for Rapid Change ATC.

The ``rapid_change_atc`` logger writes to the console and to two rotating
files (everything, and warnings and up). Expanded
macro programs go to their own ``macros.log`` through the
``rapid_change_atc.macros`` channel so a failed tool change can be
replayed line by line.
"""

from __future__ import annotations

import logging
import logging.handlers
import tempfile
from pathlib import Path

from .config import get_settings_path

APP_LOGGER_NAME = "rapid_change_atc"
MACRO_LOGGER_NAME = f"{APP_LOGGER_NAME}.macros"
LOG_DIRNAME = "logs"

_DETAIL_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _handler_exists(logger: logging.Logger, name: str) -> bool:
    return any(handler.get_name() == name for handler in logger.handlers)


def _attach(logger: logging.Logger, name: str, factory) -> None:
    """Add the handler built by ``factory`` unless one with ``name`` is attached."""
    if _handler_exists(logger, name):
        return
    handler = factory()
    handler.set_name(name)
    logger.addHandler(handler)


def _rotating(
    path: Path,
    level: int,
    fmt: str,
    max_bytes: int = 2_000_000,
    backups: int = 3,
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _console(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S")
    )
    return handler


def get_log_dir() -> Path:
    """Log directory next to the settings file, or a temp dir if that is not writable."""
    log_dir = Path(get_settings_path()).parent / LOG_DIRNAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        log_dir = Path(tempfile.gettempdir()) / "rapid_change_atc_logs"
        log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(console_level: int = logging.INFO, log_dir: Path | None = None) -> logging.Logger:
    """Attach console and rotating file handlers. Safe to call more than once.

    Args:
        console_level: Threshold for the console handler
        log_dir: Directory for the log files (default: ``get_log_dir()``)

    Returns:
        The application logger
    """
    log_dir = Path(log_dir) if log_dir else get_log_dir()

    app = logging.getLogger(APP_LOGGER_NAME)
    app.setLevel(logging.DEBUG)
    app.propagate = False
    _attach(app, "atc_console", lambda: _console(console_level))
    _attach(
        app,
        "atc_app_file",
        lambda: _rotating(log_dir / "rapid_change_atc.log", logging.DEBUG, _DETAIL_FORMAT, 5_000_000, 5),
    )
    _attach(
        app,
        "atc_error_file",
        lambda: _rotating(
            log_dir / "errors.log",
            logging.WARNING,
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d\n%(message)s\n",
        ),
    )

    # Program dumps are bulky; keep them out of the app log and the console.
    macros = logging.getLogger(MACRO_LOGGER_NAME)
    macros.setLevel(logging.DEBUG)
    macros.propagate = False
    _attach(
        macros,
        "atc_macro_file",
        lambda: _rotating(log_dir / "macros.log", logging.DEBUG, "%(asctime)s %(message)s"),
    )
    return app
