"""Helpers for locating the VRCX database."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


VRCX_APP_NAME = "VRCX"
VRCX_DB_FILENAME = "VRCX.sqlite3"


def get_vrcx_data_dir() -> Path:
    """Return the directory VRCX stores its data in (``%APPDATA%\\VRCX`` on Windows)."""
    dirs = PlatformDirs(appname=VRCX_APP_NAME, appauthor=False, roaming=True)
    return Path(dirs.user_data_path)


def get_default_db_path() -> Path:
    return get_vrcx_data_dir() / VRCX_DB_FILENAME
