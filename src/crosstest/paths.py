"""Filesystem locations for configuration and the default socket."""
from __future__ import annotations

import sys
from pathlib import Path

from platformdirs import PlatformDirs

_APP_NAME = "crosstest"


def runtime_config_dir() -> Path:
    """Return the per-user configuration directory."""
    dirs = PlatformDirs(appname=_APP_NAME, appauthor=None, roaming=sys.platform == "win32")
    return Path(dirs.user_config_path)


def runtime_state_dir() -> Path:
    dirs = PlatformDirs(appname=_APP_NAME, appauthor=None)
    return Path(dirs.user_runtime_path)


def default_unix_socket_path() -> Path:
    """Return the default Unix domain socket location."""
    return runtime_state_dir() / "crosstest.sock"


def project_config_path() -> Path:
    return Path.cwd() / ".crosstest" / "config.yaml"


__all__ = [
    "runtime_config_dir",
    "runtime_state_dir",
    "default_unix_socket_path",
    "project_config_path",
]
