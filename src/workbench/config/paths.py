"""Where configuration files live.

Sources, lowest priority first:

    system   /etc/workbench/config.yaml, %PROGRAMDATA%\\workbench\\config.yaml
    user     $XDG_CONFIG_HOME/workbench, ~/.config/workbench (when ~/.config
             exists), otherwise ~/.wb; %APPDATA%\\workbench on Windows
    project  <workspace>/.wb/config.yaml
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_DIR = "workbench"
DOT_DIR = ".wb"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One configuration file and the scope it belongs to."""

    scope: str  # "system", "user" or "project"
    path: Path


def _windows_dir(env_var: str) -> Path | None:
    base = os.environ.get(env_var)
    return Path(base) / APP_DIR if base else None


def system_config_path() -> Path | None:
    if sys.platform == "win32":
        base = _windows_dir("PROGRAMDATA")
    else:
        base = Path("/etc") / APP_DIR
    return base / CONFIG_FILENAME if base else None


def user_config_path() -> Path | None:
    if sys.platform == "win32":
        base = _windows_dir("APPDATA")
        return base / CONFIG_FILENAME if base else None

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR / CONFIG_FILENAME
    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_DIR / CONFIG_FILENAME
    return home / DOT_DIR / CONFIG_FILENAME


def project_config_path(workspace_root: str | Path) -> Path:
    return Path(workspace_root) / DOT_DIR / CONFIG_FILENAME


def config_sources(workspace_root: str | Path | None = None) -> list[ConfigSource]:
    """Candidate files, lowest priority first. None of them has to exist."""
    sources = [
        ConfigSource(scope, path)
        for scope, path in (("system", system_config_path()), ("user", user_config_path()))
        if path is not None
    ]
    if workspace_root:
        sources.append(ConfigSource("project", project_config_path(workspace_root)))
    return sources
