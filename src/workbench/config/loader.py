"""Loading, caching and reloading of the merged configuration."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from dataclasses import fields
from pathlib import Path
from typing import Any, TypeVar

import yaml

from workbench.config.merge import cascade
from workbench.config.paths import ConfigSource, config_sources
from workbench.config.schema import (
    Config,
    LLMConfig,
    LoggingConfig,
    StateConfig,
    ToolsConfig,
    TurnConfig,
    WorkspaceConfig,
)
from workbench.logging import get_logger

log = get_logger("config")

T = TypeVar("T")

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "WB_LOG": ("logging", "file"),
    "WB_MODEL": ("llm", "model"),
}

_SECTIONS: dict[str, type] = {
    "llm": LLMConfig,
    "workspace": WorkspaceConfig,
    "tools": ToolsConfig,
    "turn": TurnConfig,
    "state": StateConfig,
    "logging": LoggingConfig,
}

_cached_config: Config | None = None
_reload_callbacks: list[Callable[[Config], None]] = []


def read_layer(source: ConfigSource) -> dict[str, Any]:
    """Parse one config file. Missing, unreadable or malformed files count as empty."""
    try:
        text = source.path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        log.warning("Cannot read %s config %s: %s", source.scope, source.path, e)
        return {}

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        log.warning("Ignoring %s config %s: invalid YAML: %s", source.scope, source.path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s config %s: not a mapping", source.scope, source.path)
        return {}
    log.debug("Loaded %s config from %s", source.scope, source.path)
    return data


def env_layer() -> dict[str, Any]:
    """The layer built from WB_* environment variables. API keys live in secrets."""
    layer: dict[str, Any] = {}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            layer.setdefault(section, {})[key] = value
    return layer


def _strings(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def _extensions(value: Any) -> list[str]:
    return [ext.lstrip(".") for ext in _strings(value)]


# Per-field converters; fields not listed pass through as read from YAML.
_CONVERTERS: dict[str, dict[str, Callable[[Any], Any]]] = {
    "llm": {"max_tokens": int},
    "workspace": {"ignore_dirs": _strings, "index_extensions": _extensions},
    "tools": {"command_timeout": float, "output_limit": int, "formatter_command": _strings},
    "turn": {"max_iterations": int},
    "logging": {"verbose": int},
}


def _build_section(name: str, cls: type[T], data: Any) -> T:
    if not isinstance(data, dict):
        return cls()
    converters = _CONVERTERS.get(name, {})
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        value = data.get(f.name)
        if value is None:
            continue
        convert = converters.get(f.name)
        try:
            kwargs[f.name] = convert(value) if convert else value
        except (TypeError, ValueError):
            log.warning("Ignoring invalid value %r for %s.%s", value, name, f.name)
    return cls(**kwargs)


def build_config(data: dict[str, Any]) -> Config:
    """Turn a merged dict into a Config. Unknown top-level keys go to ``extra``."""
    sections = {name: _build_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()}
    extra = {k: v for k, v in data.items() if k not in _SECTIONS}
    return Config(**sections, extra=extra)


def load_config(workspace_root: str | Path | None = None, reload: bool = False) -> Config:
    """Load and merge config from every source.

    Priority, highest first: environment, project
    (``<workspace_root>/.wb/config.yaml``), user, system. Only the global
    config (no workspace_root) is cached.
    """
    global _cached_config

    if workspace_root is None and _cached_config is not None and not reload:
        return _cached_config

    layers: Iterable[dict[str, Any]] = [
        *(read_layer(source) for source in config_sources(workspace_root)),
        env_layer(),
    ]
    config = build_config(cascade(layers))

    if workspace_root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """The cached global config, loaded on first use."""
    return _cached_config if _cached_config is not None else load_config()


def reset_config() -> None:
    global _cached_config
    _cached_config = None


def reload_config(workspace_root: str | Path | None = None) -> Config:
    """Reload from disk and hand the new config to every reload callback."""
    config = load_config(workspace_root, reload=True)
    for callback in list(_reload_callbacks):
        try:
            callback(config)
        except Exception:
            log.exception("Config reload callback %r failed", callback)
    return config


def on_config_reload(callback: Callable[[Config], None]) -> Callable[[], None]:
    """Register a reload callback. Returns a function that unregisters it."""
    _reload_callbacks.append(callback)

    def unregister() -> None:
        if callback in _reload_callbacks:
            _reload_callbacks.remove(callback)

    return unregister
