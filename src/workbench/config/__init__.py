"""Configuration management for Workbench.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/workbench/ or %PROGRAMDATA%)
- User-level config (~/.config/workbench/, ~/.wb/ or %APPDATA%)
- Project-level config (<workspace>/.wb/)
- Environment variable overrides (highest priority)

Example usage:
    from workbench.config import load_config

    config = load_config(workspace_root="/path/to/project")
    print(config.llm.model)
    print(config.workspace.ignore_dirs)
"""

from workbench.config.loader import (
    get_config,
    load_config,
    on_config_reload,
    reload_config,
    reset_config,
)
from workbench.config.paths import (
    ConfigSource,
    config_sources,
    project_config_path,
    system_config_path,
    user_config_path,
)
from workbench.config.schema import (
    Config,
    LLMConfig,
    LoggingConfig,
    StateConfig,
    ToolsConfig,
    TurnConfig,
    WorkspaceConfig,
)
from workbench.config.secrets import (
    clear_secret_cache,
    fetch_secret,
    load_api_keys,
    parse_api_keys,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    "on_config_reload",
    # Schema types
    "LLMConfig",
    "WorkspaceConfig",
    "ToolsConfig",
    "TurnConfig",
    "StateConfig",
    "LoggingConfig",
    # Secrets
    "fetch_secret",
    "load_api_keys",
    "parse_api_keys",
    "clear_secret_cache",
    # Paths
    "ConfigSource",
    "config_sources",
    "system_config_path",
    "user_config_path",
    "project_config_path",
]
