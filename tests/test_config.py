"""Tests for the configuration module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from workbench.config import (
    Config,
    clear_secret_cache,
    fetch_secret,
    get_config,
    load_api_keys,
    load_config,
    on_config_reload,
    parse_api_keys,
    reload_config,
    reset_config,
)
from workbench.config.loader import build_config, env_layer, read_layer
from workbench.config.merge import cascade, overlay
from workbench.config.paths import (
    ConfigSource,
    config_sources,
    project_config_path,
    system_config_path,
    user_config_path,
)


class TestOverlay:
    """Test layer merging."""

    def test_simple_override(self) -> None:
        """Test that override values replace base values."""
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}
        assert overlay(base, override) == {"a": 1, "b": 3, "c": 4}
        assert base == {"a": 1, "b": 2}

    def test_nested_merge(self) -> None:
        """Test that nested dicts are recursively merged."""
        base = {"llm": {"model": "gemini/gemini-2.5-pro", "max_tokens": 1000}}
        override = {"llm": {"max_tokens": 2000}}
        result = overlay(base, override)
        assert result["llm"]["model"] == "gemini/gemini-2.5-pro"
        assert result["llm"]["max_tokens"] == 2000

    def test_none_does_not_override(self) -> None:
        """Test that None values in override don't replace base values."""
        assert overlay({"a": 1}, {"a": None}) == {"a": 1}

    def test_list_replaced_not_merged(self) -> None:
        """Test that lists are replaced, not concatenated."""
        assert overlay({"items": [1, 2, 3]}, {"items": [4, 5]})["items"] == [4, 5]

    def test_cascade_order(self) -> None:
        """Later layers win; empty layers are skipped."""
        assert cascade([{"a": 1, "b": 2}, {}, {"b": 3}, {"c": 4}]) == {"a": 1, "b": 3, "c": 4}

    def test_cascade_nothing(self) -> None:
        assert cascade([]) == {}


class TestConfigPaths:
    """Test platform-aware path resolution."""

    def test_windows_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("PROGRAMDATA", "C:\\ProgramData")

        path = system_config_path()
        assert path is not None
        assert "ProgramData" in str(path)
        assert "workbench" in str(path)

    def test_windows_without_programdata(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.delenv("PROGRAMDATA", raising=False)
        assert system_config_path() is None

    def test_unix_system_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert system_config_path() == Path("/etc/workbench/config.yaml")

    def test_unix_user_path_xdg(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test user config path respects XDG_CONFIG_HOME."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/home/test/.config-custom")
        assert user_config_path() == Path("/home/test/.config-custom/workbench/config.yaml")

    def test_unix_user_path_dot_dir(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Without XDG or ~/.config the user file lives in ~/.wb."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert user_config_path() == tmp_path / ".wb" / "config.yaml"

    def test_project_config_path(self) -> None:
        path = project_config_path("/home/user/myproject")
        assert path == Path("/home/user/myproject/.wb/config.yaml")

    def test_sources_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that config sources are in priority order."""
        monkeypatch.setattr(sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/xdg")

        sources = config_sources("/project")
        assert [s.scope for s in sources] == ["system", "user", "project"]
        assert "etc" in sources[0].path.parts
        assert "xdg" in sources[1].path.parts
        assert "project" in sources[2].path.parts

    def test_no_project_source_without_root(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert [s.scope for s in config_sources()] == ["system", "user"]


class TestLayers:
    """Reading single layers and building the typed config."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_layer(ConfigSource("user", tmp_path / "nope.yaml")) == {}

    def test_non_mapping_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert read_layer(ConfigSource("project", path)) == {}

    def test_env_layer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WB_MODEL", "gpt-4o")
        monkeypatch.delenv("WB_LOG", raising=False)
        assert env_layer() == {"llm": {"model": "gpt-4o"}}

    def test_values_converted(self) -> None:
        config = build_config({
            "tools": {"command_timeout": "5", "output_limit": "100", "formatter_command": "prettier"},
            "turn": {"max_iterations": "0"},
        })
        assert config.tools.command_timeout == 5.0
        assert config.tools.output_limit == 100
        assert config.tools.formatter_command == ["prettier"]
        assert config.turn.max_iterations == 0

    def test_invalid_value_keeps_default(self) -> None:
        config = build_config({"turn": {"max_iterations": "lots"}, "llm": "not a section"})
        assert config.turn.max_iterations == 25
        assert config.llm.model == "gemini/gemini-2.5-flash"


class TestConfigLoading:
    """Test configuration loading."""

    @pytest.fixture(autouse=True)
    def isolate(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Point the user config at an empty directory and reset the cache."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        monkeypatch.delenv("WB_MODEL", raising=False)
        monkeypatch.delenv("WB_LOG", raising=False)
        reset_config()
        yield
        reset_config()

    @pytest.fixture
    def project(self, tmp_path: Path) -> Path:
        """A project folder with an empty .wb directory."""
        root = tmp_path / "project"
        (root / ".wb").mkdir(parents=True)
        return root

    def test_defaults(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path))
        assert isinstance(config, Config)
        assert config.llm.model == "gemini/gemini-2.5-flash"
        assert config.llm.mode == "code"
        assert config.turn.max_iterations == 25
        assert ".git" in config.workspace.ignore_dirs
        assert "node_modules" in config.workspace.ignore_dirs
        assert config.workspace.index_extensions == [
            "js", "html", "css", "md", "json", "py", "java", "ts",
        ]

    def test_project_config(self, project: Path) -> None:
        (project / ".wb" / "config.yaml").write_text(
            """
llm:
  model: anthropic/claude-sonnet-4-20250514
  mode: plan
turn:
  max_iterations: 5
workspace:
  index_extensions: [".py", "md"]
"""
        )
        config = load_config(str(project))
        assert config.llm.model == "anthropic/claude-sonnet-4-20250514"
        assert config.llm.mode == "plan"
        assert config.turn.max_iterations == 5
        assert config.workspace.index_extensions == ["py", "md"]

    def test_project_overrides_user(self, project: Path, tmp_path: Path) -> None:
        user_dir = tmp_path / "xdg" / "workbench"
        user_dir.mkdir(parents=True)
        (user_dir / "config.yaml").write_text("llm:\n  model: gpt-4o\n  max_tokens: 512\n")
        (project / ".wb" / "config.yaml").write_text("llm:\n  model: ollama/qwen2.5-coder\n")

        config = load_config(str(project))
        assert config.llm.model == "ollama/qwen2.5-coder"
        assert config.llm.max_tokens == 512

    def test_env_overrides_files(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (project / ".wb" / "config.yaml").write_text("llm:\n  model: gpt-4o\n")
        monkeypatch.setenv("WB_MODEL", "gemini/gemini-2.5-pro")
        monkeypatch.setenv("WB_LOG", "/tmp/wb.log")

        config = load_config(str(project))
        assert config.llm.model == "gemini/gemini-2.5-pro"
        assert config.logging.file == "/tmp/wb.log"

    def test_invalid_yaml_uses_defaults(self, project: Path) -> None:
        (project / ".wb" / "config.yaml").write_text("invalid: yaml: :")
        config = load_config(str(project))
        assert config.llm.model == "gemini/gemini-2.5-flash"

    def test_extra_fields_preserved(self, project: Path) -> None:
        (project / ".wb" / "config.yaml").write_text(
            "custom_field: custom_value\nnested:\n  field: value\n"
        )
        config = load_config(str(project))
        assert config.extra["custom_field"] == "custom_value"
        assert config.extra["nested"]["field"] == "value"


class TestConfigCaching:
    """Test config caching behavior."""

    @pytest.fixture(autouse=True)
    def reset_global_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        reset_config()
        yield
        reset_config()

    def test_get_config_caches(self) -> None:
        assert get_config() is get_config()

    def test_reset_clears_cache(self) -> None:
        config1 = get_config()
        reset_config()
        assert get_config() is not config1

    def test_project_config_not_cached(self, tmp_path: Path) -> None:
        project_config = load_config(str(tmp_path))
        assert get_config() is not project_config

    def test_reload_notifies_callbacks(self, tmp_path: Path) -> None:
        seen: list[Config] = []
        unregister = on_config_reload(seen.append)
        try:
            first = get_config()
            (tmp_path / "workbench").mkdir()
            (tmp_path / "workbench" / "config.yaml").write_text("llm:\n  mode: plan\n")
            reloaded = reload_config()
        finally:
            unregister()

        assert reloaded is not first
        assert reloaded.llm.mode == "plan"
        assert seen == [reloaded]
        assert get_config() is reloaded

    def test_unregistered_callback_not_called(self) -> None:
        seen: list[Config] = []
        on_config_reload(seen.append)()
        reload_config()
        assert seen == []


class TestSecrets:
    """Test API key lookup."""

    @pytest.fixture(autouse=True)
    def clear_cache(self) -> None:
        clear_secret_cache()
        yield
        clear_secret_cache()

    def test_parse_newline_separated(self) -> None:
        assert parse_api_keys("key-a\n\n  key-b  \n") == ["key-a", "key-b"]

    def test_parse_comma_separated(self) -> None:
        assert parse_api_keys("key-a, key-b,") == ["key-a", "key-b"]

    def test_parse_empty(self) -> None:
        assert parse_api_keys(None) == []
        assert parse_api_keys("") == []

    def test_env_keys(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("WB_API_KEYS", "one,two")
        assert load_api_keys(tmp_path / "missing") == ["one", "two"]

    def test_secrets_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("WB_API_KEYS", raising=False)
        secrets = tmp_path / ".env.secrets"
        secrets.write_text('WB_API_KEYS="one,two,three"\n')
        assert fetch_secret("WB_API_KEYS", secrets_path=secrets) == "one,two,three"
        assert load_api_keys(secrets) == ["one", "two", "three"]

    def test_default(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("WB_NOT_SET", raising=False)
        assert fetch_secret("WB_NOT_SET", "fallback", secrets_path=tmp_path / "none") == "fallback"
