"""Tests for configuration loading."""

import pytest
from pathlib import Path

from sessionizer import config as config_module
from sessionizer.config import DEFAULT_KEYS, load_config

ENV_KEYS = [
    "SESSIONIZER_STATE_DIR",
    "SESSIONIZER_KEYS",
    "SESSIONIZER_LOG_LEVEL",
    "SESSIONIZER_GIT_TIMEOUT",
    "SESSIONIZER_NOTEBOOK_DIR",
    "SESSIONIZER_BIND_COMMAND",
]


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # Keep the user's own config file out of the picture.
    monkeypatch.setattr(config_module, "_DEFAULT_STATE_DIR", tmp_path / "home-config")


class TestConfig:
    def test_defaults(self):
        config = load_config()
        assert config.keys.available == list(DEFAULT_KEYS)
        assert config.discovery.max_depth == 2
        assert config.discovery.file_types == [".git"]
        assert "node_modules" in config.discovery.exclude_patterns
        assert config.enrich.git_concurrency == 10
        assert config.enrich.plan_concurrency == 5
        assert config.log_level == "WARNING"
        assert config.sessions_file.name == "sessions.yml"
        assert config.history_file.name == "access-history.json"

    def test_env_override(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SESSIONIZER_STATE_DIR", str(tmp_path / "state"))
        monkeypatch.setenv("SESSIONIZER_KEYS", "abc")
        monkeypatch.setenv("SESSIONIZER_GIT_TIMEOUT", "0.5")

        config = load_config()
        assert config.state_dir == tmp_path / "state"
        assert config.sessions_file == tmp_path / "state" / "sessions.yml"
        assert config.keys.available == ["a", "b", "c"]
        assert config.enrich.git_timeout == 0.5

    def test_comma_separated_keys(self, monkeypatch):
        monkeypatch.setenv("SESSIONIZER_KEYS", "F1, F2")
        assert load_config().keys.available == ["F1", "F2"]

    def test_toml_file(self, tmp_path: Path):
        toml_path = tmp_path / "sessionizer.toml"
        toml_path.write_text("""
worktrees_folded = true

[search_paths.work]
path = "~/work"
description = "Work repos"

[search_paths.old]
path = "~/old"
enabled = false

[[explicit_projects]]
path = "~/dotfiles"
name = "dots"

[discovery]
max_depth = 3
exclude_patterns = ["vendor"]

[keys]
available = ["x", "y"]

[enrich]
notebook_dir = "~/notes"
git = false
""")
        config = load_config(toml_path)
        assert config.worktrees_folded is True
        assert [s.name for s in config.discovery.search_paths] == ["work", "old"]
        assert config.discovery.search_paths[0].description == "Work repos"
        assert config.discovery.search_paths[1].enabled is False
        assert config.discovery.explicit_projects[0].name == "dots"
        assert config.discovery.max_depth == 3
        assert config.discovery.exclude_patterns == ["vendor"]
        assert config.keys.available == ["x", "y"]
        assert config.enrich.notebook_dir == Path("~/notes").expanduser()
        assert config.enrich.git is False

    def test_toml_in_cwd(self, tmp_path: Path):
        (tmp_path / "sessionizer.toml").write_text('log_level = "DEBUG"\n')
        assert load_config().log_level == "DEBUG"

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SESSIONIZER_LOG_LEVEL", "INFO")

        toml_path = tmp_path / "sessionizer.toml"
        toml_path.write_text("""
log_level = "DEBUG"
""")
        config = load_config(toml_path)
        assert config.log_level == "INFO"  # env wins
