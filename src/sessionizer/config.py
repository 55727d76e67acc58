"""Configuration loading from environment variables and sessionizer.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_STATE_DIR = Path.home() / ".config" / "sessionizer"
_CONFIG_FILENAME = "sessionizer.toml"

DEFAULT_KEYS = ("a", "s", "d", "f", "g", "h", "j", "k", "l", "q", "w", "e", "r", "t", "y")
DEFAULT_EXCLUDES = ("node_modules", ".cache", "target", "build", "dist")


@dataclass
class SearchPath:
    """A root directory scanned for projects."""

    name: str
    path: str
    description: str = ""
    enabled: bool = True


@dataclass
class ExplicitProject:
    """A project listed by path, added regardless of discovery."""

    path: str
    name: str = ""
    enabled: bool = True


@dataclass
class DiscoveryConfig:
    search_paths: list[SearchPath] = field(default_factory=list)
    explicit_projects: list[ExplicitProject] = field(default_factory=list)
    min_depth: int = 0
    max_depth: int = 2
    file_types: list[str] = field(default_factory=lambda: [".git"])
    exclude_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))


@dataclass
class KeysConfig:
    available: list[str] = field(default_factory=lambda: list(DEFAULT_KEYS))
    bind_command: str = "sessionizer sessionize"


@dataclass
class EnrichConfig:
    """Enrichment sources and concurrency bounds."""

    git: bool = True
    notes: bool = True
    plans: bool = True
    notebook_dir: Path | None = None
    plans_dirname: str = "plans"
    git_timeout: float = 2.0
    git_concurrency: int = 10
    plan_concurrency: int = 5


@dataclass
class SessionizerConfig:
    """Top-level sessionizer configuration."""

    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    keys: KeysConfig = field(default_factory=KeysConfig)
    enrich: EnrichConfig = field(default_factory=EnrichConfig)
    state_dir: Path = _DEFAULT_STATE_DIR
    worktrees_folded: bool = False
    log_level: str = "WARNING"

    @property
    def sessions_file(self) -> Path:
        return self.state_dir / "sessions.yml"

    @property
    def history_file(self) -> Path:
        return self.state_dir / "access-history.json"

    @property
    def bindings_file(self) -> Path:
        return self.state_dir / "generated-bindings.conf"


def _search_paths(data: dict) -> list[SearchPath]:
    paths = []
    for name, entry in data.items():
        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict) or not entry.get("path"):
            continue
        paths.append(
            SearchPath(
                name=name,
                path=entry["path"],
                description=entry.get("description", ""),
                enabled=bool(entry.get("enabled", True)),
            )
        )
    return paths


def _explicit_projects(data: list) -> list[ExplicitProject]:
    return [
        ExplicitProject(
            path=entry["path"],
            name=entry.get("name", ""),
            enabled=bool(entry.get("enabled", True)),
        )
        for entry in data
        if isinstance(entry, dict) and entry.get("path")
    ]


def _env_keys(default: list[str]) -> list[str]:
    raw = os.getenv("SESSIONIZER_KEYS")
    if not raw:
        return default
    if "," in raw:
        return [k.strip() for k in raw.split(",") if k.strip()]
    return [c for c in raw if not c.isspace()]


def load_config(config_path: Path | None = None) -> SessionizerConfig:
    """Load configuration from environment variables and optional sessionizer.toml.

    Priority: environment variables > sessionizer.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.config/sessionizer/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _DEFAULT_STATE_DIR / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    discovery_data = file_data.get("discovery", {})
    keys_data = file_data.get("keys", {})
    enrich_data = file_data.get("enrich", {})

    notebook_dir = os.getenv("SESSIONIZER_NOTEBOOK_DIR", enrich_data.get("notebook_dir"))

    config = SessionizerConfig(
        discovery=DiscoveryConfig(
            search_paths=_search_paths(file_data.get("search_paths", {})),
            explicit_projects=_explicit_projects(file_data.get("explicit_projects", [])),
            min_depth=int(discovery_data.get("min_depth", 0)),
            max_depth=int(discovery_data.get("max_depth", 2)),
            file_types=discovery_data.get("file_types", [".git"]),
            exclude_patterns=discovery_data.get("exclude_patterns", list(DEFAULT_EXCLUDES)),
        ),
        keys=KeysConfig(
            available=_env_keys(keys_data.get("available", list(DEFAULT_KEYS))),
            bind_command=os.getenv(
                "SESSIONIZER_BIND_COMMAND", keys_data.get("bind_command", "sessionizer sessionize")
            ),
        ),
        enrich=EnrichConfig(
            git=bool(enrich_data.get("git", True)),
            notes=bool(enrich_data.get("notes", True)),
            plans=bool(enrich_data.get("plans", True)),
            notebook_dir=Path(notebook_dir).expanduser() if notebook_dir else None,
            plans_dirname=enrich_data.get("plans_dirname", "plans"),
            git_timeout=float(
                os.getenv("SESSIONIZER_GIT_TIMEOUT", enrich_data.get("git_timeout", 2.0))
            ),
            git_concurrency=int(enrich_data.get("git_concurrency", 10)),
            plan_concurrency=int(enrich_data.get("plan_concurrency", 5)),
        ),
        state_dir=Path(
            os.getenv("SESSIONIZER_STATE_DIR", file_data.get("state_dir", str(_DEFAULT_STATE_DIR)))
        ).expanduser(),
        worktrees_folded=bool(file_data.get("worktrees_folded", False)),
        log_level=os.getenv("SESSIONIZER_LOG_LEVEL", file_data.get("log_level", "WARNING")),
    )
    return config
