"""
Kernel configuration.

Resolved from environment variables, a plain dict, or a YAML file:

    project_dir: .                 # project whose .claude/ overrides bundled assets
    resources_dir: /opt/kernel     # bundled assets (optional)
    state_dir: .claude/state/runs  # tuple snapshots
    excerpt_chars: 500
    chars_per_token: 4
    log_level: INFO
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

ENV_PROJECT_DIR = "AGENT_KERNEL_PROJECT_DIR"
ENV_LEGACY_PROJECT_DIR = "CLAUDE_PROJECT_DIR"
ENV_RESOURCES_DIR = "AGENT_KERNEL_RESOURCES_DIR"
ENV_STATE_DIR = "AGENT_KERNEL_STATE_DIR"
ENV_LOG_LEVEL = "AGENT_KERNEL_LOG_LEVEL"

PROJECT_ASSET_DIR = ".claude"


@dataclass
class KernelConfig:
    """
    Where the kernel reads assets and writes snapshots.

    Fields:
        project_dir: Project root; assets under <project_dir>/.claude win
        resources_dir: Bundled asset directory used when the project has none
        state_dir: Snapshot directory (defaults to <project>/.claude/state/runs)
        excerpt_chars: Character budget for each inlined guidance excerpt
        chars_per_token: Ratio used to estimate prompt token counts
        log_level: Logging level name for the server process
    """
    project_dir: Path
    resources_dir: Path | None = None
    state_dir: Path | None = None
    excerpt_chars: int = 500
    chars_per_token: int = 4
    log_level: str = "INFO"

    def __post_init__(self):
        self.project_dir = Path(self.project_dir)
        if self.resources_dir is not None:
            self.resources_dir = Path(self.resources_dir)
        if self.state_dir is not None:
            self.state_dir = Path(self.state_dir)
        if self.excerpt_chars <= 0:
            raise ValueError("excerpt_chars must be positive")
        if self.chars_per_token <= 0:
            raise ValueError("chars_per_token must be positive")

    @property
    def project_assets(self) -> Path:
        return self.project_dir / PROJECT_ASSET_DIR

    @property
    def snapshot_dir(self) -> Path:
        if self.state_dir is not None:
            return self.state_dir
        return self.project_assets / "state" / "runs"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KernelConfig:
        env = os.environ if environ is None else environ
        project = env.get(ENV_PROJECT_DIR) or env.get(ENV_LEGACY_PROJECT_DIR) or os.getcwd()
        return cls(
            project_dir=Path(project),
            resources_dir=env.get(ENV_RESOURCES_DIR) or None,
            state_dir=env.get(ENV_STATE_DIR) or None,
            log_level=env.get(ENV_LOG_LEVEL, "INFO").upper(),
        )

    @classmethod
    def from_dict(cls, data: dict, base_dir: Path | None = None) -> KernelConfig:
        """Create a config from a plain dict. Relative paths resolve against base_dir."""
        base = Path(base_dir) if base_dir else Path.cwd()

        def _path(key: str) -> Path | None:
            value = data.get(key)
            if not value:
                return None
            p = Path(value).expanduser()
            return p if p.is_absolute() else base / p

        return cls(
            project_dir=_path("project_dir") or base,
            resources_dir=_path("resources_dir"),
            state_dir=_path("state_dir"),
            excerpt_chars=int(data.get("excerpt_chars", 500)),
            chars_per_token=int(data.get("chars_per_token", 4)),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> KernelConfig:
        """Load a config from a YAML file (paths relative to the file)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Kernel config not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Kernel config must be a YAML mapping, got {type(data).__name__}")

        return cls.from_dict(data, base_dir=path.parent)
