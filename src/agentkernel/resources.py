"""
Asset resolution with project-local override.

Lookup order for a logical asset name such as "commands/metadata.yaml":
  1. <project>/.claude/<asset>
  2. <resources_dir>/<asset>   (bundled copy, optional)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import KernelConfig
from .errors import NotFoundError, UpstreamUnavailableError

logger = logging.getLogger(__name__)


class AssetResolver:
    """Reads named text assets, preferring the project's copy."""

    def __init__(self, project_assets: Path | None, bundled: Path | None = None):
        self.roots: list[Path] = [Path(r) for r in (project_assets, bundled) if r is not None]

    @classmethod
    def from_config(cls, config: KernelConfig) -> AssetResolver:
        return cls(config.project_assets, config.resources_dir)

    def resolve_path(self, asset: str) -> Path:
        """Return the first existing file for `asset`."""
        for root in self.roots:
            candidate = root / asset
            if candidate.is_file():
                return candidate
        raise NotFoundError(f"Asset '{asset}' not found in: {self._searched()}")

    def resolve_dir(self, asset: str) -> Path:
        """Return the first existing directory for `asset`."""
        for root in self.roots:
            candidate = root / asset
            if candidate.is_dir():
                return candidate
        raise UpstreamUnavailableError(
            f"Asset directory '{asset}' not available in: {self._searched()}"
        )

    def read(self, asset: str) -> str:
        path = self.resolve_path(asset)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise UpstreamUnavailableError(f"Failed to read {path}: {e}") from e

    def load_yaml(self, asset: str) -> Any:
        """Parse a YAML asset. Malformed YAML raises UpstreamUnavailableError."""
        text = self.read(asset)
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise UpstreamUnavailableError(f"Malformed YAML in '{asset}': {e}") from e

    def list_files(self, asset_dir: str, suffix: str = ".md") -> list[Path]:
        """Sorted files directly inside the resolved directory."""
        directory = self.resolve_dir(asset_dir)
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.name.endswith(suffix)
        )

    def list_dirs(self, asset_dir: str) -> list[str]:
        """Sorted names of the subdirectories of the resolved directory."""
        directory = self.resolve_dir(asset_dir)
        return sorted(p.name for p in directory.iterdir() if p.is_dir())

    def _searched(self) -> str:
        return ", ".join(str(r) for r in self.roots) or "(no asset roots configured)"
