"""Shared sandbox helpers for registry tests.

A sandbox is a temporary ``cfg`` directory holding a root file and its
instance directory, matching the layout documented for the registry
(``cfg/root.toml`` plus ``cfg/bots/bot_<name>.toml``).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent

from lib_config_registry import RootConfig


@dataclass
class RegistrySandbox:
    base: Path
    root_file: Path

    @property
    def instance_dir(self) -> Path:
        return self.base / "bots"

    def open(self) -> RootConfig:
        return RootConfig.open_or_create(self.root_file)

    def write_instance(self, name: str, content: str = "") -> Path:
        """Place an instance file directly on disk, bypassing the registry."""

        path = self.instance_dir / f"bot_{name}{self.root_file.suffix}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content), encoding="utf-8")
        return path


def create_registry_sandbox(tmp_path: Path, *, root_body: str | None = None, suffix: str = ".toml") -> RegistrySandbox:
    """Return a sandbox under ``tmp_path/cfg``; *root_body* pre-populates the root file."""

    base = tmp_path / "cfg"
    base.mkdir(parents=True, exist_ok=True)
    root_file = base / f"root{suffix}"
    if root_body is not None:
        root_file.write_text(dedent(root_body), encoding="utf-8")
    return RegistrySandbox(base=base, root_file=root_file)
