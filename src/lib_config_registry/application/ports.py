"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the registry relies on so
:class:`~lib_config_registry.registry.RootConfig` can be wired with any codec
or path strategy without depending on concrete implementations.

Contents
--------
* :class:`Codec` – turns a config file into a mapping and back.
* :class:`InstancePathResolver` – maps instance names to files and back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class Codec(Protocol):
    """Load and persist whole configuration documents.

    Why
    ----
    The on-disk format is irrelevant to the registry; it only needs a
    ``load``/``save`` pair with well-defined failure modes.
    """

    extension: str

    def load(self, path: str | Path) -> Mapping[str, object]:
        """Return the document at *path*; raise ``NotFound`` or ``InvalidFormat``."""

    def save(self, value: Mapping[str, object], path: str | Path, *, is_new: bool) -> None:
        """Write *value* to *path*.

        ``is_new=True`` means first-time creation: the file must not exist yet
        (``FileExistsError`` otherwise) and a commented header may be emitted.
        ``is_new=False`` rewrites the whole file.
        """


@runtime_checkable
class InstancePathResolver(Protocol):
    """Translate between instance names and instance files."""

    directory: Path

    def name_to_path(self, name: str) -> Path:
        """Validate *name* and return its file path inside :attr:`directory`."""

    def extract_name(self, filename: str) -> str:
        """Recover and validate the instance name encoded in *filename*."""

    def iter_instance_files(self) -> list[Path]:
        """Return the instance files currently present in :attr:`directory`."""
