"""Filesystem path resolution for instance configuration files.

Purpose
-------
Implement the :class:`lib_config_registry.application.ports.InstancePathResolver`
protocol. The adapter is the only component that knows the ``bot_<name><ext>``
file naming template, and it validates names in both directions: before a path
is built and after a name is recovered from a directory entry.

Contents
--------
* :data:`FILE_PREFIX` – fixed prefix of every instance file name.
* :class:`DefaultInstancePathResolver` – name ↔ path mapping and directory
  enumeration.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from ...domain.errors import DirectoryUnavailable, InvalidName
from ...domain.names import is_safe_name
from ...observability import log_debug, log_error

FILE_PREFIX: Final[str] = "bot_"


class DefaultInstancePathResolver:
    """Map instance names to files inside one directory.

    Examples
    --------
    >>> resolver = DefaultInstancePathResolver(Path("/cfg/bots"), ".toml")
    >>> resolver.name_to_path("alice").as_posix()
    '/cfg/bots/bot_alice.toml'
    >>> resolver.extract_name("bot_alice.toml")
    'alice'
    >>> resolver.extract_name("legacy")
    'legacy'
    """

    def __init__(self, directory: Path, extension: str) -> None:
        self.directory = Path(directory)
        self.extension = extension
        self._matcher = re.compile(rf"^{re.escape(FILE_PREFIX)}(.+){re.escape(extension)}$")

    def name_to_path(self, name: str) -> Path:
        """Validate *name* and render ``<directory>/bot_<name><ext>``.

        Why
        ----
        This is the only place instance paths are built, so a name that could
        escape the directory is rejected before it ever reaches the filesystem.

        Parameters
        ----------
        name:
            Candidate instance name.

        Returns
        -------
        Path
            File path directly inside :attr:`directory`.

        Raises
        ------
        InvalidName
            The name fails :func:`is_safe_name` or the rendered path would
            leave the directory.

        Examples
        --------
        >>> DefaultInstancePathResolver(Path("/cfg/bots"), ".json").name_to_path("a.b").name
        'bot_a.b.json'
        >>> DefaultInstancePathResolver(Path("/cfg/bots"), ".toml").name_to_path("../x")
        Traceback (most recent call last):
        ...
        lib_config_registry.domain.errors.InvalidName: The name is not a valid file name.
        """

        path = self.directory / f"{FILE_PREFIX}{is_safe_name(name)}{self.extension}"
        if path.parent != self.directory:
            raise InvalidName(name=name, reason="outside_directory")
        return path

    def extract_name(self, filename: str) -> str:
        """Recover the instance name from *filename*.

        Files following the template yield the captured name. Anything else is
        accepted only when the literal file name is itself a safe name, which
        keeps manually placed files usable.
        """

        match = self._matcher.match(filename)
        if match:
            try:
                return is_safe_name(match.group(1))
            except InvalidName:
                pass
        return is_safe_name(filename)

    def iter_instance_files(self) -> list[Path]:
        """Return template-matching files directly inside the directory, sorted by name.

        Raises
        ------
        DirectoryUnavailable
            When the directory is missing or cannot be listed; an unreadable
            directory is never reported as an empty registry.
        """

        try:
            entries = list(self.directory.iterdir())
        except OSError as exc:
            log_error("instance_directory_unreadable", operation="list", path=str(self.directory), exc=exc)
            raise DirectoryUnavailable(f"Could not access instance directory {self.directory}") from exc
        files = sorted(path for path in entries if self._is_instance_file(path))
        log_debug("instance_files_listed", operation="list", path=str(self.directory), count=len(files))
        return files

    def _is_instance_file(self, path: Path) -> bool:
        name = path.name
        return name.startswith(FILE_PREFIX) and name.endswith(self.extension) and path.is_file()
