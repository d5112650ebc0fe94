"""Structured configuration codecs.

Purpose
-------
Convert configuration files into Python mappings and back. The codecs are
small wrappers around ``tomllib``/``tomlkit``, ``json`` and ``yaml`` so error
handling, observability and the "new file" semantics live in one place.

Contents
--------
* :class:`BaseCodec` – shared helpers for reading, validating and writing.
* :class:`TOMLCodec` – the canonical format (``tomllib`` to read, ``tomlkit``
  to write).
* :class:`JSONCodec` – minimal JSON codec.
* :class:`YAMLCodec` – optional YAML codec (only available when PyYAML is
  installed).
* :func:`codec_for_path` – pick a codec from a file suffix.

System Role
-----------
Used by :class:`lib_config_registry.registry.RootConfig` for the root file and
every instance file. Each read or write opens the file once inside a ``with``
block; nothing keeps a handle open between calls.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import tomlkit

from ...domain.errors import InvalidFormat, NotFound, Unreadable
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]

HEADER_LINES = (
    "Generated by lib_config_registry.",
    "Every save rewrites this file; keys missing in an instance file fall back to the root [bot] section.",
)


class BaseCodec:
    """Common utilities shared by the structured codecs."""

    extension = ""
    format_name = ""

    def _read(self, path: str | Path) -> bytes:
        """Read *path* as bytes, translating filesystem failures into domain errors.

        Why
        ----
        Callers rely on the codec contract (``NotFound`` / ``InvalidFormat`` /
        ``Unreadable``) and must never see platform exceptions, including for a
        file removed by another process just before it is opened.

        Parameters
        ----------
        path:
            File expected to exist.

        Returns
        -------
        bytes
            Raw file contents.

        Raises
        ------
        NotFound
            The file or one of its parent directories is missing.
        Unreadable
            Any other ``OSError`` (permissions, a directory in its place ...).

        Side Effects
        ------------
        Emits ``config_file_read`` debug events and ``config_file_unreadable``
        error events.
        """

        try:
            with Path(path).open("rb") as handle:
                payload = handle.read()
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound(f"Configuration file not found: {path}") from exc
        except OSError as exc:
            log_error("config_file_unreadable", exc=exc, operation="load", path=str(path), error=str(exc))
            raise Unreadable(f"Configuration file cannot be read: {path}") from exc
        log_debug("config_file_read", operation="load", path=str(path), size=len(payload))
        return payload

    def _write(self, path: str | Path, text: str, *, is_new: bool) -> None:
        """Write *text* to *path*; ``is_new`` demands that the file does not exist yet."""

        mode = "x" if is_new else "w"
        with Path(path).open(mode, encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        log_debug("config_file_written", operation="save", path=str(path), format=self.format_name, is_new=is_new)

    def _ensure_mapping(self, data: object, *, path: str | Path) -> Mapping[str, object]:
        """Ensure *data* is a mapping, otherwise raise ``InvalidFormat``.

        >>> JSONCodec()._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_config_registry.domain.errors.InvalidFormat: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data

    def _invalid(self, path: str | Path, exc: Exception, action: str) -> InvalidFormat:
        log_error("config_file_invalid", operation=action, path=str(path), format=self.format_name, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} in {path}: {exc}")


class TOMLCodec(BaseCodec):
    """Read TOML with the standard library parser, write it with ``tomlkit``."""

    extension = ".toml"
    format_name = "toml"

    def load(self, path: str | Path) -> Mapping[str, object]:
        """Return the mapping stored in the TOML file at *path*.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> target = Path(tmp.name) / "bot_demo.toml"
        >>> _ = target.write_text('volume = 40', encoding='utf-8')
        >>> TOMLCodec().load(target)["volume"]
        40
        >>> tmp.cleanup()
        """

        try:
            data = tomllib.loads(self._read(path).decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc, "load") from exc
        return self._ensure_mapping(data, path=path)

    def save(self, value: Mapping[str, object], path: str | Path, *, is_new: bool) -> None:
        """Write *value* as TOML; new files start with a commented header."""

        document = tomlkit.document()
        if is_new:
            for line in HEADER_LINES:
                document.add(tomlkit.comment(line))
            document.add(tomlkit.nl())
        try:
            for key, item in _tables_last(value).items():
                document[key] = item
            text = tomlkit.dumps(document)
        except (TypeError, ValueError) as exc:
            raise self._invalid(path, exc, "save") from exc
        self._write(path, text, is_new=is_new)


class JSONCodec(BaseCodec):
    """JSON codec; ``is_new`` only switches to exclusive creation (JSON has no comments)."""

    extension = ".json"
    format_name = "json"

    def load(self, path: str | Path) -> Mapping[str, object]:
        """Return the mapping stored in the JSON file at *path*.

        Why
        ----
        ``create_instance_file`` produces zero-byte files; an empty (or
        whitespace-only) document therefore loads as an empty mapping instead
        of a parse error.

        Parameters
        ----------
        path:
            Location of a JSON document whose top level is an object.

        Returns
        -------
        Mapping[str, object]
            Parsed document.

        Raises
        ------
        NotFound / Unreadable
            See :meth:`BaseCodec._read`.
        InvalidFormat
            Malformed JSON or a top level that is not an object.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> target = Path(tmp.name) / "bot_demo.json"
        >>> _ = target.write_text("", encoding="utf-8")
        >>> JSONCodec().load(target)
        {}
        >>> tmp.cleanup()
        """

        raw = self._read(path)
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc, "load") from exc
        return self._ensure_mapping(data, path=path)

    def save(self, value: Mapping[str, object], path: str | Path, *, is_new: bool) -> None:
        """Write *value* as indented JSON; ``is_new=True`` fails with ``FileExistsError`` on an existing file.

        Values JSON cannot represent raise :class:`InvalidFormat` before the file
        is touched.
        """

        try:
            text = json.dumps(value, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as exc:
            raise self._invalid(path, exc, "save") from exc
        self._write(path, text, is_new=is_new)


class YAMLCodec(BaseCodec):
    """YAML codec, available when PyYAML is installed."""

    extension = ".yaml"
    format_name = "yaml"

    def __init__(self, extension: str = ".yaml") -> None:
        self.extension = extension

    def load(self, path: str | Path) -> Mapping[str, object]:
        """Return the mapping stored in the YAML file at *path* (an empty document loads as ``{}``)."""

        if yaml is None:
            raise NotFound("PyYAML is required for YAML configuration support")
        try:
            data = yaml.safe_load(self._read(path))
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc, "load") from exc
        if data is None:
            data = {}
        return self._ensure_mapping(data, path=path)

    def save(self, value: Mapping[str, object], path: str | Path, *, is_new: bool) -> None:
        """Write *value* with ``yaml.safe_dump``; new files get the same comment header as TOML."""

        if yaml is None:
            raise NotFound("PyYAML is required for YAML configuration support")
        try:
            body = yaml.safe_dump(dict(value), sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc, "save") from exc
        header = "".join(f"# {line}\n" for line in HEADER_LINES) + "\n" if is_new else ""
        self._write(path, header + body, is_new=is_new)


_CODECS_BY_SUFFIX = {
    ".toml": TOMLCodec,
    ".json": JSONCodec,
    ".yaml": lambda: YAMLCodec(".yaml"),
    ".yml": lambda: YAMLCodec(".yml"),
}


def codec_for_path(path: str | Path) -> BaseCodec:
    """Return a codec matching the suffix of *path*.

    >>> codec_for_path("config/root.toml").extension
    '.toml'
    >>> codec_for_path("root.ini")
    Traceback (most recent call last):
    ...
    lib_config_registry.domain.errors.InvalidFormat: Unsupported configuration format: .ini
    """

    suffix = Path(path).suffix.lower()
    factory = _CODECS_BY_SUFFIX.get(suffix)
    if factory is None:
        raise InvalidFormat(f"Unsupported configuration format: {suffix or '<none>'}")
    return factory()


def _tables_last(value: Mapping[str, Any]) -> dict[str, Any]:
    """Order keys so plain values precede sub-tables, recursively (TOML requires it)."""

    scalars = {key: item for key, item in value.items() if not isinstance(item, Mapping)}
    tables = {key: _tables_last(item) for key, item in value.items() if isinstance(item, Mapping)}
    return scalars | tables
