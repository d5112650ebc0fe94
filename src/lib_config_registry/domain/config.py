"""Read-only view over an instance's effective settings.

Purpose
-------
Give callers an immutable, dotted-path readable mapping of what an instance
actually runs with (its own values layered over the root template), together
with the provenance of every leaf. The module contains no I/O.

Contents
--------
* :class:`SourceInfo` – where a resolved key came from.
* :class:`ConfigView` – ``Mapping`` implementation with ``get``/``origin``
  helpers and JSON export.
* :func:`resolve_dotted` / :func:`clone_tree` – shared helpers also used by
  :class:`~lib_config_registry.instance.InstanceConfig` for its mutable payload.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, TypedDict


class SourceInfo(TypedDict):
    """Describe the origin of a resolved key.

    ``layer`` is ``"template"`` (root defaults) or ``"instance"`` (the
    instance's own file); ``path`` is the file that supplied it, if any.
    """

    layer: str
    path: str | None
    key: str


@dataclass(frozen=True, slots=True)
class ConfigView(Mapping[str, Any]):
    """Immutable mapping of effective instance settings.

    Examples
    --------
    >>> view = ConfigView(
    ...     {"audio": {"volume": 40, "device": "hw:0"}},
    ...     {
    ...         "audio.volume": {"layer": "instance", "path": "bots/bot_a.toml", "key": "audio.volume"},
    ...         "audio.device": {"layer": "template", "path": "root.toml", "key": "audio.device"},
    ...     },
    ... )
    >>> view.get("audio.volume")
    40
    >>> view.origin("audio.device")["layer"]
    'template'
    """

    _data: Mapping[str, Any]
    _meta: Mapping[str, SourceInfo]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", MappingProxyType(dict(self._data)))
        object.__setattr__(self, "_meta", MappingProxyType(dict(self._meta)))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str, default: Any = None) -> Any:  # type: ignore[override]
        """Resolve *key* as a dotted path, returning *default* when missing."""

        return resolve_dotted(self._data, key, default)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for the leaf *key* or ``None``."""

        return self._meta.get(key)

    def provenance(self) -> dict[str, SourceInfo]:
        """Return a copy of all provenance entries keyed by dotted path."""

        return dict(self._meta)

    def as_dict(self) -> dict[str, Any]:
        """Return a deep, mutable copy of the effective settings."""

        return clone_tree(self._data)

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the effective settings to JSON.

        >>> ConfigView({"enabled": True}, {}).to_json()
        '{"enabled":true}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)


def resolve_dotted(source: Mapping[str, Any], dotted: str, default: Any = None) -> Any:
    """Resolve *dotted* within *source*, returning *default* when missing.

    >>> resolve_dotted({"a": {"b": 1}}, "a.b")
    1
    >>> resolve_dotted({"a": 1}, "a.b", "fallback")
    'fallback'
    """

    current: Any = source
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def clone_tree(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively copy nested mappings and lists into plain ``dict``/``list`` objects.

    ``copy.deepcopy`` would keep ``mappingproxy`` and tomlkit container types;
    the registry wants plain builtins everywhere.
    """

    return {key: _clone_value(value) for key, value in mapping.items()}


def _clone_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return clone_tree(value)
    if isinstance(value, (list, tuple)):
        return [_clone_value(item) for item in value]
    return value
