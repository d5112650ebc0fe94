"""Single instance configuration bound (or not yet bound) to a registry.

Purpose
-------
Hold one instance's settings in memory: its own values, which are what gets
written to its file, and a snapshot of the root ``[bot]`` template taken when
the instance was created or loaded. Reads go through the derived view so
missing keys fall back to the template.

Contents
--------
* :class:`InstanceConfig` – payload accessors plus ``save_new`` /
  ``save_when_exists``.

System Role
-----------
Created only by :class:`lib_config_registry.registry.RootConfig`. The parent
link is a weak reference: the registry owns its instances through its cache,
never the other way round.
"""

from __future__ import annotations

import weakref
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .application.derive import derive_settings
from .domain.config import ConfigView, SourceInfo, clone_tree, resolve_dotted
from .domain.errors import AlreadyExists, ConfigError, OperationFailed, RegistryUnavailable
from .observability import log_error, log_info, make_event

if TYPE_CHECKING:  # pragma: no cover
    from .registry import RootConfig

_MISSING = object()


class InstanceConfig:
    """In-memory configuration of one named instance.

    ``name`` is ``None`` while the instance is unbound (created in memory and
    never saved under a name) or after it was detached by a delete.
    """

    def __init__(
        self,
        parent: RootConfig,
        *,
        data: Mapping[str, Any] | None = None,
        template: Mapping[str, Any] | None = None,
    ) -> None:
        self._parent = weakref.ref(parent)
        self._data: dict[str, Any] = clone_tree(data or {})
        self._template: dict[str, Any] = clone_tree(template or {})
        self.name: str | None = None

    def __repr__(self) -> str:
        return f"InstanceConfig(name={self.name!r})"

    @property
    def is_bound(self) -> bool:
        """``True`` once the instance is saved under (or loaded from) a name."""

        return bool(self.name)

    def get_parent(self) -> RootConfig:
        """Return the owning registry or raise :class:`RegistryUnavailable`."""

        parent = self._parent()
        if parent is None:
            raise RegistryUnavailable("The registry owning this instance configuration no longer exists")
        return parent

    def get(self, key: str, default: Any = None) -> Any:
        """Return the effective value of the dotted *key* (own value or template default)."""

        own = resolve_dotted(self._data, key, _MISSING)
        if own is not _MISSING:
            return own
        return resolve_dotted(self._template, key, default)

    def origin(self, key: str) -> SourceInfo | None:
        """Return where the effective value of the dotted *key* comes from.

        Parameters
        ----------
        key:
            Dotted key such as ``"audio.volume"``.

        Returns
        -------
        SourceInfo | None
            ``layer`` is ``"instance"`` for own values and ``"template"`` for
            defaults taken from the root ``[bot]`` section; ``path`` is ``None``
            for an unbound instance's own values. ``None`` when the key is unset.
        """

        return self.effective().origin(key)

    def effective(self) -> ConfigView:
        """Return the derived settings with provenance as an immutable view."""

        own_path = None
        if self.name:
            own_path = str(self.get_parent().name_to_path(self.name))
        parent = self._parent()
        data, meta = derive_settings(
            self._template,
            self._data,
            template_path=str(parent.file_path) if parent is not None else None,
            own_path=own_path,
        )
        return ConfigView(data, meta)

    def set(self, key: str, value: Any) -> None:
        """Store *value* under the dotted *key* in this instance's own values."""

        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    def unset(self, key: str) -> bool:
        """Remove the dotted *key* from own values so the template applies again."""

        *parents, leaf = key.split(".")
        node: Any = self._data
        for part in parents:
            node = node.get(part) if isinstance(node, dict) else None
        if isinstance(node, dict) and leaf in node:
            del node[leaf]
            return True
        return False

    def as_dict(self) -> dict[str, Any]:
        """Return a deep copy of the values persisted in this instance's file."""

        return clone_tree(self._data)

    def save_new(self, name: str) -> None:
        """Persist this instance as a new file called *name* and register it.

        Why
        ----
        Binding a name and caching only happen after the file was written, so
        a failed save leaves the instance unbound and the cache unchanged.

        Parameters
        ----------
        name:
            Instance name; validated before any path is built.

        Raises
        ------
        InvalidName
            *name* is not safe to use in a path.
        AlreadyExists
            A file for *name* is already present (checked by exclusive create).
        OperationFailed
            The codec or the filesystem failed; the cause is logged.
        RegistryUnavailable
            The owning registry no longer exists.

        Side Effects
        ------------
        Sets :attr:`name` and caches the instance in its registry, moving the
        entry when it was previously saved under another name.
        """

        parent = self.get_parent()
        path = parent.name_to_path(name)
        if path.exists():
            raise AlreadyExists(name=name)
        self._persist(path, is_new=True, name=name)
        previous, self.name = self.name, name
        if previous and previous != name and parent.cached(previous) is self:
            parent.clear_cache(previous)
        parent.add_to_cache(self)

    def save_when_exists(self) -> bool:
        """Overwrite this instance's file if it is bound and its file still exists.

        Returns ``False`` without writing when the instance is unbound or its
        file was removed, so a deleted instance is never resurrected.
        """

        if not self.name:
            return False
        path = self.get_parent().name_to_path(self.name)
        if not path.exists():
            return False
        self._persist(path, is_new=False, name=self.name)
        return True

    def _persist(self, path: Path, *, is_new: bool, name: str) -> None:
        codec = self.get_parent().codec
        try:
            codec.save(self._data, path, is_new=is_new)
        except FileExistsError as exc:
            raise AlreadyExists(name=name) from exc
        except (OSError, ConfigError) as exc:
            log_error("instance_save_failed", exc=exc, **make_event("save", path, {"name": name}))
            raise OperationFailed(
                "An error occurred saving the bot config.", key="instance.save_failed", name=name
            ) from exc
        log_info("instance_saved", **make_event("save", path, {"name": name, "is_new": is_new}))
