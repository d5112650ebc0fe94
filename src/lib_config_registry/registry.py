"""Composition root for ``lib_config_registry``.

Purpose
-------
Own the root configuration file, the instance directory next to it, and the
cache of loaded instances. :class:`RootConfig` wires the name validator, the
instance path resolver and a codec together and implements every registry
operation on top of them.

Contents
--------
* :data:`DEFAULT_ROOT` – values written when a new root file is created.
* :class:`RootConfig` – lifecycle (``open`` / ``create`` / ``open_or_create`` /
  ``save``) and instance operations (``get_instance``, ``create_instance_file``,
  ``delete_instance``, ``copy_instance`` ...).

System Role
-----------
This is the only entry point applications normally use. Cache reads and
mutations happen under one re-entrant lock per registry; file operations are
blocking and create new files exclusively so existence checks never race with
creation.
"""

from __future__ import annotations

import contextlib
import shutil
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from .adapters.codecs.structured import codec_for_path
from .adapters.path_resolvers.instances import DefaultInstancePathResolver
from .application.ports import Codec
from .domain.config import clone_tree, resolve_dotted
from .domain.errors import (
    AlreadyExists,
    ConfigError,
    DirectoryUnavailable,
    InstanceNotFound,
    InvalidName,
    OperationFailed,
)
from .instance import InstanceConfig
from .observability import log_debug, log_error, log_info, log_warning, make_event

DEFAULT_BOTS_PATH: Final[str] = "bots"
BOTS_PATH_KEY: Final[str] = "configs.bots_path"
TEMPLATE_KEY: Final[str] = "bot"
_TARGET_EXISTS: Final[str] = "The target bot already exists, delete it before to overwrite."

DEFAULT_ROOT: Final[Mapping[str, Any]] = {
    "configs": {"bots_path": DEFAULT_BOTS_PATH},
    TEMPLATE_KEY: {},
}


class RootConfig:
    """Registry of instance configurations backed by one root file.

    Use :meth:`open_or_create` to obtain an instance; the constructor does not
    touch the filesystem and does not create the instance directory.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = RootConfig.open_or_create(Path(tmp.name) / "root.toml")
    >>> root.instance_directory.name
    'bots'
    >>> bot = root.create_instance()
    >>> bot.set("audio.volume", 30)
    >>> bot.save_new("alice")
    >>> root.get_instance("alice") is bot
    True
    >>> root.delete_instance("alice")
    True
    >>> tmp.cleanup()
    """

    def __init__(self, data: Mapping[str, Any], *, file_path: str | Path, codec: Codec | None = None) -> None:
        self._file_path = Path(file_path)
        self.codec: Codec = codec or codec_for_path(self._file_path)
        self._data: dict[str, Any] = clone_tree(data)
        self._cache: dict[str, InstanceConfig] = {}
        self._lock = threading.RLock()
        bots_path = resolve_dotted(self._data, BOTS_PATH_KEY, DEFAULT_BOTS_PATH)
        self._resolver = DefaultInstancePathResolver(self.get_file_path(str(bots_path)), self.codec.extension)

    @property
    def file_path(self) -> Path:
        """Location of the root file; instance paths and :meth:`get_file_path` resolve against its directory."""

        return self._file_path

    @property
    def instance_directory(self) -> Path:
        """Directory holding the ``bot_<name>`` files, fixed when the registry object is built."""

        return self._resolver.directory

    @property
    def template(self) -> dict[str, Any]:
        """Copy of the root ``[bot]`` section every instance derives its defaults from."""

        section = resolve_dotted(self._data, TEMPLATE_KEY, {})
        return clone_tree(section) if isinstance(section, Mapping) else {}

    # -- lifecycle -----------------------------------------------------------

    @classmethod
    def open(cls, path: str | Path, *, codec: Codec | None = None) -> RootConfig:
        """Load the root file at *path* and make sure the instance directory exists.

        Raises
        ------
        NotFound / Unreadable / InvalidFormat
            The codec could not load the file.
        DirectoryUnavailable
            The instance directory is missing and could not be created.
        """

        file_path = Path(path)
        codec = codec or codec_for_path(file_path)
        try:
            data = codec.load(file_path)
        except ConfigError as exc:
            log_error("root_open_failed", exc=exc, **make_event("open", file_path))
            raise
        root = cls(data, file_path=file_path, codec=codec)
        root._check_paths()
        log_info("root_opened", **make_event("open", file_path, {"instances": str(root.instance_directory)}))
        return root

    @classmethod
    def create(cls, path: str | Path, *, codec: Codec | None = None) -> RootConfig:
        """Create a root file with default values at *path*.

        The instance directory is created first; the root file itself is
        written with exclusive creation, so an existing file is never replaced.
        """

        root = cls(DEFAULT_ROOT, file_path=path, codec=codec)
        root._check_paths()
        root._write(is_new=True)
        log_info("root_created", **make_event("create", root.file_path))
        return root

    @classmethod
    def open_or_create(cls, path: str | Path, *, codec: Codec | None = None) -> RootConfig:
        """Open *path* when it exists, otherwise create it."""

        if Path(path).exists():
            return cls.open(path, codec=codec)
        return cls.create(path, codec=codec)

    def save(self) -> None:
        """Rewrite the root file at its recorded path."""

        self._write(is_new=False)
        log_info("root_saved", **make_event("save", self.file_path))

    def get_file_path(self, file: str | Path) -> Path:
        """Resolve *file* against the directory holding the root file.

        Absolute paths are returned unchanged.

        >>> RootConfig({}, file_path="/cfg/root.toml").get_file_path("bots").as_posix()
        '/cfg/bots'
        """

        candidate = Path(file)
        if candidate.is_absolute():
            return candidate
        return self._file_path.parent / candidate

    def get(self, key: str, default: Any = None) -> Any:
        """Return the root value stored under the dotted *key*."""

        return resolve_dotted(self._data, key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a root value under the dotted *key*; call :meth:`save` to persist it.

        The instance directory is fixed when the registry is opened, so changing
        ``configs.bots_path`` only takes effect the next time the file is opened.
        """

        *parents, leaf = key.split(".")
        node = self._data
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    def _check_paths(self) -> None:
        directory = self.instance_directory
        try:
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                log_info("instance_directory_created", **make_event("check", directory))
        except OSError as exc:
            log_error("instance_directory_failed", exc=exc, **make_event("check", directory))
            raise DirectoryUnavailable(f"Could not create bot config subdirectory {directory}") from exc

    def _write(self, *, is_new: bool) -> None:
        try:
            self.codec.save(self._data, self.file_path, is_new=is_new)
        except (OSError, ConfigError) as exc:
            log_error("root_save_failed", exc=exc, **make_event("save", self.file_path, {"is_new": is_new}))
            raise OperationFailed(
                f"Failed to save config file '{self.file_path}'.", key="root.save_failed", path=str(self.file_path)
            ) from exc

    # -- names and paths -----------------------------------------------------

    def name_to_path(self, name: str) -> Path:
        """Return the file path of instance *name*; raises :class:`InvalidName`."""

        return self._resolver.name_to_path(name)

    def get_all_instance_names(self, *, skip_invalid: bool = False) -> list[str]:
        """List the names of all instance files.

        With ``skip_invalid=False`` (the default) a file whose name does not pass
        validation aborts the listing; with ``True`` it is logged and skipped.
        A directory that cannot be read always raises
        :class:`DirectoryUnavailable`.
        """

        names: list[str] = []
        for path in self._resolver.iter_instance_files():
            try:
                names.append(self._resolver.extract_name(path.name))
            except InvalidName:
                if not skip_invalid:
                    raise
                log_warning("instance_name_skipped", **make_event("list", path))
        return names

    # -- instance operations -------------------------------------------------

    def create_instance(self) -> InstanceConfig:
        """Return a new, unbound instance derived from the root template.

        The instance is not cached until it is saved under a name with
        :meth:`InstanceConfig.save_new`.
        """

        return InstanceConfig(self, template=self.template)

    def get_all_instances(self, *, skip_invalid: bool = False) -> list[InstanceConfig]:
        """Load (or fetch from cache) every instance in the directory.

        Fail-fast by default: the first invalid name or unreadable file raises.
        ``skip_invalid=True`` turns those failures into logged warnings.
        """

        instances: list[InstanceConfig] = []
        for name in self.get_all_instance_names(skip_invalid=skip_invalid):
            try:
                instances.append(self.get_instance(name))
            except ConfigError as exc:
                if not skip_invalid:
                    raise
                log_warning("instance_skipped", **make_event("list", None, {"name": name, "error": str(exc)}))
        return instances

    def get_instance(self, name: str) -> InstanceConfig:
        """Return the instance called *name*, loading and caching it on first use.

        Why
        ----
        Every caller must share one object per name so edits made through one
        handle are visible through all of them. The check-load-insert sequence
        runs under the registry lock, so concurrent first calls still yield a
        single object.

        Parameters
        ----------
        name:
            Instance name; validated before any path is built.

        Returns
        -------
        InstanceConfig
            The cached object when present (no reload), otherwise a freshly
            loaded one bound to *name*.

        Raises
        ------
        InvalidName
            *name* is not a safe file name.
        NotFound / Unreadable / InvalidFormat
            The codec could not load the file; nothing is cached.

        Side Effects
        ------------
        Emits ``instance_loaded`` on a fresh load and ``instance_load_failed``
        warnings on failure.
        """

        path = self.name_to_path(name)
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached
            try:
                data = self.codec.load(path)
            except ConfigError as exc:
                log_warning("instance_load_failed", **make_event("load", path, {"name": name, "error": str(exc)}))
                raise
            instance = InstanceConfig(self, data=data, template=self.template)
            instance.name = name
            self._cache[name] = instance
        log_info("instance_loaded", **make_event("load", path, {"name": name}))
        return instance

    def create_instance_file(self, name: str) -> None:
        """Create an empty file for instance *name*.

        Raises :class:`AlreadyExists` if the file is present, including when
        another actor creates it between the check and the exclusive create.
        """

        path = self.name_to_path(name)
        if path.exists():
            raise AlreadyExists(name=name)
        try:
            with path.open("xb"):
                pass
        except FileExistsError as exc:
            raise AlreadyExists(name=name) from exc
        except OSError as exc:
            log_error("instance_file_create_failed", exc=exc, **make_event("create", path, {"name": name}))
            raise OperationFailed("Could not create config.", key="instance.create_failed", name=name) from exc
        log_info("instance_file_created", **make_event("create", path, {"name": name}))

    def delete_instance(self, name: str) -> bool:
        """Delete instance *name*; returns ``False`` when there was nothing to delete.

        Why
        ----
        A deleted instance must never stay cached. The cache eviction, the
        existence check and the unlink therefore run under the registry lock,
        the same lock :meth:`get_instance` holds while it loads, so no reload can
        slip in between eviction and removal.

        Parameters
        ----------
        name:
            Instance name; validated before any path is built.

        Returns
        -------
        bool
            ``True`` when a file was removed, ``False`` when none existed.

        Raises
        ------
        InvalidName
            *name* is not a safe file name.
        OperationFailed
            The file exists but could not be removed (``instance.delete_failed``).

        Side Effects
        ------------
        A cached instance is detached (its name cleared) and dropped from the
        cache whether or not its file still exists.
        """

        path = self.name_to_path(name)
        with self._lock:
            cached = self._cache.pop(name, None)
            if cached is not None:
                cached.name = None
            if not path.exists():
                log_debug("instance_delete_noop", **make_event("delete", path, {"name": name}))
                return False
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            except OSError as exc:
                log_error("instance_delete_failed", exc=exc, **make_event("delete", path, {"name": name}))
                raise OperationFailed("Could not delete config.", key="instance.delete_failed", name=name) from exc
        log_info("instance_deleted", **make_event("delete", path, {"name": name}))
        return True

    def copy_instance(self, source: str, target: str) -> None:
        """Copy the file of instance *source* to a new file for *target*.

        Only bytes on disk are copied: the cache is not touched and the target
        is not loaded.

        Raises
        ------
        InstanceNotFound
            The source file is missing (checked first, and again when opening it).
        AlreadyExists
            The target file exists, including one created concurrently.
        OperationFailed
            Any other I/O failure (``instance.copy_failed``); a partially
            written target is removed.
        """

        source_path = self.name_to_path(source)
        target_path = self.name_to_path(target)
        if not source_path.is_file():
            raise InstanceNotFound(name=source)
        if target_path.exists():
            raise AlreadyExists(_TARGET_EXISTS, name=target)
        try:
            reader = source_path.open("rb")
        except FileNotFoundError as exc:
            raise InstanceNotFound(name=source) from exc
        except OSError as exc:
            raise self._copy_failed(exc, source, target) from exc
        with reader:
            try:
                writer = target_path.open("xb")
            except FileExistsError as exc:
                raise AlreadyExists(_TARGET_EXISTS, name=target) from exc
            except OSError as exc:
                raise self._copy_failed(exc, source, target) from exc
            try:
                with writer:
                    shutil.copyfileobj(reader, writer)
            except OSError as exc:
                with contextlib.suppress(OSError):
                    target_path.unlink(missing_ok=True)
                raise self._copy_failed(exc, source, target) from exc
        log_info("instance_copied", **make_event("copy", source_path, {"target": str(target_path)}))

    def _copy_failed(self, exc: OSError, source: str, target: str) -> OperationFailed:
        event = make_event("copy", self.name_to_path(source), {"target": str(self.name_to_path(target))})
        log_error("instance_copy_failed", exc=exc, **event)
        return OperationFailed("Could not copy config.", key="instance.copy_failed", source=source, target=target)

    # -- cache ---------------------------------------------------------------

    def add_to_cache(self, instance: InstanceConfig) -> None:
        """Cache *instance* under its name; no-op when unnamed or the name is taken."""

        name = instance.name
        if not name:
            return
        with self._lock:
            if name in self._cache:
                return
            self._cache[name] = instance
        log_debug("instance_cached", **make_event("cache", None, {"name": name}))

    def clear_cache(self, name: str | None = None) -> None:
        """Forget one cached instance, or all of them when *name* is ``None``."""

        with self._lock:
            if name is None:
                self._cache.clear()
            else:
                self._cache.pop(name, None)

    def cached(self, name: str) -> InstanceConfig | None:
        """Return the cached instance for *name* without loading anything."""

        with self._lock:
            return self._cache.get(name)

    def cached_names(self) -> list[str]:
        """Return the names currently cached, sorted; a snapshot taken under the lock."""

        with self._lock:
            return sorted(self._cache)
