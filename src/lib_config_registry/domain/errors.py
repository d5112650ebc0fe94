"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the registry, its adapters, and the
CLI. The hierarchy separates *user-facing* failures, which carry a stable
message key for the host application's localization layer, from internal
failures that are only logged.

Contents
--------
* :class:`ConfigError` – umbrella base class for every registry failure.
* :class:`InvalidFormat` – a codec could not parse or produce a document.
* :class:`NotFound` – an expected file is missing.
* :class:`Unreadable` – a file exists but the operating system refused to read it.
* :class:`DirectoryUnavailable` – the instance directory cannot be created or read.
* :class:`RegistryUnavailable` – an instance outlived its parent registry.
* :class:`LocalizedError` – base for errors a human should see.
* :class:`InvalidName` / :class:`AlreadyExists` / :class:`InstanceNotFound` /
  :class:`OperationFailed` – the user-facing leaves.

System Role
-----------
Low-level ``OSError`` instances never leave the package directly: they are
logged where they are captured and re-raised as :class:`OperationFailed` for
writes (callers only ever see the localized message) or as
:class:`NotFound` / :class:`Unreadable` for reads.
"""

from __future__ import annotations

from typing import Any, ClassVar


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_registry``."""


class InvalidFormat(ConfigError):
    """Raised when a codec cannot turn a file into a mapping (or back)."""


class NotFound(ConfigError):
    """Raised when an expected configuration file does not exist."""


class Unreadable(ConfigError):
    """Raised when a configuration file exists but cannot be opened or read."""


class DirectoryUnavailable(ConfigError):
    """The instance directory could not be created or enumerated.

    Fatal for :meth:`RootConfig.open` and :meth:`RootConfig.create`: no
    registry object is returned when this is raised.
    """


class RegistryUnavailable(ConfigError):
    """An :class:`InstanceConfig` was used after its registry was released."""


class LocalizedError(ConfigError):
    """Failure meant to be shown to a human.

    Why
    ----
    The localization layer lives outside this package. Each subclass therefore
    exposes a stable ``key`` (the message id) and the format ``params`` next to
    an English default text, so hosts can translate without parsing strings.

    Examples
    --------
    >>> err = AlreadyExists(name="alice")
    >>> err.key, err.params, str(err)
    ('instance.already_exists', {'name': 'alice'}, 'The file already exists.')
    """

    key: ClassVar[str] = "error"
    default_message: ClassVar[str] = "An error occurred."

    def __init__(self, message: str | None = None, *, key: str | None = None, **params: Any) -> None:
        self.key = key or type(self).key
        self.params = params
        self.message = message or type(self).default_message
        super().__init__(self.message)

    def localize(self, translate: Any) -> str:
        """Return ``translate(key, default, **params)``; hosts pass their catalog lookup."""

        return translate(self.key, self.message, **self.params)


class InvalidName(LocalizedError):
    """The supplied instance name is not safe to embed in a filesystem path."""

    key = "instance.invalid_name"
    default_message = "The name is not a valid file name."


class AlreadyExists(LocalizedError):
    """The target instance file is already present."""

    key = "instance.already_exists"
    default_message = "The file already exists."


class InstanceNotFound(LocalizedError, NotFound):
    """A user-requested instance file does not exist."""

    key = "instance.not_found"
    default_message = "The source bot does not exist."


class OperationFailed(LocalizedError):
    """Generic create/delete/copy/save failure; the cause is only logged."""

    key = "instance.operation_failed"
    default_message = "The operation could not be completed."
