from __future__ import annotations

from lib_config_registry.domain.errors import (
    AlreadyExists,
    ConfigError,
    DirectoryUnavailable,
    InstanceNotFound,
    InvalidFormat,
    InvalidName,
    LocalizedError,
    NotFound,
    OperationFailed,
    RegistryUnavailable,
    Unreadable,
)


def test_error_hierarchy() -> None:
    for internal in (InvalidFormat, NotFound, Unreadable, DirectoryUnavailable, RegistryUnavailable, LocalizedError):
        assert issubclass(internal, ConfigError)
    for user_facing in (InvalidName, AlreadyExists, InstanceNotFound, OperationFailed):
        assert issubclass(user_facing, LocalizedError)
    assert issubclass(InstanceNotFound, NotFound)
    assert not issubclass(DirectoryUnavailable, LocalizedError)


def test_localized_error_defaults_and_overrides() -> None:
    default = OperationFailed(name="alice")
    assert default.key == "instance.operation_failed"
    assert str(default) == "The operation could not be completed."

    custom = OperationFailed("Could not delete config.", key="instance.delete_failed", name="alice")
    assert custom.key == "instance.delete_failed"
    assert custom.params == {"name": "alice"}
    assert str(custom) == "Could not delete config."


def test_localize_delegates_to_host_catalog() -> None:
    catalog = {"instance.already_exists": "Die Datei {name} existiert bereits."}

    def translate(key: str, default: str, **params: object) -> str:
        return catalog.get(key, default).format(**params)

    assert AlreadyExists(name="bob").localize(translate) == "Die Datei bob existiert bereits."
    assert InvalidName(name="..").localize(translate) == "The name is not a valid file name."
