"""Public package surface of ``lib_config_registry``.

A file-backed registry made of one root configuration and any number of named
instance configurations stored next to it as ``bot_<name>.toml`` files. Most
applications only need :meth:`RootConfig.open_or_create` and the instance
operations on the returned object.
"""

from __future__ import annotations

from .domain.config import ConfigView, SourceInfo
from .domain.errors import (
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
from .domain.names import is_safe_name
from .instance import InstanceConfig
from .observability import bind_trace_id, get_logger
from .registry import RootConfig

__all__ = [
    "AlreadyExists",
    "ConfigError",
    "ConfigView",
    "DirectoryUnavailable",
    "InstanceConfig",
    "InstanceNotFound",
    "InvalidFormat",
    "InvalidName",
    "LocalizedError",
    "NotFound",
    "OperationFailed",
    "RegistryUnavailable",
    "RootConfig",
    "SourceInfo",
    "Unreadable",
    "bind_trace_id",
    "get_logger",
    "is_safe_name",
]
