"""Instance name validation.

Purpose
-------
Decide whether a user-supplied name can be embedded in an instance file name
without escaping the instance directory or producing a file the platform
cannot store. The check is pure (no I/O) so it can run before any path is
built and again on names recovered from directory listings.

Contents
--------
* :data:`MAX_NAME_LENGTH` – upper bound that keeps ``bot_<name>.<ext>`` below
  common filesystem limits.
* :func:`is_safe_name` – validate and return the name or raise
  :class:`~lib_config_registry.domain.errors.InvalidName`.
"""

from __future__ import annotations

import re
from typing import Final

from .errors import InvalidName

MAX_NAME_LENGTH: Final[int] = 200

_FORBIDDEN_CHARS = re.compile(r'[\x00-\x1f\x7f<>:"/\\|?*]')
_RESERVED_DEVICE_NAMES: Final[frozenset[str]] = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{index}" for index in range(1, 10)}
    | {f"LPT{index}" for index in range(1, 10)}
)


def is_safe_name(name: str) -> str:
    """Return *name* unchanged when it is safe to use as part of a file name.

    A name is rejected when it is empty or too long, contains a path separator,
    a ``..`` sequence, a control character or any of ``<>:"|?*``, is ``.``,
    has leading/trailing whitespace, ends with a dot, or is a reserved Windows
    device name.

    Examples
    --------
    >>> is_safe_name("alice")
    'alice'
    >>> is_safe_name("../etc/passwd")
    Traceback (most recent call last):
    ...
    lib_config_registry.domain.errors.InvalidName: The name is not a valid file name.
    """

    reason = _rejection_reason(name)
    if reason is not None:
        raise InvalidName(name=name, reason=reason)
    return name


def _rejection_reason(name: object) -> str | None:
    if not isinstance(name, str) or not name:
        return "empty"
    if len(name) > MAX_NAME_LENGTH:
        return "too_long"
    if ".." in name:
        return "parent_reference"
    if _FORBIDDEN_CHARS.search(name):
        return "forbidden_character"
    if name == "." or name.endswith("."):
        return "trailing_dot"
    if name != name.strip():
        return "surrounding_whitespace"
    if name.split(".", 1)[0].upper() in _RESERVED_DEVICE_NAMES:
        return "reserved_name"
    return None
