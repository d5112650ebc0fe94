"""Command output values.

Purpose
-------
Model what a CLI command hands back as a closed set of variants instead of a
base class with a kind enum. :func:`render` is the single place that turns a
result into text and handles every variant explicitly.

Contents
--------
* :class:`TextResult` – plain text for humans.
* :class:`JsonResult` – structured payload rendered as JSON.
* :class:`EmptyResult` – nothing to print.
* :data:`CommandResult` – union of the variants above.
* :func:`render` – exhaustive conversion to text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class TextResult:
    content: str


@dataclass(frozen=True, slots=True)
class JsonResult:
    payload: Any
    indent: int | None = None


@dataclass(frozen=True, slots=True)
class EmptyResult:
    pass


CommandResult = Union[TextResult, JsonResult, EmptyResult]


def render(result: CommandResult) -> str:
    """Return the text representation of *result*.

    Examples
    --------
    >>> render(TextResult("ready"))
    'ready'
    >>> render(EmptyResult())
    ''
    >>> render(JsonResult(["alice", "bob"]))
    '["alice","bob"]'
    """

    match result:
        case TextResult(content=content):
            return content
        case EmptyResult():
            return ""
        case JsonResult(payload=payload, indent=indent):
            return json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False)
        case _:
            raise TypeError(f"Unhandled command result: {result!r}")
