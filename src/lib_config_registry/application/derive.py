"""Derivation of instance settings from the root template.

Purpose
-------
Compute the effective settings of an instance: the root's ``[bot]`` template
supplies defaults and the instance's own values override them key by key.
Provenance is tracked for every leaf so tooling can tell which file a value
came from. The module is free of I/O.

Contents
    - ``derive_settings``: public entry point returning ``(data, provenance)``.
    - ``_overlay``: recursive stanza applying one layer on top of the result.
    - ``_drop_provenance``: forget provenance below a replaced branch.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..domain.config import SourceInfo, clone_tree

TEMPLATE_LAYER = "template"
INSTANCE_LAYER = "instance"


def derive_settings(
    template: Mapping[str, object],
    own: Mapping[str, object],
    *,
    template_path: str | None = None,
    own_path: str | None = None,
) -> tuple[dict[str, object], dict[str, SourceInfo]]:
    """Overlay *own* on *template* and return merged data plus provenance.

    Nested mappings merge recursively; any other value in *own* replaces the
    template's value (and the whole template branch, if there was one).

    Examples
    --------
    >>> data, meta = derive_settings(
    ...     {"audio": {"volume": 50, "device": "default"}},
    ...     {"audio": {"volume": 20}},
    ... )
    >>> data["audio"], meta["audio.volume"]["layer"], meta["audio.device"]["layer"]
    ({'volume': 20, 'device': 'default'}, 'instance', 'template')
    """

    merged: dict[str, object] = {}
    meta: dict[str, SourceInfo] = {}
    _overlay(merged, meta, clone_tree(template), TEMPLATE_LAYER, template_path, ())
    _overlay(merged, meta, clone_tree(own), INSTANCE_LAYER, own_path, ())
    return merged, meta


def _overlay(
    target: dict[str, object],
    meta: dict[str, SourceInfo],
    incoming: Mapping[str, object],
    layer: str,
    path: str | None,
    segments: tuple[str, ...],
) -> None:
    for key, value in incoming.items():
        dotted = ".".join((*segments, key))
        existing = target.get(key)
        if isinstance(value, Mapping):
            if not isinstance(existing, dict):
                _drop_provenance(meta, dotted)
                existing = target[key] = {}
            _overlay(existing, meta, value, layer, path, (*segments, key))
            continue
        _drop_provenance(meta, dotted)
        target[key] = value
        meta[dotted] = {"layer": layer, "path": path, "key": dotted}


def _drop_provenance(meta: dict[str, SourceInfo], prefix: str) -> None:
    for key in [key for key in meta if key == prefix or key.startswith(prefix + ".")]:
        del meta[key]
