from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_config_registry.application.derive import INSTANCE_LAYER, TEMPLATE_LAYER, derive_settings
from lib_config_registry.domain.config import resolve_dotted

KEY = st.text(alphabet="abcdefgh", min_size=1, max_size=4)
SCALAR = st.one_of(st.booleans(), st.integers(), st.text(min_size=1, max_size=5))
VALUE = st.recursive(
    SCALAR,
    lambda children: st.dictionaries(KEY, children, min_size=1, max_size=3),
    max_leaves=10,
)
MAPPING = st.dictionaries(KEY, VALUE, max_size=4)


def _leaves(mapping: dict, prefix: tuple[str, ...] = ()) -> dict[str, object]:
    leaves: dict[str, object] = {}
    for key, value in mapping.items():
        if isinstance(value, dict):
            leaves |= _leaves(value, (*prefix, key))
        else:
            leaves[".".join((*prefix, key))] = value
    return leaves


def test_instance_values_override_template() -> None:
    data, meta = derive_settings(
        {"audio": {"volume": 50, "device": "default"}, "name": "template"},
        {"audio": {"volume": 10}},
        template_path="root.toml",
        own_path="bots/bot_a.toml",
    )
    assert data == {"audio": {"volume": 10, "device": "default"}, "name": "template"}
    assert meta["audio.volume"] == {"layer": INSTANCE_LAYER, "path": "bots/bot_a.toml", "key": "audio.volume"}
    assert meta["audio.device"]["layer"] == TEMPLATE_LAYER
    assert meta["name"]["path"] == "root.toml"


def test_scalar_replaces_template_branch() -> None:
    data, meta = derive_settings({"audio": {"volume": 50}}, {"audio": "muted"})
    assert data == {"audio": "muted"}
    assert "audio.volume" not in meta
    assert meta["audio"]["layer"] == INSTANCE_LAYER


def test_inputs_are_not_mutated() -> None:
    template = {"audio": {"volume": 50}}
    own = {"audio": {"device": "hw:1"}}
    data, _ = derive_settings(template, own)
    data["audio"]["volume"] = 0
    assert template == {"audio": {"volume": 50}}
    assert own == {"audio": {"device": "hw:1"}}


@given(MAPPING)
def test_empty_instance_yields_template(template) -> None:
    data, meta = derive_settings(template, {})
    assert data == template
    assert all(entry["layer"] == TEMPLATE_LAYER for entry in meta.values())


@given(MAPPING, MAPPING)
def test_every_instance_leaf_wins(template, own) -> None:
    data, meta = derive_settings(template, own)
    for dotted, value in _leaves(own).items():
        assert resolve_dotted(data, dotted) == value
        assert meta[dotted]["layer"] == INSTANCE_LAYER


@given(MAPPING, MAPPING)
def test_provenance_matches_merged_leaves(template, own) -> None:
    data, meta = derive_settings(template, own)
    assert set(meta) == set(_leaves(data))
