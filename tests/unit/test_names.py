"""Name validation rules, including property checks over generated names."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_config_registry.domain.errors import InvalidName
from lib_config_registry.domain.names import MAX_NAME_LENGTH, is_safe_name

SAFE_TEXT = st.text(
    alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd"), whitelist_characters="-_"),
    max_size=20,
)


@pytest.mark.parametrize("name", ["alice", "bot-2", "Radio_One", "v1.2", ".hidden", "ümlaut"])
def test_accepts_ordinary_names(name: str) -> None:
    assert is_safe_name(name) == name


@pytest.mark.parametrize(
    "name",
    [
        "",
        ".",
        "..",
        "../escape",
        "a/b",
        "a\\b",
        "ends.",
        " padded",
        "padded ",
        "tab\tname",
        "what?",
        "pipe|name",
        "CON",
        "nul.txt",
        "com1",
        "x" * (MAX_NAME_LENGTH + 1),
    ],
)
def test_rejects_unsafe_names(name: str) -> None:
    with pytest.raises(InvalidName) as info:
        is_safe_name(name)
    assert info.value.params["name"] == name


def test_rejects_non_string() -> None:
    with pytest.raises(InvalidName):
        is_safe_name(None)  # type: ignore[arg-type]


@given(SAFE_TEXT, st.sampled_from(["/", "\\", ".."]), SAFE_TEXT)
def test_separator_or_parent_reference_is_always_rejected(head: str, token: str, tail: str) -> None:
    with pytest.raises(InvalidName):
        is_safe_name(head + token + tail)
