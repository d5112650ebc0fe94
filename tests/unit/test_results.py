from __future__ import annotations

import json

import pytest

from lib_config_registry.domain.results import EmptyResult, JsonResult, TextResult, render


def test_render_each_variant() -> None:
    assert render(TextResult("hello")) == "hello"
    assert render(EmptyResult()) == ""
    assert json.loads(render(JsonResult({"names": ["a"]}, indent=2))) == {"names": ["a"]}


def test_render_rejects_foreign_values() -> None:
    with pytest.raises(TypeError):
        render("plain string")  # type: ignore[arg-type]


def test_results_are_immutable() -> None:
    result = TextResult("x")
    with pytest.raises(AttributeError):
        result.content = "y"  # type: ignore[misc]
