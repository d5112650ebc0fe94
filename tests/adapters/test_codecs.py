from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from lib_config_registry.adapters.codecs import structured as structured_module
from lib_config_registry.adapters.codecs.structured import JSONCodec, TOMLCodec, YAMLCodec, codec_for_path
from lib_config_registry.domain.errors import ConfigError, InvalidFormat, NotFound, Unreadable


def test_toml_load(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    path.write_text("[audio]\nvolume = 40\n", encoding="utf-8")
    assert TOMLCodec().load(path)["audio"]["volume"] == 40


def test_toml_load_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    path.touch()
    assert TOMLCodec().load(path) == {}


def test_toml_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        TOMLCodec().load(tmp_path / "missing.toml")


def test_load_below_a_file_is_not_found(tmp_path: Path) -> None:
    blocker = tmp_path / "bots"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(NotFound):
        TOMLCodec().load(blocker / "bot_a.toml")


def test_load_directory_in_place_of_file_is_unreadable(tmp_path: Path) -> None:
    (tmp_path / "bot_a.toml").mkdir()
    with pytest.raises(Unreadable):
        TOMLCodec().load(tmp_path / "bot_a.toml")


@pytest.mark.parametrize("codec_cls", [TOMLCodec, JSONCodec])
def test_load_permission_error_is_translated(tmp_path: Path, monkeypatch, caplog, codec_cls) -> None:
    caplog.set_level(logging.ERROR, logger="lib_config_registry")
    codec = codec_cls()
    path = tmp_path / f"bot_locked{codec.extension}"
    path.write_text("", encoding="utf-8")

    def refuse(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "open", refuse)
    with pytest.raises(Unreadable) as info:
        codec.load(path)
    assert isinstance(info.value, ConfigError)
    assert isinstance(info.value.__cause__, PermissionError)
    assert any(record.getMessage() == "config_file_unreadable" for record in caplog.records)


def test_toml_load_invalid(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    path.write_text("volume = = 1", encoding="utf-8")
    with pytest.raises(InvalidFormat):
        TOMLCodec().load(path)


def test_toml_save_new_writes_header_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    codec = TOMLCodec()
    payload = {"audio": {"volume": 40, "effects": {"echo": False}}, "name": "radio", "tags": ["a", "b"]}
    codec.save(payload, path, is_new=True)
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# Generated by lib_config_registry.")
    assert codec.load(path) == payload


def test_toml_save_new_refuses_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    path.write_text("keep = true\n", encoding="utf-8")
    with pytest.raises(FileExistsError):
        TOMLCodec().save({"keep": False}, path, is_new=True)
    assert path.read_text(encoding="utf-8") == "keep = true\n"


def test_toml_overwrite_rewrites_whole_file(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    path.write_text("old = 1\nother = 2\n", encoding="utf-8")
    TOMLCodec().save({"new": 3}, path, is_new=False)
    assert TOMLCodec().load(path) == {"new": 3}
    assert "Generated" not in path.read_text(encoding="utf-8")


def test_toml_save_unserialisable_value(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.toml"
    with pytest.raises(InvalidFormat):
        TOMLCodec().save({"value": None}, path, is_new=True)
    assert not path.exists()


def test_json_roundtrip_and_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.json"
    codec = JSONCodec()
    codec.save({"enabled": True}, path, is_new=True)
    assert json.loads(path.read_text(encoding="utf-8")) == {"enabled": True}
    assert codec.load(path) == {"enabled": True}
    path.write_text("  \n", encoding="utf-8")
    assert codec.load(path) == {}


def test_json_non_mapping_is_invalid(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidFormat):
        JSONCodec().load(path)


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "bot_a.yml"
    codec = YAMLCodec(".yml")
    codec.save({"audio": {"volume": 40}}, path, is_new=True)
    assert path.read_text(encoding="utf-8").startswith("# Generated")
    assert codec.load(path) == {"audio": {"volume": 40}}


@pytest.mark.parametrize(
    ("filename", "codec_type", "extension"),
    [
        ("root.toml", TOMLCodec, ".toml"),
        ("root.JSON", JSONCodec, ".json"),
        ("root.yaml", YAMLCodec, ".yaml"),
        ("root.yml", YAMLCodec, ".yml"),
    ],
)
def test_codec_for_path(filename: str, codec_type: type, extension: str) -> None:
    codec = codec_for_path(filename)
    assert isinstance(codec, codec_type)
    assert codec.extension == extension


def test_codec_for_unknown_suffix() -> None:
    with pytest.raises(InvalidFormat):
        codec_for_path("root.ini")
