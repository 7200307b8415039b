"""Tests for YAML loading, resource path resolution and defaulting of configuration fields."""

import logging
from pathlib import Path

import pytest

from modbus_signals import ConfigOpenError, ConfigParseError, load_config, parse_device_config, resolve_config_path
from modbus_signals.config import (
    CONFIG_DIR_ENV,
    DEFAULT_COUPLER,
    DEFAULT_PORT,
    INVALID_SIGNAL_NAME,
    INVALID_SIGNAL_TYPE,
)
from modbus_signals.errors import ConfigErrorReason


def test_resolve_config_path_explicit_dir(tmp_path: Path) -> None:
    assert resolve_config_path("panel_a", tmp_path) == tmp_path / "panel_a.yaml"


def test_resolve_config_path_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))
    assert resolve_config_path("panel_a") == tmp_path / "panel_a.yaml"


def test_resolve_config_path_default_dir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)
    assert resolve_config_path("panel_a") == Path("config") / "panel_a.yaml"


def test_load_config_reads_mapping(tmp_path: Path) -> None:
    path = tmp_path / "dev.yaml"
    path.write_text("device:\n  coupler: 10.0.0.5\nsignals:\n  - {name: door_open, type: input, offset: 16}\n")
    tree = load_config(path)
    assert tree["device"]["coupler"] == "10.0.0.5"
    assert tree["signals"][0]["offset"] == 16


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigOpenError) as exc_info:
        load_config(tmp_path / "absent.yaml")
    assert exc_info.value.reason is ConfigErrorReason.OPEN_FAILED
    assert exc_info.value.location.endswith("absent.yaml")


def test_load_config_malformed_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("device: [unclosed\n")
    with pytest.raises(ConfigParseError) as exc_info:
        load_config(path)
    assert exc_info.value.reason is ConfigErrorReason.PARSE_FAILED


@pytest.mark.parametrize("content", ["", "- just\n- a list\n", "plain scalar\n"])
def test_non_mapping_document_raises_parse_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "odd.yaml"
    path.write_text(content)
    tree = load_config(path)
    with pytest.raises(ConfigParseError, match="must be a mapping") as exc_info:
        parse_device_config(tree, str(path))
    assert exc_info.value.location == str(path)


def test_parse_full_config() -> None:
    cfg = parse_device_config({
        "device": {"coupler": "10.0.0.5", "port": 1502, "unit_id": 7},
        "signals": [
            {"name": "door_open", "type": "input", "offset": 16},
            {"name": "pump_run", "type": "input", "offset": 3},
        ],
    })
    assert cfg.coupler == "10.0.0.5"
    assert cfg.port == 1502
    assert cfg.unit_id == 7
    assert not cfg.coupler_defaulted
    assert [e.name for e in cfg.signals] == ["door_open", "pump_run"]
    assert all(not e.defaulted for e in cfg.signals)


def test_missing_coupler_defaults_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="modbus_signals.config"):
        cfg = parse_device_config({"signals": []}, "dev.yaml")
    assert cfg.coupler == DEFAULT_COUPLER == "127.0.0.1"
    assert cfg.coupler_defaulted
    assert "device.coupler" in caplog.text


def test_missing_device_section_uses_defaults() -> None:
    cfg = parse_device_config({"device": "not a mapping"})
    assert cfg.coupler == "127.0.0.1"
    assert cfg.port == DEFAULT_PORT
    assert cfg.unit_id == 1
    assert cfg.signals == ()


def test_invalid_port_falls_back() -> None:
    cfg = parse_device_config({"device": {"coupler": "h", "port": "abc", "unit_id": 999}})
    assert cfg.port == DEFAULT_PORT
    assert cfg.unit_id == 1
    assert cfg.defaulted == frozenset({"port", "unit_id"})


def test_signal_field_defaults_are_marked() -> None:
    cfg = parse_device_config({
        "device": {"coupler": "10.0.0.5"},
        "signals": [
            {"type": "input", "offset": 4},
            {"name": "no_type", "offset": 5},
            {"name": "no_offset", "type": "input"},
            {"name": "bad_offset", "type": "input", "offset": "sixteen"},
            {"name": "neg_offset", "type": "input", "offset": -1},
            {"name": "big_offset", "type": "input", "offset": 65536},
            {"name": "bool_offset", "type": "input", "offset": True},
        ],
    })
    by_pos = list(cfg.signals)
    assert by_pos[0].name == INVALID_SIGNAL_NAME and by_pos[0].defaulted == frozenset({"name"})
    assert by_pos[1].kind == INVALID_SIGNAL_TYPE and by_pos[1].defaulted == frozenset({"type"})
    for entry in by_pos[2:]:
        assert entry.offset == 0
        assert entry.defaulted == frozenset({"offset"})


def test_explicit_sentinel_name_is_not_marked_defaulted() -> None:
    cfg = parse_device_config({"signals": [{"name": INVALID_SIGNAL_NAME, "type": "input", "offset": 1}]})
    assert cfg.signals[0].name == INVALID_SIGNAL_NAME
    assert not cfg.signals[0].is_defaulted("name")


def test_non_mapping_signal_entry_is_fully_defaulted() -> None:
    cfg = parse_device_config({"signals": ["door_open", None]})
    assert len(cfg.signals) == 2
    for entry in cfg.signals:
        assert entry.name == INVALID_SIGNAL_NAME
        assert entry.kind == INVALID_SIGNAL_TYPE
        assert entry.offset == 0
        assert entry.defaulted == frozenset({"name", "type", "offset"})


def test_signals_not_a_list_yields_empty() -> None:
    assert parse_device_config({"signals": {"name": "x"}}).signals == ()
    assert parse_device_config({"signals": None}).signals == ()


def test_signal_order_preserved() -> None:
    names = [f"s{i}" for i in range(10)]
    cfg = parse_device_config({"signals": [{"name": n, "type": "input", "offset": i} for i, n in enumerate(names)]})
    assert [e.name for e in cfg.signals] == names
