"""Tests for Signal state, SignalEntry validation and RefreshReport aggregation."""

import pytest

from modbus_signals import Coil, ModbusIOError, RefreshOutcome, RefreshReport, RefreshStatus, Signal, SignalEntry


def test_signal_starts_off() -> None:
    s = Signal("door_open", "input", 16)
    assert s.name == "door_open"
    assert s.kind == "input"
    assert s.address == 16
    assert s.status is False
    assert s.as_text() == "OFF"


@pytest.mark.parametrize(("status", "text"), [(True, "ON"), (False, "OFF")])
def test_signal_as_text_follows_status(status: bool, text: str) -> None:
    s = Signal("door_open", "input", 16)
    s.set_status(status)
    assert s.status is status
    assert s.as_text() == text


def test_signal_identity_is_read_only() -> None:
    s = Signal("door_open", "input", 16)
    with pytest.raises(AttributeError):
        s.address = 17  # type: ignore[misc]
    with pytest.raises(AttributeError):
        s.name = "other"  # type: ignore[misc]


@pytest.mark.parametrize("address", [-1, 0x10000])
def test_signal_address_outside_u16_raises(address: int) -> None:
    with pytest.raises(ValueError, match="address must be"):
        Signal("x", "input", address)


def test_signal_accepts_u16_bounds() -> None:
    assert Signal("lo", "input", 0).address == 0
    assert Signal("hi", "input", 0xFFFF).address == 0xFFFF


def test_signal_from_entry_keeps_defaulted_fields() -> None:
    entry = SignalEntry("invalid_signal_name", "input", 3, defaulted=frozenset({"name"}))
    s = Signal.from_entry(entry)
    assert s.name == "invalid_signal_name"
    assert s.address == 3
    assert s.defaulted == frozenset({"name"})


def test_signal_entry_rejects_bad_offset() -> None:
    with pytest.raises(ValueError, match="offset must be"):
        SignalEntry("x", "input", 70000)


def test_coil_from_bit() -> None:
    assert Coil.from_bit(True) is Coil.ON
    assert Coil.from_bit(False) is Coil.OFF


def _err(address: int) -> ModbusIOError:
    return ModbusIOError("timeout", address=address, count=1)


def test_report_complete() -> None:
    report = RefreshReport([
        RefreshOutcome("a", 0, value=True),
        RefreshOutcome("b", 1, value=False),
    ])
    assert report.status is RefreshStatus.COMPLETE
    assert report.ok
    assert report.readings == {"a": True, "b": False}
    assert report.errors == {}
    assert list(report) == ["a", "b"]
    report.raise_for_errors()


def test_report_partial_names_failures() -> None:
    err = _err(1)
    report = RefreshReport([
        RefreshOutcome("a", 0, value=True),
        RefreshOutcome("b", 1, error=err),
    ])
    assert report.status is RefreshStatus.PARTIAL
    assert not report.ok
    assert report.readings == {"a": True}
    assert report.errors == {"b": err}
    assert report["b"].as_text().startswith("ERROR")
    with pytest.raises(ModbusIOError):
        report.raise_for_errors()


def test_report_failed_when_every_read_fails() -> None:
    report = RefreshReport([RefreshOutcome("a", 0, error=_err(0)), RefreshOutcome("b", 1, error=_err(1))])
    assert report.status is RefreshStatus.FAILED


def test_empty_report_is_complete() -> None:
    report = RefreshReport([])
    assert report.status is RefreshStatus.COMPLETE
    assert len(report) == 0


def test_report_keeps_every_outcome_for_repeated_names() -> None:
    report = RefreshReport([
        RefreshOutcome("invalid_signal_name", 0, value=True),
        RefreshOutcome("invalid_signal_name", 0, value=False),
    ])
    assert len(report.outcomes) == 2
    assert len(report) == 1
    assert report["invalid_signal_name"].value is True
