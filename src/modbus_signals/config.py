"""Device configuration: YAML loading, resource path resolution and typed deserialization."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigOpenError, ConfigParseError
from .types import MAX_ADDRESS, SignalEntry

logger = logging.getLogger(__name__)

DEFAULT_COUPLER = "127.0.0.1"
DEFAULT_PORT = 502
DEFAULT_UNIT_ID = 1
DEFAULT_CONNECT_TIMEOUT = 1.0

INVALID_SIGNAL_NAME = "invalid_signal_name"
INVALID_SIGNAL_TYPE = "invalid_signal_type"
DEFAULT_OFFSET = 0

CONFIG_DIR_ENV = "MODBUS_SIGNALS_CONFIG_DIR"
DEFAULT_CONFIG_DIR = "config"
CONFIG_SUFFIX = ".yaml"


@dataclass(frozen=True)
class DeviceConfig:
    """Parsed device document: coupler endpoint plus signal entries in file order."""

    coupler: str = DEFAULT_COUPLER
    port: int = DEFAULT_PORT
    unit_id: int = DEFAULT_UNIT_ID
    signals: tuple[SignalEntry, ...] = ()
    defaulted: frozenset[str] = field(default_factory=frozenset)

    @property
    def coupler_defaulted(self) -> bool:
        return "coupler" in self.defaulted


def resolve_config_path(device_name: str, config_dir: str | os.PathLike[str] | None = None) -> Path:
    """
    Return the configuration resource for ``device_name``: ``<config_dir>/<device_name>.yaml``.

    ``config_dir`` falls back to $MODBUS_SIGNALS_CONFIG_DIR, then ``./config``.
    """
    if config_dir is None:
        config_dir = os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR
    return Path(config_dir) / f"{device_name}{CONFIG_SUFFIX}"


def load_config(path: str | os.PathLike[str]) -> Any:
    """Read and parse a YAML configuration document. Shape is checked by parse_device_config."""
    location = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigOpenError(f"Cannot open configuration {location}: {e}", location=location, cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Malformed configuration {location}: {e}", location=location, cause=e) from e

    return data


def _is_int(value: Any) -> bool:
    # YAML booleans are ints in Python; they are never valid numbers here
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_entry(raw: Any) -> SignalEntry:
    """Build a SignalEntry, substituting sentinels for absent or invalid fields."""
    if not isinstance(raw, dict):
        raw = {}
    defaulted: set[str] = set()

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        name = INVALID_SIGNAL_NAME
        defaulted.add("name")

    kind = raw.get("type")
    if not isinstance(kind, str) or not kind:
        kind = INVALID_SIGNAL_TYPE
        defaulted.add("type")

    offset = raw.get("offset")
    if not _is_int(offset) or not 0 <= offset <= MAX_ADDRESS:
        offset = DEFAULT_OFFSET
        defaulted.add("offset")

    return SignalEntry(name=name, kind=kind, offset=offset, defaulted=frozenset(defaulted))


def parse_device_config(tree: Any, location: str | None = None) -> DeviceConfig:
    """
    Turn a parsed configuration tree into a DeviceConfig.

    The top level must be a mapping, otherwise ConfigParseError is raised. Beyond
    that it never fails on content: missing or invalid fields fall back to defaults
    and are recorded in ``defaulted``. A missing coupler address logs a warning.
    """
    where = location or "<config>"
    if not isinstance(tree, dict):
        raise ConfigParseError(
            f"Configuration {where} must be a mapping, got {type(tree).__name__}",
            location=location,
        )
    defaulted: set[str] = set()

    device = tree.get("device")
    if not isinstance(device, dict):
        device = {}

    coupler = device.get("coupler")
    if not isinstance(coupler, str) or not coupler.strip():
        logger.warning("%s: no device.coupler configured, using default %s", where, DEFAULT_COUPLER)
        coupler = DEFAULT_COUPLER
        defaulted.add("coupler")
    else:
        coupler = coupler.strip()

    port = device.get("port", DEFAULT_PORT)
    if not _is_int(port) or not 1 <= port <= 65535:
        logger.warning("%s: invalid device.port %r, using %d", where, port, DEFAULT_PORT)
        port = DEFAULT_PORT
        defaulted.add("port")

    unit_id = device.get("unit_id", DEFAULT_UNIT_ID)
    if not _is_int(unit_id) or not 0 <= unit_id <= 255:
        logger.warning("%s: invalid device.unit_id %r, using %d", where, unit_id, DEFAULT_UNIT_ID)
        unit_id = DEFAULT_UNIT_ID
        defaulted.add("unit_id")

    raw_signals = tree.get("signals")
    if raw_signals is None:
        raw_signals = []
    elif not isinstance(raw_signals, list):
        logger.warning("%s: 'signals' is not a list, ignoring it", where)
        raw_signals = []

    return DeviceConfig(
        coupler=coupler,
        port=port,
        unit_id=unit_id,
        signals=tuple(_parse_entry(raw) for raw in raw_signals),
        defaulted=frozenset(defaulted),
    )
