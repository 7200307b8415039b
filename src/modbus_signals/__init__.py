"""modbus-signals: named discrete inputs on a Modbus TCP coupler, polled via pymodbus."""

__version__ = "0.1.0"

from .config import DeviceConfig, load_config, parse_device_config, resolve_config_path
from .device import SignalDevice
from .errors import (
    ConfigError,
    ConfigErrorReason,
    ConfigOpenError,
    ConfigParseError,
    CouplerConnectError,
    DuplicateSignalError,
    ModbusIOError,
    ModbusSignalsError,
    UnknownSignalError,
)
from .registry import SignalRegistry
from .transport import DiscreteInputTransport, ModbusTransport, TransportConfig
from .types import Coil, RefreshOutcome, RefreshReport, RefreshStatus, Signal, SignalEntry

__all__ = [
    "__version__",
    "SignalDevice",
    "SignalRegistry",
    "DeviceConfig",
    "load_config",
    "parse_device_config",
    "resolve_config_path",
    "ConfigError",
    "ConfigErrorReason",
    "ConfigOpenError",
    "ConfigParseError",
    "CouplerConnectError",
    "DuplicateSignalError",
    "ModbusIOError",
    "ModbusSignalsError",
    "UnknownSignalError",
    "DiscreteInputTransport",
    "ModbusTransport",
    "TransportConfig",
    "Coil",
    "RefreshOutcome",
    "RefreshReport",
    "RefreshStatus",
    "Signal",
    "SignalEntry",
]
