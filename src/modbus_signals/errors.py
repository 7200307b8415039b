"""Clear exceptions for modbus-signals: configuration, unknown signals and Modbus I/O errors."""

from enum import Enum


class ModbusSignalsError(Exception):
    """Base exception for modbus-signals."""

    pass


class ConfigErrorReason(str, Enum):
    """Why a device could not be constructed."""

    OPEN_FAILED = "open_failed"
    PARSE_FAILED = "parse_failed"
    CONNECT_FAILED = "connect_failed"
    DUPLICATE_SIGNAL = "duplicate_signal"


class ConfigError(ModbusSignalsError):
    """Raised when a device cannot be built from its configuration. No device is returned."""

    reason: ConfigErrorReason

    def __init__(self, message: str, *, location: str | None = None, cause: BaseException | None = None) -> None:
        self.location = location
        self.cause = cause
        super().__init__(message)


class ConfigOpenError(ConfigError):
    """Raised when the configuration resource cannot be opened."""

    reason = ConfigErrorReason.OPEN_FAILED


class ConfigParseError(ConfigError):
    """Raised when the configuration resource is not a well-formed YAML mapping."""

    reason = ConfigErrorReason.PARSE_FAILED


class CouplerConnectError(ConfigError):
    """Raised when the transport to the coupler cannot be established within the connect timeout."""

    reason = ConfigErrorReason.CONNECT_FAILED

    def __init__(
        self,
        address: str,
        port: int,
        timeout: float,
        *,
        location: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.address = address
        self.port = port
        self.timeout = timeout
        super().__init__(
            f"Failed to connect to coupler {address}:{port} within {timeout:g}s",
            location=location,
            cause=cause,
        )


class DuplicateSignalError(ConfigError):
    """Raised when two configuration entries explicitly declare the same signal name."""

    reason = ConfigErrorReason.DUPLICATE_SIGNAL

    def __init__(self, name: str, *, location: str | None = None) -> None:
        self.name = name
        super().__init__(f"Duplicate signal name in configuration: {name!r}", location=location)


class UnknownSignalError(ModbusSignalsError):
    """Raised when a signal name is not in the device's registry."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        self._msg = message or f"Unknown signal: {name!r}"
        super().__init__(self._msg)


class ModbusIOError(ModbusSignalsError):
    """Raised when a discrete-input read fails (wraps pymodbus or connection errors)."""

    def __init__(
        self,
        message: str,
        *,
        address: int | None = None,
        count: int | None = None,
        signal: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.address = address
        self.count = count
        self.signal = signal
        self.cause = cause
        super().__init__(message)
