"""Transport boundary: the narrow discrete-input read the device needs, backed by pymodbus."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException as PymodbusException

from .config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PORT, DEFAULT_UNIT_ID
from .errors import CouplerConnectError, ModbusIOError
from .types import MAX_ADDRESS, Coil

logger = logging.getLogger(__name__)

# Modbus function 0x02 allows at most 2000 inputs per request
MAX_READ_COUNT = 2000


class DiscreteInputTransport(Protocol):
    """What a SignalDevice needs from a connected Modbus client."""

    def read_discrete_inputs(self, address: int, count: int) -> list[Coil]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class TransportConfig:
    """Connection parameters fixed when the transport is opened."""

    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    port: int = DEFAULT_PORT
    unit_id: int = DEFAULT_UNIT_ID

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")


class ModbusTransport:
    """
    Connected Modbus TCP client reading discrete inputs from one coupler.

    Owns its pymodbus client exclusively. Reads are blocking and never retried;
    a failure is raised as ModbusIOError immediately.

    ``connect_timeout`` is passed to pymodbus as its only timeout, so it bounds
    each read request as well as the initial connect.
    """

    def __init__(self, client: ModbusTcpClient, address: str, config: TransportConfig) -> None:
        self._client: ModbusTcpClient | None = client
        self._address = address
        self._config = config

    @classmethod
    def connect(cls, address: str, config: TransportConfig | None = None) -> "ModbusTransport":
        """Open a connection to ``address``; raise CouplerConnectError if it cannot be made in time."""
        config = config or TransportConfig()
        client = ModbusTcpClient(
            host=address,
            port=config.port,
            timeout=config.connect_timeout,
            retries=0,
        )
        try:
            connected = client.connect()
        except PymodbusException as e:
            client.close()
            raise CouplerConnectError(address, config.port, config.connect_timeout, cause=e) from e
        if not connected:
            client.close()
            raise CouplerConnectError(address, config.port, config.connect_timeout)
        logger.debug("Connected to coupler %s:%d", address, config.port)
        return cls(client, address, config)

    @property
    def address(self) -> str:
        return self._address

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._client is None

    def read_discrete_inputs(self, address: int, count: int = 1) -> list[Coil]:
        """Read ``count`` discrete inputs starting at ``address``; one Coil per input."""
        if not 0 <= address <= MAX_ADDRESS:
            raise ValueError(f"address must be in 0..{MAX_ADDRESS}, got {address}")
        if not 1 <= count <= MAX_READ_COUNT or address + count - 1 > MAX_ADDRESS:
            raise ValueError(f"count {count} out of range for address {address}")
        if self._client is None:
            raise ModbusIOError("Transport is closed", address=address, count=count)

        logger.debug("read_discrete_inputs address=%d count=%d", address, count)
        try:
            rr = self._client.read_discrete_inputs(address, count=count, device_id=self._config.unit_id)
        except PymodbusException as e:
            raise ModbusIOError(str(e), address=address, count=count, cause=e) from e

        if rr.isError():
            raise ModbusIOError(
                str(rr),
                address=address,
                count=count,
                cause=getattr(rr, "exception", None),
            )
        bits = getattr(rr, "bits", None)
        # pymodbus pads bit responses to a whole byte
        if not bits or len(bits) < count:
            raise ModbusIOError("Short bit response", address=address, count=count)
        return [Coil.from_bit(bool(b)) for b in bits[:count]]

    def close(self) -> None:
        """Close the TCP connection. Safe to call more than once."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Error closing Modbus client: %s", e)
            self._client = None
            logger.debug("Closed connection to coupler %s", self._address)

    def __enter__(self) -> "ModbusTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
