"""SignalDevice: named discrete inputs on one Modbus TCP coupler, refreshed on demand."""

import logging
import os
import time
from collections.abc import Callable, Iterator
from typing import Any

from .config import DEFAULT_CONNECT_TIMEOUT, load_config, parse_device_config, resolve_config_path
from .errors import CouplerConnectError, ModbusIOError
from .registry import SignalRegistry
from .transport import DiscreteInputTransport, ModbusTransport, TransportConfig
from .types import Coil, RefreshOutcome, RefreshReport, Signal

logger = logging.getLogger(__name__)

TransportFactory = Callable[[str, TransportConfig], DiscreteInputTransport]


class SignalDevice:
    """
    One field device: a coupler address, the transport connected to it, and the
    registry of signals read from it.

    The device owns the transport and closes it in ``close()`` (or on leaving a
    ``with`` block). It is not thread-safe; guard it externally if shared.
    """

    def __init__(
        self,
        device_name: str,
        coupler_address: str,
        transport: DiscreteInputTransport,
        registry: SignalRegistry,
        resource_location: str | None = None,
    ) -> None:
        self._device_name = device_name
        self._coupler_address = coupler_address
        self._transport: DiscreteInputTransport | None = transport
        self._registry = registry
        self._resource_location = resource_location

    @classmethod
    def open(
        cls,
        device_name: str,
        *,
        config_dir: str | os.PathLike[str] | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        transport_factory: TransportFactory | None = None,
    ) -> "SignalDevice":
        """
        Build a device from ``<config_dir>/<device_name>.yaml`` and connect to its coupler.

        Raises ConfigOpenError, ConfigParseError, DuplicateSignalError or
        CouplerConnectError. No partially built device is ever returned.
        """
        path = resolve_config_path(device_name, config_dir)
        tree = load_config(path)
        return cls.from_tree(
            device_name,
            tree,
            location=str(path),
            connect_timeout=connect_timeout,
            transport_factory=transport_factory,
        )

    @classmethod
    def from_tree(
        cls,
        device_name: str,
        tree: Any,
        *,
        location: str | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        transport_factory: TransportFactory | None = None,
    ) -> "SignalDevice":
        """Build a device from an already parsed configuration tree and connect to its coupler."""
        config = parse_device_config(tree, location)
        # Registry first: a bad configuration must not open a connection
        registry = SignalRegistry(config.signals, location=location)

        factory = transport_factory or ModbusTransport.connect
        transport_config = TransportConfig(
            connect_timeout=connect_timeout,
            port=config.port,
            unit_id=config.unit_id,
        )
        try:
            transport = factory(config.coupler, transport_config)
        except CouplerConnectError as e:
            if e.location is None:
                e.location = location
            raise

        # Anything failing from here on must not leak the open connection
        try:
            device = cls(device_name, config.coupler, transport, registry, resource_location=location)
            logger.debug(
                "Device %s ready: coupler=%s signals=%d",
                device_name,
                config.coupler,
                len(device),
            )
        except BaseException:
            transport.close()
            raise
        return device

    @property
    def device_name(self) -> str:
        return self._device_name

    @property
    def coupler_address(self) -> str:
        return self._coupler_address

    @property
    def resource_location(self) -> str | None:
        """Configuration file this device was built from (diagnostics only; never re-read)."""
        return self._resource_location

    @property
    def signals(self) -> tuple[Signal, ...]:
        return tuple(self._registry)

    @property
    def closed(self) -> bool:
        return self._transport is None

    def get_signal(self, name: str) -> Signal:
        """Return the signal named exactly ``name``; raise UnknownSignalError otherwise."""
        return self._registry.lookup(name)

    def _read_bit(self, address: int) -> bool:
        if self._transport is None:
            raise ModbusIOError("Device is closed", address=address, count=1)
        coils = self._transport.read_discrete_inputs(address, 1)
        if not coils:
            raise ModbusIOError("Empty bit response", address=address, count=1)
        return coils[0] is Coil.ON

    def _refresh(self, signal: Signal) -> bool:
        try:
            value = self._read_bit(signal.address)
        except ModbusIOError as e:
            if e.signal is None:
                e.signal = signal.name
            raise
        signal.set_status(value)
        return value

    def read_input(self, address: int) -> bool:
        """Read one discrete input at ``address`` directly, without touching any signal."""
        return self._read_bit(address)

    def refresh_signal(self, name: str) -> bool:
        """
        Read one signal from the coupler, store and return its new status.

        Raises UnknownSignalError for an unknown name and ModbusIOError if the
        read fails; on failure the previous status is kept.
        """
        return self._refresh(self.get_signal(name))

    def refresh_all(self) -> RefreshReport:
        """
        Read every signal in registry order and return a per-signal report.

        A failed read is recorded and the cycle continues; that signal keeps
        its previous status.
        """
        outcomes: list[RefreshOutcome] = []
        for signal in self._registry:
            try:
                value = self._refresh(signal)
            except ModbusIOError as e:
                logger.warning("Refresh of %s (address %d) failed: %s", signal.name, signal.address, e)
                outcomes.append(RefreshOutcome(signal.name, signal.address, error=e))
            else:
                outcomes.append(RefreshOutcome(signal.name, signal.address, value=value))
        return RefreshReport(outcomes)

    def poll_iter(self, interval_s: float) -> Iterator[RefreshReport]:
        """Yield refresh_all() every interval_s seconds indefinitely."""
        while True:
            yield self.refresh_all()
            time.sleep(interval_s)

    def close(self) -> None:
        """Release the transport connection. Safe to call more than once."""
        if self._transport is not None:
            transport, self._transport = self._transport, None
            transport.close()

    def __enter__(self) -> "SignalDevice":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __iter__(self) -> Iterator[Signal]:
        return iter(self._registry)

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def __getitem__(self, name: str) -> Signal:
        return self.get_signal(name)

    def __repr__(self) -> str:
        return (
            f"SignalDevice(name={self._device_name!r}, coupler={self._coupler_address!r}, "
            f"signals={len(self._registry)})"
        )
