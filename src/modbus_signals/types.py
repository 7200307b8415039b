"""Core data model: coil state, configured signal entries, live signals and refresh results."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

from .errors import ModbusIOError

MAX_ADDRESS = 0xFFFF


class Coil(str, Enum):
    """State of a single discrete input as reported by the transport."""

    ON = "on"
    OFF = "off"

    @classmethod
    def from_bit(cls, bit: bool) -> "Coil":
        return cls.ON if bit else cls.OFF


@dataclass(frozen=True)
class SignalEntry:
    """
    One signal record from configuration after typed deserialization.

    ``defaulted`` names the fields ("name", "type", "offset") that were absent or
    invalid and fell back to their sentinel value.
    """

    name: str
    kind: str
    offset: int
    defaulted: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not 0 <= self.offset <= MAX_ADDRESS:
            raise ValueError(f"offset must be in 0..{MAX_ADDRESS}, got {self.offset}")

    def is_defaulted(self, field_name: str) -> bool:
        return field_name in self.defaulted


class Signal:
    """A named discrete input at a fixed coupler address, with its last observed status."""

    __slots__ = ("_name", "_kind", "_address", "_status", "_defaulted")

    def __init__(self, name: str, kind: str, address: int, *, defaulted: frozenset[str] = frozenset()) -> None:
        if not 0 <= address <= MAX_ADDRESS:
            raise ValueError(f"address must be in 0..{MAX_ADDRESS}, got {address}")
        self._name = name
        self._kind = kind
        self._address = address
        self._status = False
        self._defaulted = defaulted

    @classmethod
    def from_entry(cls, entry: SignalEntry) -> "Signal":
        return cls(entry.name, entry.kind, entry.offset, defaulted=entry.defaulted)

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def address(self) -> int:
        return self._address

    @property
    def status(self) -> bool:
        return self._status

    @property
    def defaulted(self) -> frozenset[str]:
        """Configuration fields of this signal that fell back to a default."""
        return self._defaulted

    def set_status(self, value: bool) -> None:
        self._status = bool(value)

    def as_text(self) -> str:
        return "ON" if self._status else "OFF"

    def __repr__(self) -> str:
        return (
            f"Signal(name={self._name!r}, kind={self._kind!r}, "
            f"address={self._address}, status={self.as_text()})"
        )


class RefreshStatus(str, Enum):
    """Overall result of a bulk refresh."""

    COMPLETE = "complete"  # every signal read (or nothing to read)
    PARTIAL = "partial"  # some reads failed
    FAILED = "failed"  # every read failed; transport is likely unusable


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of reading one signal: a value, or the error that prevented it."""

    name: str
    address: int
    value: bool | None = None
    error: ModbusIOError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_text(self) -> str:
        if self.error is not None:
            return f"ERROR ({self.error})"
        return "ON" if self.value else "OFF"


class RefreshReport(Mapping[str, RefreshOutcome]):
    """
    Ordered per-signal outcomes of a bulk refresh, keyed by signal name.

    Iteration follows registry order. When sentinel names repeat, only the first
    signal with that name is addressable by key; ``outcomes`` holds all of them
    and ``readings``, ``errors`` and ``failures`` are built from every outcome.
    """

    def __init__(self, outcomes: list[RefreshOutcome]) -> None:
        self.outcomes: tuple[RefreshOutcome, ...] = tuple(outcomes)
        self._by_name: dict[str, RefreshOutcome] = {}
        for outcome in self.outcomes:
            self._by_name.setdefault(outcome.name, outcome)

    def __getitem__(self, name: str) -> RefreshOutcome:
        return self._by_name[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    @property
    def status(self) -> RefreshStatus:
        failed = sum(1 for o in self.outcomes if not o.ok)
        if failed == 0:
            return RefreshStatus.COMPLETE
        if failed == len(self.outcomes):
            return RefreshStatus.FAILED
        return RefreshStatus.PARTIAL

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.COMPLETE

    @property
    def readings(self) -> dict[str, bool]:
        """Name -> status for every signal that was read successfully."""
        out: dict[str, bool] = {}
        for o in self.outcomes:
            if o.ok:
                out.setdefault(o.name, bool(o.value))
        return out

    @property
    def errors(self) -> dict[str, ModbusIOError]:
        """Name -> first error for every signal name with a failed read."""
        out: dict[str, ModbusIOError] = {}
        for o in self.failures:
            out.setdefault(o.name, o.error)
        return out

    @property
    def failures(self) -> tuple[RefreshOutcome, ...]:
        """Every failed outcome, in registry order."""
        return tuple(o for o in self.outcomes if o.error is not None)

    def raise_for_errors(self) -> None:
        """Raise the first recorded read error, if any."""
        for o in self.outcomes:
            if o.error is not None:
                raise o.error

    def __repr__(self) -> str:
        return f"RefreshReport(status={self.status.value}, signals={len(self.outcomes)}, failed={len(self.failures)})"
