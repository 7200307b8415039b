"""SignalRegistry: ordered signals built once from configuration, O(1) lookup by name."""

import logging
from collections.abc import Iterable, Iterator

from .errors import DuplicateSignalError, UnknownSignalError
from .types import Signal, SignalEntry

logger = logging.getLogger(__name__)


class SignalRegistry:
    """
    Signals in configuration order, indexed by exact (case-sensitive) name.

    Explicitly configured names must be unique. Names that came from the
    defaulting step may repeat; lookup then returns the first one.
    """

    def __init__(self, entries: Iterable[SignalEntry], *, location: str | None = None) -> None:
        self._signals: list[Signal] = []
        self._index: dict[str, int] = {}
        explicit: set[str] = set()

        for entry in entries:
            if not entry.is_defaulted("name"):
                if entry.name in explicit:
                    raise DuplicateSignalError(entry.name, location=location)
                explicit.add(entry.name)
            if entry.defaulted:
                logger.debug(
                    "Signal %r at offset %d uses defaults for: %s",
                    entry.name,
                    entry.offset,
                    ", ".join(sorted(entry.defaulted)),
                )
            self._index.setdefault(entry.name, len(self._signals))
            self._signals.append(Signal.from_entry(entry))

        logger.debug("SignalRegistry built: %d signals", len(self._signals))

    def lookup(self, name: str) -> Signal:
        """Return the first Signal named exactly ``name``; raise UnknownSignalError otherwise."""
        try:
            return self._signals[self._index[name]]
        except KeyError:
            raise UnknownSignalError(name) from None

    def names(self) -> list[str]:
        return [s.name for s in self._signals]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Signal]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)
