"""
Discovery Set - Ordered, append-only record of known element names.

Insertion order is first-discovery order; the palette pages through names
in this order. The set never shrinks during a session except through the
explicit wipe() and restore() operations, and always contains the
primitives.
"""

from __future__ import annotations
from typing import Callable, Iterable, Iterator
import logging

from ..config import PRIMITIVES

logger = logging.getLogger(__name__)


class DiscoverySet:
    """
    Known element names in discovery order.

    Listeners are called with the list of newly added names (empty list on
    wipe/restore, which are not discoveries).
    """

    def __init__(self, names: Iterable[str] | None = None):
        self._names: list[str] = []
        self._index: set[str] = set()
        self._listeners: list[Callable[[list[str]], None]] = []
        self._reset_to(names or ())

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    @property
    def names(self) -> list[str]:
        """Copy of the names in discovery order."""
        return list(self._names)

    def subscribe(self, listener: Callable[[list[str]], None]):
        self._listeners.append(listener)

    def add(self, name: str) -> bool:
        """Add a name. Returns True if it was not known before."""
        return bool(self.add_all([name]))

    def add_all(self, names: Iterable[str]) -> list[str]:
        """
        Add names in the given order.

        Returns the newly discovered names, in that same order.
        """
        added = []
        for name in names:
            if name not in self._index:
                self._names.append(name)
                self._index.add(name)
                added.append(name)
        if added:
            logger.info("Discovered: %s", ", ".join(added))
            self._notify(added)
        return added

    def merge(self, names: Iterable[str]) -> list[str]:
        """
        Union with another ordering.

        Local order is kept; names only present in `names` are appended in
        their order there.
        """
        return self.add_all(names)

    def wipe(self):
        """Forget everything except the primitives."""
        self._reset_to(())
        self._notify([])

    def restore(self, names: Iterable[str]):
        """Replace the set with a superseding snapshot."""
        self._reset_to(names)
        self._notify([])

    def _reset_to(self, names: Iterable[str]):
        # Snapshot order wins; missing primitives go in front.
        names = list(names)
        missing = [p for p in PRIMITIVES if p not in names]
        self._names = []
        self._index = set()
        for name in (*missing, *names):
            if name not in self._index:
                self._names.append(name)
                self._index.add(name)

    def _notify(self, added: list[str]):
        for listener in self._listeners:
            listener(added)
