"""
Table State - The live tokens on the interaction surface.

Design principles:
- Single owner: only TableState creates, moves and destroys tokens
- Total: every mutation succeeds; unknown ids are silently ignored
- Ordered: sequence order is paint/hit-test order (last = topmost)
- Serializable: snapshot() produces the persisted {id, name, x, y} records
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable
import re


class TokenStatus(Enum):
    """Visual status of a token. One tag per token, never a combination."""
    IDLE = "idle"
    REACTIVE = "reactive"  # Hovering over a partner it can combine with
    SHAKING = "shaking"  # Rejected pair, waiting to bounce apart
    EXPLODING = "exploding"  # Product of an explosive recipe
    PUSHED_OUT = "pushed_out"  # Caught in an explosion's blast


@dataclass
class Token:
    """
    A positioned instance of an element.

    Note: status is display metadata only and is not persisted.
    """
    id: str
    name: str
    x: float
    y: float
    status: TokenStatus = TokenStatus.IDLE

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "x": self.x, "y": self.y}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Token:
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            x=float(record["x"]),
            y=float(record["y"]),
        )


_ID_SUFFIX = re.compile(r"(\d+)$")


def id_number(token_id: str) -> int | None:
    """Numeric suffix of a token id ("el-12" -> 12), None if there is none."""
    match = _ID_SUFFIX.search(token_id)
    return int(match.group(1)) if match else None


@dataclass
class IdAllocator:
    """
    Monotonic token id source.

    restore_past() advances the counter beyond every id in a snapshot so
    ids stay unique across a save/restore cycle.
    """
    prefix: str = "el-"
    counter: int = 0

    def allocate(self) -> str:
        self.counter += 1
        return f"{self.prefix}{self.counter}"

    def restore_past(self, ids: Iterable[str]):
        for token_id in ids:
            number = id_number(token_id)
            if number is not None and number > self.counter:
                self.counter = number


@dataclass
class TableState:
    """
    Authoritative sequence of live tokens.

    Every mutation bumps `revision` and notifies listeners, which is how the
    session knows to persist the table.
    """
    half_width: float = 40.0
    half_height: float = 32.0
    allocator: IdAllocator = field(default_factory=IdAllocator)
    revision: int = 0

    _tokens: list[Token] = field(default_factory=list)
    _listeners: list[Callable[[], None]] = field(default_factory=list)

    @property
    def tokens(self) -> list[Token]:
        """Tokens in paint order (copy of the sequence, same Token objects)."""
        return list(self._tokens)

    @property
    def ids(self) -> list[str]:
        return [t.id for t in self._tokens]

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token_id: object) -> bool:
        return any(t.id == token_id for t in self._tokens)

    def get(self, token_id: str) -> Token | None:
        for token in self._tokens:
            if token.id == token_id:
                return token
        return None

    def subscribe(self, listener: Callable[[], None]):
        self._listeners.append(listener)

    # =========================================================================
    # Mutations
    # =========================================================================

    def spawn(self, name: str, x: float, y: float) -> Token:
        """Create a token on top of everything else."""
        token = Token(id=self.allocator.allocate(), name=name, x=x, y=y)
        self._tokens.append(token)
        self._changed()
        return token

    def move(self, token_id: str, x: float, y: float):
        token = self.get(token_id)
        if token is None:
            return
        token.x = x
        token.y = y
        self._changed()

    def bring_to_front(self, token_id: str):
        """Move a token to the top, keeping everyone else's relative order."""
        for idx, token in enumerate(self._tokens):
            if token.id == token_id:
                if idx != len(self._tokens) - 1:
                    self._tokens.append(self._tokens.pop(idx))
                    self._changed()
                return

    def remove(self, ids: Iterable[str]):
        doomed = set(ids)
        kept = [t for t in self._tokens if t.id not in doomed]
        if len(kept) != len(self._tokens):
            self._tokens = kept
            self._changed()

    def replace_all(self, tokens: Iterable[Token]):
        """Swap in a snapshot and move the id counter past it."""
        self._tokens = list(tokens)
        self.allocator.restore_past(t.id for t in self._tokens)
        self._changed()

    def clear(self):
        self.replace_all([])

    # =========================================================================
    # Display status (does not bump revision: nothing to persist)
    # =========================================================================

    def set_status(self, ids: Iterable[str], status: TokenStatus):
        targets = set(ids)
        for token in self._tokens:
            if token.id in targets:
                token.status = status

    def clear_status(self, status: TokenStatus, ids: Iterable[str] | None = None):
        """Reset tokens carrying `status` back to IDLE (optionally only `ids`)."""
        targets = set(ids) if ids is not None else None
        for token in self._tokens:
            if token.status == status and (targets is None or token.id in targets):
                token.status = TokenStatus.IDLE

    def with_status(self, status: TokenStatus) -> list[str]:
        return [t.id for t in self._tokens if t.status == status]

    # =========================================================================
    # Queries
    # =========================================================================

    def token_at(self, x: float, y: float) -> Token | None:
        """Topmost token whose box contains the point."""
        for token in reversed(self._tokens):
            if abs(x - token.x) <= self.half_width and abs(y - token.y) <= self.half_height:
                return token
        return None

    def snapshot(self) -> list[dict[str, Any]]:
        return [t.to_record() for t in self._tokens]

    def _changed(self):
        self.revision += 1
        for listener in self._listeners:
            listener()
