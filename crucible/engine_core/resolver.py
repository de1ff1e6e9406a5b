"""
Merge Resolver - Decides what happens when a dragged token is released.

Outcomes of a single release (mutually exclusive):
- NONE: nothing within the merge radius
- MERGED: the pair has a recipe; sources are replaced by the outputs
- EXPLODED: a merge whose recipe gives back one of its inputs
- REJECTED: the pair has no recipe; both shake, then bounce apart

Tie-break: the FIRST token in table order within the merge radius is the
target, not the nearest one. Only one target is ever considered.

Timed feedback goes through the Scheduler. Every timer callback
re-validates the tokens it touches, so a token removed before its timer
fires is neither moved nor resurrected. A token the user is holding is
not moved either; the gesture engine keeps `held_id` current.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import itertools
import logging
import math

from ..config import ResolverConfig
from .catalog import RecipeCatalog
from .discovery import DiscoverySet
from .events import EngineEvent, EventEmitter, EventType
from .scheduler import Scheduler
from .state import TableState, Token, TokenStatus

logger = logging.getLogger(__name__)


class OutcomeType(Enum):
    """Result of a release."""
    NONE = "none"
    MERGED = "merged"
    EXPLODED = "exploded"
    REJECTED = "rejected"
    DISCARDED = "discarded"


@dataclass
class MergeOutcome:
    """
    What a release did.

    For MERGED/EXPLODED, `created` holds the output tokens at the midpoint
    (their positions before any bounce-apart).
    """
    outcome: OutcomeType
    source_ids: list[str] = field(default_factory=list)
    created: list[Token] = field(default_factory=list)
    discovered: list[str] = field(default_factory=list)
    midpoint: tuple[float, float] | None = None
    events: list[EngineEvent] = field(default_factory=list)

    @property
    def changed_table(self) -> bool:
        return self.outcome in {OutcomeType.MERGED, OutcomeType.EXPLODED, OutcomeType.DISCARDED}


@dataclass
class Flash:
    """The currently visible success flash."""
    flash_id: int
    x: float
    y: float


def distance(a: Token, b: Token) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def unit_vector(dx: float, dy: float) -> tuple[float, float]:
    """Normalize (dx, dy); coincident points get (1, 0)."""
    length = math.hypot(dx, dy)
    if length == 0:
        return 1.0, 0.0
    return dx / length, dy / length


def bounce_positions(
    midpoint: tuple[float, float],
    count: int,
    radius: float,
) -> list[tuple[float, float]]:
    """Resting positions of `count` products spread around the midpoint."""
    mx, my = midpoint
    return [
        (
            mx + math.cos(2 * math.pi * idx / count) * radius,
            my + math.sin(2 * math.pi * idx / count) * radius,
        )
        for idx in range(count)
    ]


class MergeResolver:
    """
    Resolves releases against the recipe catalog.

    Stateless apart from the visible flash, the held token and the
    generation stamps of pending shakes and pushes; the table and discovery set hold everything else.
    """

    def __init__(
        self,
        table: TableState,
        discovery: DiscoverySet,
        catalog: RecipeCatalog,
        scheduler: Scheduler,
        config: ResolverConfig | None = None,
        emitter: EventEmitter | None = None,
    ):
        self.table = table
        self.discovery = discovery
        self.catalog = catalog
        self.scheduler = scheduler
        self.config = config or ResolverConfig()
        self.emitter = emitter or EventEmitter()

        self.held_id: str | None = None
        self.flash: Flash | None = None
        self._flash_ids = itertools.count(1)
        self._blast_generation = itertools.count(1)
        self._push_stamps: dict[str, int] = {}
        self._reject_generation = itertools.count(1)
        self._shake_stamps: dict[str, int] = {}

    # =========================================================================
    # Proximity
    # =========================================================================

    def find_target(self, dragged: Token) -> Token | None:
        """First token in table order within the merge radius."""
        for token in self.table.tokens:
            if token.id == dragged.id:
                continue
            if distance(token, dragged) < self.config.merge_radius:
                return token
        return None

    def update_reactive(self, dragged_id: str) -> Token | None:
        """
        Refresh the reactive marker while dragging.

        Exactly the dragged token and its target are REACTIVE when the pair
        has a recipe; otherwise no token is.
        """
        dragged = self.table.get(dragged_id)
        target = self.find_target(dragged) if dragged else None
        if dragged is None or target is None or not self.catalog.has_recipe(dragged.name, target.name):
            self.clear_reactive()
            return None

        pair = {dragged.id, target.id}
        stale = [tid for tid in self.table.with_status(TokenStatus.REACTIVE) if tid not in pair]
        self.table.clear_status(TokenStatus.REACTIVE, stale)
        self.table.set_status(pair, TokenStatus.REACTIVE)
        return target

    def clear_reactive(self):
        self.table.clear_status(TokenStatus.REACTIVE)

    # =========================================================================
    # Release
    # =========================================================================

    def release(self, dragged_id: str) -> MergeOutcome:
        """Resolve a release of `dragged_id` at its current position."""
        self.clear_reactive()
        dragged = self.table.get(dragged_id)
        if dragged is None:
            return MergeOutcome(outcome=OutcomeType.NONE)

        target = self.find_target(dragged)
        if target is None:
            return MergeOutcome(outcome=OutcomeType.NONE, source_ids=[dragged.id])

        outputs = self.catalog.resolve(dragged.name, target.name)
        if outputs is None:
            return self._reject(dragged, target)
        return self._merge(dragged, target, outputs)

    def discard(self, token_id: str) -> MergeOutcome:
        """Drop a token back onto the palette."""
        self.clear_reactive()
        if token_id not in self.table:
            return MergeOutcome(outcome=OutcomeType.NONE)
        self.table.remove([token_id])
        event = self.emitter.emit(EngineEvent(EventType.DISCARDED, token_ids=[token_id]))
        return MergeOutcome(outcome=OutcomeType.DISCARDED, source_ids=[token_id], events=[event])

    def _merge(self, dragged: Token, target: Token, outputs: tuple[str, ...]) -> MergeOutcome:
        explosive = self.catalog.is_explosive(dragged.name, target.name)
        mid = ((dragged.x + target.x) / 2, (dragged.y + target.y) / 2)

        self.table.remove([dragged.id, target.id])
        created = [self.table.spawn(name, mid[0], mid[1]) for name in outputs]
        discovered = self.discovery.add_all(outputs)

        logger.debug(
            "Merged %s + %s -> %s", dragged.name, target.name, ", ".join(outputs),
        )

        events = [
            self.emitter.emit(EngineEvent(
                EventType.EXPLODED if explosive else EventType.MERGED,
                token_ids=[t.id for t in created],
                names=list(outputs),
                x=mid[0],
                y=mid[1],
                params={"sources": [dragged.id, target.id]},
            )),
        ]
        if discovered:
            events.append(self.emitter.emit(EngineEvent(EventType.DISCOVERED, names=discovered)))
        events.append(self._start_flash(mid, [t.id for t in created] if explosive else []))

        created_ids = [t.id for t in created]
        if explosive:
            self.table.set_status(created_ids, TokenStatus.EXPLODING)
            events.extend(self._blast(mid, created_ids))
        if len(created) > 1:
            self.scheduler.call_later(
                self.config.bounce_delay,
                lambda: self._bounce_apart(mid, created_ids),
            )

        return MergeOutcome(
            outcome=OutcomeType.EXPLODED if explosive else OutcomeType.MERGED,
            source_ids=[dragged.id, target.id],
            created=created,
            discovered=discovered,
            midpoint=mid,
            events=events,
        )

    def _reject(self, dragged: Token, target: Token) -> MergeOutcome:
        """Shake both now; push them apart symmetrically after a delay."""
        ux, uy = unit_vector(dragged.x - target.x, dragged.y - target.y)
        push_x = ux * self.config.reject_push
        push_y = uy * self.config.reject_push
        pair = [dragged.id, target.id]
        generation = next(self._reject_generation)
        for token_id in pair:
            self._shake_stamps[token_id] = generation
        self.table.set_status(pair, TokenStatus.SHAKING)

        def separate():
            moved = []
            for token_id, sign in ((dragged.id, 1), (target.id, -1)):
                # A newer rejection owns the shake from here on.
                if self._shake_stamps.get(token_id) == generation:
                    del self._shake_stamps[token_id]
                    self.table.clear_status(TokenStatus.SHAKING, [token_id])
                token = self.table.get(token_id)
                if token is None or token_id == self.held_id:
                    continue
                self.table.move(token_id, token.x + sign * push_x, token.y + sign * push_y)
                moved.append(token_id)
            if moved:
                self.emitter.emit(EngineEvent(EventType.SEPARATED, token_ids=moved))

        self.scheduler.call_later(self.config.reject_delay, separate)

        event = self.emitter.emit(EngineEvent(
            EventType.REJECTED,
            token_ids=pair,
            names=[dragged.name, target.name],
            duration=self.config.reject_delay,
        ))
        return MergeOutcome(outcome=OutcomeType.REJECTED, source_ids=pair, events=[event])

    # =========================================================================
    # Timed feedback
    # =========================================================================

    def _start_flash(self, mid: tuple[float, float], exploding_ids: list[str]) -> EngineEvent:
        flash = Flash(flash_id=next(self._flash_ids), x=mid[0], y=mid[1])
        self.flash = flash

        def clear():
            self.table.clear_status(TokenStatus.EXPLODING, exploding_ids)
            if self.flash is not None and self.flash.flash_id == flash.flash_id:
                self.flash = None
                self.emitter.emit(EngineEvent(EventType.FLASH_CLEARED, x=flash.x, y=flash.y))

        self.scheduler.call_later(self.config.flash_duration, clear)
        return self.emitter.emit(EngineEvent(
            EventType.SUCCESS_FLASH,
            x=flash.x,
            y=flash.y,
            duration=self.config.flash_duration,
            params={"flash_id": flash.flash_id},
        ))

    def _bounce_apart(self, mid: tuple[float, float], created_ids: list[str]):
        positions = bounce_positions(mid, len(created_ids), self.config.bounce_radius)
        moved = []
        for token_id, (x, y) in zip(created_ids, positions):
            if token_id in self.table and token_id != self.held_id:
                self.table.move(token_id, x, y)
                moved.append(token_id)
        if moved:
            self.emitter.emit(EngineEvent(EventType.BOUNCED, token_ids=moved, x=mid[0], y=mid[1]))

    def _blast(self, mid: tuple[float, float], created_ids: list[str]) -> list[EngineEvent]:
        """
        Push bystanders out of the blast radius.

        Pushed tokens are only moved, never resolved: an explosion cannot
        cause another merge. A later blast re-stamps a token, so only the
        newest pending push for it applies.
        """
        generation = next(self._blast_generation)
        mx, my = mid
        caught = [
            t.id for t in self.table.tokens
            if t.id not in created_ids
            and math.hypot(t.x - mx, t.y - my) < self.config.blast_radius
        ]
        if not caught:
            return []

        for token_id in caught:
            self._push_stamps[token_id] = generation
        self.table.set_status(caught, TokenStatus.PUSHED_OUT)

        def push():
            pushed = []
            for token_id in caught:
                if self._push_stamps.get(token_id) != generation:
                    continue
                del self._push_stamps[token_id]
                token = self.table.get(token_id)
                if token is None:
                    continue
                self.table.clear_status(TokenStatus.PUSHED_OUT, [token_id])
                if token_id == self.held_id:
                    continue
                ux, uy = unit_vector(token.x - mx, token.y - my)
                self.table.move(
                    token_id,
                    token.x + ux * self.config.blast_push,
                    token.y + uy * self.config.blast_push,
                )
                pushed.append(token_id)
            if pushed:
                self.emitter.emit(EngineEvent(EventType.PUSHED_OUT, token_ids=pushed, x=mx, y=my))

        self.scheduler.call_later(self.config.bounce_delay, push)
        return [self.emitter.emit(EngineEvent(
            EventType.PUSHED_OUT,
            token_ids=caught,
            x=mx,
            y=my,
            duration=self.config.bounce_delay,
        ))]
