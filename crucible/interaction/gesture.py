"""
Gesture Engine - Classifies pointer input and drives table and palette.

States:
    IDLE             Nothing captured
    PENDING_PALETTE  Pressed on the palette; direction not decided yet
    DRAGGING_TOKEN   Dragging an existing token
    DRAGGING_SPAWN   Dragging a token just spawned from the palette
    PALETTE_SWIPING  Horizontal palette swipe in progress

Transitions:
    IDLE --down on token--> DRAGGING_TOKEN
    IDLE --down on palette--> PENDING_PALETTE
    PENDING_PALETTE --steep upward move--> DRAGGING_SPAWN
    PENDING_PALETTE --horizontal move--> PALETTE_SWIPING
    PENDING_PALETTE --any move past deadzone, single page--> DRAGGING_SPAWN
    any --up / cancel--> IDLE

Only one pointer is captured at a time: a press while not IDLE is ignored.
Coordinates are in the table's frame; the palette is the bottom strip of
the viewport.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging

from ..config import GestureConfig
from ..engine_core.events import EngineEvent, EventEmitter, EventType
from ..engine_core.resolver import MergeOutcome, MergeResolver, OutcomeType
from ..engine_core.state import TableState
from ..palette.paginator import Paginator

logger = logging.getLogger(__name__)


class GestureState(Enum):
    """State of the gesture machine."""
    IDLE = "idle"
    PENDING_PALETTE = "pending_palette"
    DRAGGING_TOKEN = "dragging_token"
    DRAGGING_SPAWN = "dragging_spawn"
    PALETTE_SWIPING = "palette_swiping"


class Transition(Enum):
    """What a single pointer call did."""
    IGNORED = "ignored"
    DRAG = "drag"
    PRESS_PALETTE = "press_palette"
    SPAWN = "spawn"
    SWIPE = "swipe"
    MOVE = "move"
    TAP = "tap"
    PAGE = "page"
    SNAP_BACK = "snap_back"
    RELEASE = "release"
    DISCARD = "discard"
    CANCEL = "cancel"


@dataclass
class GestureResult:
    """
    Result of processing one pointer event.

    `outcome` is set on releases that reached the merge resolver or
    discarded a token.
    """
    transition: Transition
    state: GestureState
    token_id: str | None = None
    outcome: MergeOutcome | None = None
    page_changed: bool = False

    @property
    def changed_table(self) -> bool:
        if self.transition in {Transition.SPAWN, Transition.DRAG, Transition.MOVE}:
            return True
        return self.outcome is not None and self.outcome.changed_table


class GestureEngine:
    """
    The gesture state machine.

    Usage:
        engine = GestureEngine(table, resolver, paginator)
        engine.pointer_down(100, 200)
        engine.pointer_move(130, 210)
        result = engine.pointer_up(130, 210)
    """

    def __init__(
        self,
        table: TableState,
        resolver: MergeResolver,
        paginator: Paginator,
        config: GestureConfig | None = None,
        width: float = 360.0,
        height: float = 640.0,
        emitter: EventEmitter | None = None,
    ):
        self.table = table
        self.resolver = resolver
        self.paginator = paginator
        self.config = config or GestureConfig()
        self.width = width
        self.height = height
        self.emitter = emitter or resolver.emitter

        self.state = GestureState.IDLE
        self.dragging_id: str | None = None
        self._offset = (0.0, 0.0)
        self._start = (0.0, 0.0)
        self._candidate: str | None = None

        self.paginator.set_width(width)

    # =========================================================================
    # Geometry
    # =========================================================================

    @property
    def palette_top(self) -> float:
        return self.height - self.config.palette_height

    def in_palette(self, x: float, y: float) -> bool:
        return y > self.palette_top

    def resize(self, width: float, height: float) -> bool:
        """Viewport change. Returns True if the active palette page moved."""
        self.width = width
        self.height = height
        return self.paginator.set_width(width)

    def key(self, key: str) -> bool:
        """Filter input for the palette."""
        changed = self.paginator.key(key)
        if changed:
            self.emitter.emit(EngineEvent(
                EventType.FILTER_CHANGED,
                names=self.paginator.filtered,
                params={"prefix": self.paginator.filter_prefix},
            ))
        return changed

    def _result(self, transition: Transition, **kwargs) -> GestureResult:
        return GestureResult(transition=transition, state=self.state, **kwargs)

    # =========================================================================
    # Pointer down
    # =========================================================================

    def pointer_down(self, x: float, y: float) -> GestureResult:
        """Press with hit testing: palette strip first, then the topmost token."""
        if self.state != GestureState.IDLE:
            return self._result(Transition.IGNORED)

        if self.in_palette(x, y):
            name = self.paginator.entry_at(x, y, self.palette_top, self.config.palette_height)
            return self.press_palette(x, y, name)

        token = self.table.token_at(x, y)
        if token is None:
            return self._result(Transition.IGNORED)
        return self.press_token(token.id, x, y)

    def press_token(self, token_id: str, x: float, y: float) -> GestureResult:
        """Start dragging an existing token; it tracks the pointer without snapping."""
        if self.state != GestureState.IDLE:
            return self._result(Transition.IGNORED)
        token = self.table.get(token_id)
        if token is None:
            return self._result(Transition.IGNORED)

        self._offset = (x - token.x, y - token.y)
        self.table.bring_to_front(token_id)
        self.dragging_id = token_id
        self.resolver.held_id = token_id
        self.state = GestureState.DRAGGING_TOKEN
        return self._result(Transition.DRAG, token_id=token_id)

    def press_palette(self, x: float, y: float, name: str | None) -> GestureResult:
        """Start an undecided palette gesture; `name` is the entry under the pointer."""
        if self.state != GestureState.IDLE:
            return self._result(Transition.IGNORED)
        self._start = (x, y)
        self._candidate = name
        self.state = GestureState.PENDING_PALETTE
        return self._result(Transition.PRESS_PALETTE)

    # =========================================================================
    # Pointer move
    # =========================================================================

    def pointer_move(self, x: float, y: float) -> GestureResult:
        if self.state in {GestureState.DRAGGING_TOKEN, GestureState.DRAGGING_SPAWN}:
            return self._drag_to(x, y)

        if self.state == GestureState.PENDING_PALETTE:
            return self._decide(x, y)

        if self.state == GestureState.PALETTE_SWIPING:
            self.paginator.translate = x - self._start[0]
            return self._result(Transition.SWIPE)

        return self._result(Transition.IGNORED)

    def _drag_to(self, x: float, y: float) -> GestureResult:
        token_id = self.dragging_id
        if token_id is None or token_id not in self.table:
            # Dragged token vanished under us (e.g. superseded); drop the capture.
            self._reset()
            return self._result(Transition.CANCEL)
        self.table.move(token_id, x - self._offset[0], y - self._offset[1])
        self.resolver.update_reactive(token_id)
        return self._result(Transition.MOVE, token_id=token_id)

    def _decide(self, x: float, y: float) -> GestureResult:
        dx = x - self._start[0]
        dy = y - self._start[1]

        if self.paginator.page_count == 1:
            if self._candidate and max(abs(dx), abs(dy)) > self.config.single_page_deadzone:
                return self._commit_spawn(x, y)
            return self._result(Transition.IGNORED)

        steep_upward = -dy > self.config.spawn_threshold and abs(dy) > abs(dx)
        if steep_upward and self._candidate:
            return self._commit_spawn(x, y)

        if abs(dx) > self.config.swipe_threshold:
            self.state = GestureState.PALETTE_SWIPING
            self.paginator.translate = dx
            return self._result(Transition.SWIPE)

        return self._result(Transition.IGNORED)

    def _commit_spawn(self, x: float, y: float) -> GestureResult:
        token = self.table.spawn(self._candidate, x, y)
        self.dragging_id = token.id
        self.resolver.held_id = token.id
        self._offset = (0.0, 0.0)
        self.state = GestureState.DRAGGING_SPAWN
        self.emitter.emit(EngineEvent(EventType.SPAWNED, token_ids=[token.id], names=[token.name], x=x, y=y))
        logger.debug("Spawned %s as %s from palette", token.name, token.id)
        return self._result(Transition.SPAWN, token_id=token.id)

    # =========================================================================
    # Pointer up / cancel
    # =========================================================================

    def pointer_up(self, x: float, y: float) -> GestureResult:
        """Finish the gesture. Always returns to IDLE."""
        state = self.state
        try:
            if state in {GestureState.DRAGGING_TOKEN, GestureState.DRAGGING_SPAWN}:
                return self._release_drag(x, y)
            if state == GestureState.PALETTE_SWIPING:
                return self._release_swipe(x)
            if state == GestureState.PENDING_PALETTE:
                return GestureResult(transition=Transition.TAP, state=GestureState.IDLE)
            return self._result(Transition.IGNORED)
        finally:
            self._reset()

    def _release_drag(self, x: float, y: float) -> GestureResult:
        token_id = self.dragging_id
        if token_id is None or token_id not in self.table:
            self.resolver.clear_reactive()
            return GestureResult(transition=Transition.CANCEL, state=GestureState.IDLE)

        self.table.move(token_id, x - self._offset[0], y - self._offset[1])

        if self.in_palette(x, y):
            outcome = self.resolver.discard(token_id)
            return GestureResult(
                transition=Transition.DISCARD,
                state=GestureState.IDLE,
                token_id=token_id,
                outcome=outcome,
            )

        outcome = self.resolver.release(token_id)
        return GestureResult(
            transition=Transition.RELEASE,
            state=GestureState.IDLE,
            token_id=token_id,
            outcome=outcome,
        )

    def _release_swipe(self, x: float) -> GestureResult:
        dx = x - self._start[0]
        threshold = self.config.page_release_threshold
        changed = False
        if dx > threshold:
            changed = self.paginator.retreat()
        elif dx < -threshold:
            changed = self.paginator.advance()
        self.paginator.translate = 0.0

        if changed:
            self.emitter.emit(EngineEvent(
                EventType.PAGE_CHANGED,
                params={"page": self.paginator.active_page, "page_count": self.paginator.page_count},
            ))
        return GestureResult(
            transition=Transition.PAGE if changed else Transition.SNAP_BACK,
            state=GestureState.IDLE,
            page_changed=changed,
        )

    def pointer_cancel(self) -> GestureResult:
        """
        Capture lost: an implicit release with no merge attempted.

        A dragged token stays where it is; a swipe snaps back.
        """
        token_id = self.dragging_id
        if self.state == GestureState.IDLE:
            return self._result(Transition.IGNORED)
        self.resolver.clear_reactive()
        self.paginator.translate = 0.0
        self._reset()
        return GestureResult(
            transition=Transition.CANCEL,
            state=GestureState.IDLE,
            token_id=token_id,
            outcome=MergeOutcome(outcome=OutcomeType.NONE),
        )

    def _reset(self):
        self.state = GestureState.IDLE
        self.dragging_id = None
        self.resolver.held_id = None
        self._offset = (0.0, 0.0)
        self._start = (0.0, 0.0)
        self._candidate = None
