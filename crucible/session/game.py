"""
Alchemy Session - One player's sandbox, wired end to end.

The session owns one of everything:
- RecipeCatalog, DiscoverySet, TableState
- Paginator and GestureEngine for input
- MergeResolver for releases
- LocalProgress and ProgressSynchronizer for persistence

Lifecycle:
1. load(): restore local progress (synchronous, never fails)
2. await start(): merge remote progress in the background of play
3. pointer_* / key / resize: input from the host UI
4. await close(): flush pending saves

Every table or discovery change is written to local storage at once and
handed to the synchronizer, which decides when to push remotely.
"""

from __future__ import annotations
from pathlib import Path
import logging

from ..config import CrucibleConfig, get_default_data_dir
from ..engine_core.catalog import RecipeCatalog, default_catalog
from ..engine_core.discovery import DiscoverySet
from ..engine_core.events import EventEmitter, EventListener
from ..engine_core.resolver import MergeResolver
from ..engine_core.scheduler import AsyncioScheduler, Scheduler
from ..engine_core.state import TableState, Token
from ..interaction.gesture import GestureEngine, GestureResult
from ..palette.paginator import Paginator
from ..sync.remote import HttpRemoteAPI, RemoteAPI
from ..sync.storage import FileStore, KeyValueStore, LocalProgress, LocalSnapshot, MemoryStore
from ..sync.synchronizer import ProgressSynchronizer, SyncStatus

logger = logging.getLogger(__name__)


class AlchemySession:
    """
    A playable sandbox.

    Usage:
        session = AlchemySession(store=FileStore("~/.crucible/local"))
        session.load()
        await session.start()

        session.pointer_down(100, 500)   # press on the palette
        session.pointer_move(100, 300)   # drag upward: spawns a token
        session.pointer_up(100, 300)

        await session.close()
    """

    def __init__(
        self,
        config: CrucibleConfig | None = None,
        catalog: RecipeCatalog | None = None,
        store: KeyValueStore | None = None,
        remote: RemoteAPI | None = None,
        scheduler: Scheduler | None = None,
        namespace: str = "alchemy",
    ):
        self.config = config or CrucibleConfig()
        self.catalog = catalog or default_catalog()
        self.scheduler = scheduler or AsyncioScheduler()
        self.emitter = EventEmitter()

        self.discovery = DiscoverySet()
        self.table = TableState(
            half_width=self.config.gesture.token_half_width,
            half_height=self.config.gesture.token_half_height,
        )
        self.paginator = Paginator(width=self.config.viewport_width, config=self.config.palette)
        self.resolver = MergeResolver(
            self.table,
            self.discovery,
            self.catalog,
            self.scheduler,
            config=self.config.resolver,
            emitter=self.emitter,
        )
        self.gesture = GestureEngine(
            self.table,
            self.resolver,
            self.paginator,
            config=self.config.gesture,
            width=self.config.viewport_width,
            height=self.config.viewport_height,
            emitter=self.emitter,
        )

        self.local = LocalProgress(store if store is not None else MemoryStore(), namespace=namespace)
        self.sync = ProgressSynchronizer(
            self.discovery,
            self.table,
            self.local,
            remote,
            self.scheduler,
            config=self.config.sync,
        )

        self.loaded = False
        self._restoring = False
        self._saved_page: int | None = None
        self.paginator.refresh(self.discovery.names)

        self.discovery.subscribe(self._on_discovery)
        self.table.subscribe(self._on_table)

    @classmethod
    def from_config(cls, config: CrucibleConfig, data_dir: str | Path | None = None) -> AlchemySession:
        """
        Session with file-backed local storage and, when configured, the
        HTTP progress server as remote.
        """
        directory = Path(data_dir) if data_dir else get_default_data_dir()
        remote = None
        if config.sync.remote_url:
            remote = HttpRemoteAPI(config.sync.remote_url, user_id=config.sync.user_id)
        return cls(config=config, store=FileStore(directory / "local"), remote=remote)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(self) -> LocalSnapshot:
        """Restore local progress, including the active palette page."""
        self._restoring = True
        try:
            snapshot = self.sync.load_local()
            self.paginator.refresh(self.discovery.names)
            self.paginator.go_to(snapshot.active_page)
        finally:
            self._restoring = False
        self._saved_page = self.paginator.active_page
        self.loaded = True
        return snapshot

    async def start(self):
        """Load if needed, then reconcile with the remote copy."""
        if not self.loaded:
            self.load()
        await self.sync.start()

    def reset(self):
        """Forget all progress: discoveries back to the primitives, table empty."""
        logger.info("Resetting progress (%d discovered, %d tokens)", len(self.discovery), len(self.table))
        self.gesture.pointer_cancel()
        self.resolver.flash = None
        self.discovery.wipe()
        self.table.clear()

    async def flush(self):
        await self.sync.flush()

    async def close(self):
        await self.sync.close()

    # =========================================================================
    # Input
    # =========================================================================

    def pointer_down(self, x: float, y: float) -> GestureResult:
        return self._after_gesture(self.gesture.pointer_down(x, y))

    def pointer_move(self, x: float, y: float) -> GestureResult:
        return self._after_gesture(self.gesture.pointer_move(x, y))

    def pointer_up(self, x: float, y: float) -> GestureResult:
        return self._after_gesture(self.gesture.pointer_up(x, y))

    def pointer_cancel(self) -> GestureResult:
        return self._after_gesture(self.gesture.pointer_cancel())

    def press_token(self, token_id: str, x: float, y: float) -> GestureResult:
        return self._after_gesture(self.gesture.press_token(token_id, x, y))

    def press_palette(self, x: float, y: float, name: str | None) -> GestureResult:
        return self._after_gesture(self.gesture.press_palette(x, y, name))

    def key(self, key: str) -> bool:
        changed = self.gesture.key(key)
        self._persist_page()
        return changed

    def resize(self, width: float, height: float) -> bool:
        changed = self.gesture.resize(width, height)
        self._persist_page()
        return changed

    def subscribe(self, listener: EventListener):
        """Receive every EngineEvent (spawns, merges, flashes, page turns)."""
        self.emitter.subscribe(listener)

    def _after_gesture(self, result: GestureResult) -> GestureResult:
        self._persist_page()
        return result

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def tokens(self) -> list[Token]:
        return self.table.tokens

    @property
    def discovered(self) -> list[str]:
        return self.discovery.names

    @property
    def palette_items(self) -> list[str]:
        """Names on the active palette page."""
        return self.paginator.current_items

    @property
    def sync_status(self) -> SyncStatus:
        return self.sync.status

    # =========================================================================
    # Change propagation
    # =========================================================================

    def _on_discovery(self, added: list[str]):
        self.paginator.refresh(self.discovery.names)
        if self._restoring:
            return
        self.local.save_discovered(self.discovery.names)
        self._persist_page()
        self.sync.observe()

    def _on_table(self):
        if self._restoring:
            return
        self.local.save_tokens(self.table.tokens)
        self.sync.observe()

    def _persist_page(self):
        if self._restoring:
            return
        page = self.paginator.active_page
        if page != self._saved_page:
            self.local.save_page(page)
            self._saved_page = page
