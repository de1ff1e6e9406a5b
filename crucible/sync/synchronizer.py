"""
Progress Synchronizer - Reconciles local and remote progress.

Protocol, once per session:
1. load_local(): restore from local storage (defaults on any problem)
2. start(): fetch remote init and merge it in
   - discovered names: union, local order kept, remote-only appended
   - table: adopted from remote only if the local table is empty
   - failure: logged, play continues locally
3. status becomes IDLE after step 2, success or failure
4. observe(): after IDLE, discovery growth saves immediately; any other
   change saves after a quiet period (debounce, restarted by each change)

Nothing is ever pushed before IDLE. Changes made while the fetch is in
flight are buffered and pushed once, right after the merge.

At most one save is in flight. Changes made while it runs are pushed by
one follow-up save carrying the latest state, so an older payload can
never land after a newer one. Without a running event loop (a host that
drives the engine synchronously) saves wait for the next flush().

Remote errors never escape into the engine: they are logged and dropped.
"""

from __future__ import annotations
from enum import Enum
import asyncio
import logging

from .remote import RemoteAPI, to_records
from .storage import LocalProgress, LocalSnapshot
from ..api.schemas import ProgressRecord
from ..config import SyncConfig
from ..engine_core.discovery import DiscoverySet
from ..engine_core.scheduler import Scheduler, TimerHandle
from ..engine_core.state import TableState, Token
from ..errors import RemoteError

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Monotonic sync status. Saves are only issued in IDLE."""
    LOADING = "loading"
    MERGING = "merging"
    IDLE = "idle"


_ORDER = [SyncStatus.LOADING, SyncStatus.MERGING, SyncStatus.IDLE]


class ProgressSynchronizer:
    """
    Keeps remote progress in step with the local session.

    Usage:
        sync = ProgressSynchronizer(discovery, table, local, remote, scheduler)
        snapshot = sync.load_local()
        await sync.start()
        ...
        sync.observe()  # after every state change
        await sync.drain()
    """

    def __init__(
        self,
        discovery: DiscoverySet,
        table: TableState,
        local: LocalProgress,
        remote: RemoteAPI | None,
        scheduler: Scheduler,
        config: SyncConfig | None = None,
    ):
        self.discovery = discovery
        self.table = table
        self.local = local
        self.remote = remote
        self.scheduler = scheduler
        self.config = config or SyncConfig()

        self.status = SyncStatus.LOADING
        self.username: str | None = None
        self.saves_issued = 0
        self.saves_skipped = 0

        self._seen_discovery = len(discovery)
        self._seen_revision = table.revision
        self._buffered = False
        self._debounce: TimerHandle | None = None
        self._save_task: asyncio.Task | None = None
        self._dirty = False

    # =========================================================================
    # Status
    # =========================================================================

    def _advance(self, status: SyncStatus):
        if _ORDER.index(status) > _ORDER.index(self.status):
            logger.debug("Sync status %s -> %s", self.status.value, status.value)
            self.status = status

    @property
    def is_idle(self) -> bool:
        return self.status == SyncStatus.IDLE

    @property
    def saving(self) -> bool:
        """True while a save is in flight."""
        return self._save_task is not None and not self._save_task.done()

    # =========================================================================
    # Startup
    # =========================================================================

    def load_local(self) -> LocalSnapshot:
        """Restore discovery and table from local storage. Never fails."""
        snapshot = self.local.load()
        self.discovery.restore(snapshot.discovered)
        self.table.replace_all(snapshot.tokens)
        self._mark_seen()
        self._buffered = False
        logger.info(
            "Restored %d discovered names and %d tokens from local storage",
            len(self.discovery), len(self.table),
        )
        return snapshot

    async def start(self):
        """Fetch remote progress, merge it, then open the save gate."""
        if self.status != SyncStatus.LOADING:
            return

        remote_names: list[str] | None = None
        if self.remote is None:
            logger.info("No remote configured; playing locally")
        else:
            try:
                init = await self.remote.fetch_init()
            except RemoteError as e:
                logger.warning("Remote progress unavailable, continuing locally: %s", e)
            else:
                self._advance(SyncStatus.MERGING)
                self.username = init.username
                remote_names = init.discovered
                self._merge(init.discovered, init.tokens)

        self._advance(SyncStatus.IDLE)

        local_ahead = remote_names is not None and any(n not in remote_names for n in self.discovery)
        if self._buffered or local_ahead:
            self._buffered = False
            self._cancel_debounce()
            self._mark_seen()
            self._spawn_save()

    def _merge(self, remote_names: list[str], remote_tokens):
        added = self.discovery.merge(remote_names)
        if added:
            logger.info("Merged %d remote discoveries", len(added))
        if len(self.table) == 0 and remote_tokens:
            self.table.replace_all(remote_tokens)
            logger.info("Adopted remote table with %d tokens", len(remote_tokens))
        self.local.save_discovered(self.discovery.names)
        self.local.save_tokens(self.table.tokens)
        self._mark_seen()

    # =========================================================================
    # Change tracking
    # =========================================================================

    def observe(self):
        """
        Inspect discovery and table for changes since the last call.

        Discovery growth saves now; table-only changes are debounced.
        Before IDLE, changes are only buffered.
        """
        size = len(self.discovery)
        grew = size > self._seen_discovery
        changed = grew or size != self._seen_discovery or self.table.revision != self._seen_revision
        if not changed:
            return

        if self.status == SyncStatus.MERGING:
            # The merge itself; it marks what it wrote as seen.
            return
        if self.status == SyncStatus.LOADING:
            self._buffered = True
            return

        self._mark_seen()
        if grew:
            self._cancel_debounce()
            self._spawn_save()
        else:
            self._restart_debounce()

    def _mark_seen(self):
        self._seen_discovery = len(self.discovery)
        self._seen_revision = self.table.revision

    def _restart_debounce(self):
        self._cancel_debounce()
        self._debounce = self.scheduler.call_later(self.config.debounce_seconds, self._debounce_fired)

    def _cancel_debounce(self):
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def _debounce_fired(self):
        self._debounce = None
        self._spawn_save()

    # =========================================================================
    # Saving
    # =========================================================================

    def build_payload(self) -> ProgressRecord | None:
        """
        Current progress as it would be pushed, or None if it is too large.

        Only the most recent tokens are included.
        """
        record = ProgressRecord(
            discovered=self.discovery.names,
            elements=to_records(self.table.tokens),
        ).limited(self.config.token_limit)
        size = record.encoded_size()
        if size > self.config.max_bytes:
            logger.error("Progress payload too large (%db > %db); save skipped", size, self.config.max_bytes)
            return None
        return record

    def _spawn_save(self):
        if self.remote is None or not self.is_idle:
            return
        if self.saving:
            self._dirty = True
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; save deferred to the next flush")
            self._dirty = True
            return

        self._dirty = False
        record = self._next_payload()
        if record is not None:
            self._save_task = loop.create_task(self._run_saves(record))
            self._save_task.add_done_callback(self._save_finished)

    def _next_payload(self) -> ProgressRecord | None:
        record = self.build_payload()
        if record is None:
            self.saves_skipped += 1
        else:
            self.saves_issued += 1
        return record

    async def _run_saves(self, record: ProgressRecord):
        """Push `record`, then keep pushing the latest state while changes arrive."""
        while record is not None:
            await self._save(record)
            record = None
            if self._dirty:
                self._dirty = False
                record = self._next_payload()

    def _save_finished(self, task: asyncio.Task):
        if task.cancelled():
            # Loop shut down first; the next drain() pushes again.
            self._dirty = True

    async def _save(self, record: ProgressRecord):
        tokens = [Token(id=r.id, name=r.name, x=r.x, y=r.y) for r in record.elements]
        try:
            ok = await self.remote.save_progress(record.discovered, tokens)
        except RemoteError as e:
            logger.warning("Remote save failed: %s", e)
            return
        if not ok:
            logger.warning("Remote refused progress save")
        else:
            logger.debug("Saved %d discovered names remotely", len(record.discovered))

    async def drain(self):
        """Issue any deferred save, then wait until no save is in flight."""
        if self._dirty and not self.saving:
            self._spawn_save()
        while self.saving:
            await asyncio.gather(self._save_task, return_exceptions=True)

    async def flush(self):
        """Push immediately if a debounced save is pending, then drain."""
        if self._debounce is not None:
            self._cancel_debounce()
            self._spawn_save()
        await self.drain()

    async def close(self):
        self._cancel_debounce()
        await self.drain()
        if self.remote is not None:
            await self.remote.close()
