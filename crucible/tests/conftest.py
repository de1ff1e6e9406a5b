"""
Pytest fixtures for Crucible tests.
"""

import pytest

from ..config import CrucibleConfig
from ..engine_core.catalog import RecipeCatalog, default_catalog
from ..engine_core.discovery import DiscoverySet
from ..engine_core.events import EventEmitter
from ..engine_core.resolver import MergeResolver
from ..engine_core.scheduler import ManualScheduler
from ..engine_core.state import TableState
from ..interaction.gesture import GestureEngine
from ..palette.paginator import Paginator
from ..session import AlchemySession
from ..sync.storage import LocalProgress, MemoryStore


@pytest.fixture
def catalog() -> RecipeCatalog:
    """The built-in recipe table."""
    return default_catalog()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Timers that only fire when a test advances the clock."""
    return ManualScheduler()


@pytest.fixture
def table() -> TableState:
    return TableState()


@pytest.fixture
def discovery() -> DiscoverySet:
    """Primitives only."""
    return DiscoverySet()


@pytest.fixture
def events(emitter) -> list:
    """Every event emitted during the test, in order."""
    received = []
    emitter.subscribe(received.append)
    return received


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def resolver(table, discovery, catalog, scheduler, emitter) -> MergeResolver:
    return MergeResolver(table, discovery, catalog, scheduler, emitter=emitter)


@pytest.fixture
def paginator(discovery) -> Paginator:
    paginator = Paginator(width=360)
    paginator.refresh(discovery.names)
    return paginator


@pytest.fixture
def gesture(table, resolver, paginator) -> GestureEngine:
    """360x640 viewport; the palette is y > 384."""
    return GestureEngine(table, resolver, paginator, width=360, height=640)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def local(store) -> LocalProgress:
    return LocalProgress(store)


@pytest.fixture
def session(store, scheduler) -> AlchemySession:
    """A local-only session on in-memory storage."""
    return AlchemySession(config=CrucibleConfig(), store=store, scheduler=scheduler)
