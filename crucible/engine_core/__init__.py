"""
Engine Core - Deterministic table state and recipe resolution.

The engine core:
1. Loads a RecipeCatalog
2. Tracks the DiscoverySet
3. Owns the TableState (tokens, ids, paint order)
4. Resolves releases via the MergeResolver
5. Schedules timed feedback through a Scheduler
"""

from .catalog import RecipeCatalog, default_catalog, make_key, format_key
from .discovery import DiscoverySet
from .state import TableState, Token, TokenStatus, IdAllocator
from .events import EngineEvent, EventType, EventEmitter
from .resolver import MergeResolver, MergeOutcome, OutcomeType, Flash
from .scheduler import Scheduler, TimerHandle, AsyncioScheduler, ManualScheduler

__all__ = [
    "RecipeCatalog",
    "default_catalog",
    "make_key",
    "format_key",
    "DiscoverySet",
    "TableState",
    "Token",
    "TokenStatus",
    "IdAllocator",
    "EngineEvent",
    "EventType",
    "EventEmitter",
    "MergeResolver",
    "MergeOutcome",
    "OutcomeType",
    "Flash",
    "Scheduler",
    "TimerHandle",
    "AsyncioScheduler",
    "ManualScheduler",
]
