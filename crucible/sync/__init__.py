"""
Sync Module - Local persistence and remote progress reconciliation.

Local storage is authoritative for the running session and always
written. The remote copy is merged in once at startup and then kept up to
date without ever blocking play:
- Discovery growth is pushed immediately
- Table edits are pushed after a quiet period
- Nothing is pushed before the startup merge has settled
"""

from .storage import KeyValueStore, MemoryStore, FileStore, LocalProgress, LocalSnapshot
from .remote import RemoteAPI, HttpRemoteAPI, LocalRemoteAPI, InitData
from .synchronizer import ProgressSynchronizer, SyncStatus

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "LocalProgress",
    "LocalSnapshot",
    "RemoteAPI",
    "HttpRemoteAPI",
    "LocalRemoteAPI",
    "InitData",
    "ProgressSynchronizer",
    "SyncStatus",
]
