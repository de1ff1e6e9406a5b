"""
Progress Service - Server-side storage of per-user progress.

The service:
1. Stores one progress record per user and realm
2. Trims the table to the most recent tokens before storing
3. Refuses records over the byte ceiling instead of writing partially

This layer is framework-agnostic; crucible.api.app exposes it over HTTP.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from pydantic import ValidationError

from .schemas import InitResponse, ProgressRecord, SaveProgressRequest, SaveProgressResponse
from ..config import SyncConfig
from ..sync.storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


@dataclass
class ProgressService:
    """
    Progress storage for the progress server.

    Usage:
        service = ProgressService(store=FileStore(data_dir))
        service.save_progress("u1", SaveProgressRequest(discovered=[...]))
        service.get_progress("u1")
    """
    store: KeyValueStore = field(default_factory=MemoryStore)
    realm: str = "default"
    token_limit: int = SyncConfig.token_limit
    max_bytes: int = SyncConfig.max_bytes

    def progress_key(self, user_id: str) -> str:
        return f"prog_v2:{user_id}:{self.realm}"

    def get_progress(self, user_id: str | None) -> ProgressRecord:
        """Stored progress; empty on missing or unreadable data."""
        if not user_id:
            return ProgressRecord()
        key = self.progress_key(user_id)
        data = self.store.get(key)
        if data is None:
            logger.debug("No progress found for key %s", key)
            return ProgressRecord()
        try:
            record = ProgressRecord.model_validate_json(data)
        except ValidationError as e:
            logger.error("Failed to parse progress for %s: %s", user_id, e.error_count())
            return ProgressRecord()
        logger.info("Loaded %d discovered names for %s", len(record.discovered), user_id)
        return record

    def init(self, user_id: str | None, username: str | None = None) -> InitResponse:
        record = self.get_progress(user_id)
        return InitResponse(
            discovered=record.discovered,
            elements=record.elements,
            username=username,
        )

    def save_progress(self, user_id: str | None, request: SaveProgressRequest) -> SaveProgressResponse:
        """
        Store progress for a user.

        Anonymous saves are accepted and dropped. Oversized records are
        refused with success=False.
        """
        if not user_id:
            return SaveProgressResponse(success=True)

        record = ProgressRecord(
            discovered=request.discovered,
            elements=request.elements,
        ).limited(self.token_limit)
        data = record.encoded()
        size = len(data.encode("utf-8"))

        logger.info(
            "Saving %d discovered names for %s (size: %db)",
            len(record.discovered), user_id, size,
        )
        if size > self.max_bytes:
            logger.error("Progress for %s too large (%db > %db), not saved", user_id, size, self.max_bytes)
            return SaveProgressResponse(success=False, size_bytes=size)

        self.store.set(self.progress_key(user_id), data)
        return SaveProgressResponse(success=True, saved_elements=len(record.elements), size_bytes=size)
