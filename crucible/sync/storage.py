"""
Storage - Key-value persistence for progress.

Three logical records are kept locally:
- discovered names (JSON array of strings)
- table snapshot (JSON array of {id, name, x, y})
- active palette page (integer)

Reads never fail: a missing or malformed record falls back to its default
and the problem is logged. Writes go straight through.

The same KeyValueStore abstraction backs the progress server.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
import hashlib
import json
import logging

from pydantic import TypeAdapter, ValidationError

from ..api.schemas import TokenRecord
from ..config import PRIMITIVES
from ..engine_core.state import Token

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass


class MemoryStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value


class FileStore(KeyValueStore):
    """
    One file per key in a directory.

    File names are a hash of the key, so any key string is safe.

    Usage:
        store = FileStore("~/.crucible/local")
        store.set("alchemy:discovered", '["air"]')
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:24]
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", path, e)
            return None

    def set(self, key: str, value: str):
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


# =============================================================================
# Typed local records
# =============================================================================

_names_adapter = TypeAdapter(list[str])
_tokens_adapter = TypeAdapter(list[TokenRecord])


@dataclass
class LocalSnapshot:
    """Everything restored from local storage at startup."""
    discovered: list[str] = field(default_factory=lambda: list(PRIMITIVES))
    tokens: list[Token] = field(default_factory=list)
    active_page: int = 0


@dataclass
class LocalProgress:
    """
    Typed access to the three local records.

    Keys are namespaced so several games can share one store.
    """
    store: KeyValueStore
    namespace: str = "alchemy"

    @property
    def discovered_key(self) -> str:
        return f"{self.namespace}:discovered"

    @property
    def table_key(self) -> str:
        return f"{self.namespace}:elements"

    @property
    def page_key(self) -> str:
        return f"{self.namespace}:page"

    def load(self) -> LocalSnapshot:
        """Read all records, falling back to defaults per record."""
        return LocalSnapshot(
            discovered=self.load_discovered(),
            tokens=self.load_tokens(),
            active_page=self.load_page(),
        )

    def load_discovered(self) -> list[str]:
        raw = self.store.get(self.discovered_key)
        if raw is None:
            return list(PRIMITIVES)
        try:
            names = _names_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Malformed discovered record, using defaults: %s", e.error_count())
            return list(PRIMITIVES)
        return names or list(PRIMITIVES)

    def load_tokens(self) -> list[Token]:
        raw = self.store.get(self.table_key)
        if raw is None:
            return []
        try:
            records = _tokens_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Malformed table record, starting empty: %s", e.error_count())
            return []
        return [Token(id=r.id, name=r.name, x=r.x, y=r.y) for r in records]

    def load_page(self) -> int:
        raw = self.store.get(self.page_key)
        if raw is None:
            return 0
        try:
            page = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Malformed page record %r, using page 0", raw)
            return 0
        if not isinstance(page, int) or isinstance(page, bool) or page < 0:
            return 0
        return page

    def save_discovered(self, names: list[str]):
        self.store.set(self.discovered_key, json.dumps(names))

    def save_tokens(self, tokens: list[Token]):
        self.store.set(self.table_key, json.dumps([t.to_record() for t in tokens]))

    def save_page(self, page: int):
        self.store.set(self.page_key, json.dumps(page))
