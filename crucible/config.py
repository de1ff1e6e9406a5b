"""
Configuration.

All tunable constants of the engine live here. Defaults give the intended
game feel; the values below can be overridden from the environment via
CrucibleConfig.from_env().

Environment:
    CRUCIBLE_MERGE_RADIUS       Distance below which two tokens combine
    CRUCIBLE_PALETTE_HEIGHT     Height of the palette strip (drop-to-discard)
    CRUCIBLE_SAVE_DEBOUNCE      Quiet period before a table-only save
    CRUCIBLE_SAVE_TOKEN_LIMIT   Most recent tokens included in a remote save
    CRUCIBLE_SAVE_MAX_BYTES     Byte ceiling for a serialized save
    CRUCIBLE_REMOTE_URL         Base URL of the progress server
    CRUCIBLE_USER_ID            User id sent to the progress server
    CRUCIBLE_DATA_DIR           Directory for file-backed storage
    CRUCIBLE_REALM              Namespace for server-side progress keys
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import os


PRIMITIVES: tuple[str, ...] = ("air", "fire", "earth", "water")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_default_data_dir() -> Path:
    """Directory used by file-backed storage."""
    if env_path := os.getenv("CRUCIBLE_DATA_DIR"):
        return Path(env_path)
    return Path.home() / ".crucible"


@dataclass
class GestureConfig:
    """Thresholds for classifying pointer input."""
    swipe_threshold: float = 10.0  # |dx| that commits to a palette swipe
    spawn_threshold: float = 20.0  # upward dy that commits to a spawn
    single_page_deadzone: float = 5.0
    page_release_threshold: float = 50.0
    palette_height: float = 256.0
    token_half_width: float = 40.0
    token_half_height: float = 32.0


@dataclass
class ResolverConfig:
    """Merge radius, feedback geometry and feedback timings (seconds)."""
    merge_radius: float = 60.0
    bounce_radius: float = 50.0
    bounce_delay: float = 0.05
    reject_push: float = 40.0
    reject_delay: float = 0.4
    flash_duration: float = 0.5
    blast_radius: float = 120.0
    blast_push: float = 60.0


@dataclass
class PaletteConfig:
    """Palette grid layout."""
    rows: int = 3
    cell_width: float = 80.0
    padding: float = 16.0
    header_height: float = 32.0


@dataclass
class SyncConfig:
    """Remote save policy."""
    debounce_seconds: float = 2.0
    token_limit: int = 20
    max_bytes: int = 32000
    remote_url: str | None = None
    user_id: str | None = None


@dataclass
class CrucibleConfig:
    """Complete engine configuration."""
    gesture: GestureConfig = field(default_factory=GestureConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    palette: PaletteConfig = field(default_factory=PaletteConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    viewport_width: float = 360.0
    viewport_height: float = 640.0

    @classmethod
    def from_env(cls) -> CrucibleConfig:
        """Build a config from defaults overridden by CRUCIBLE_* variables."""
        gesture = GestureConfig(
            palette_height=_env_float("CRUCIBLE_PALETTE_HEIGHT", GestureConfig.palette_height),
        )
        resolver = ResolverConfig(
            merge_radius=_env_float("CRUCIBLE_MERGE_RADIUS", ResolverConfig.merge_radius),
        )
        sync = SyncConfig(
            debounce_seconds=_env_float("CRUCIBLE_SAVE_DEBOUNCE", SyncConfig.debounce_seconds),
            token_limit=_env_int("CRUCIBLE_SAVE_TOKEN_LIMIT", SyncConfig.token_limit),
            max_bytes=_env_int("CRUCIBLE_SAVE_MAX_BYTES", SyncConfig.max_bytes),
            remote_url=os.getenv("CRUCIBLE_REMOTE_URL"),
            user_id=os.getenv("CRUCIBLE_USER_ID"),
        )
        return cls(gesture=gesture, resolver=resolver, sync=sync)
