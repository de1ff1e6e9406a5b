"""
Palette Paginator - Pages of discovered names for the spawn palette.

Page capacity is rows x columns, and columns follow the available width,
so capacity is recomputed on every resize rather than stored.

Rules:
- A filter is a case-insensitive prefix; changing it resets to page 0
- The active page is always clamped into [0, page_count - 1]
- New discoveries that add a page jump to that last page; a resize that
  changes the page count never jumps
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..config import PaletteConfig

logger = logging.getLogger(__name__)


CLEAR_KEYS = {"Escape", "Backspace"}


@dataclass
class Paginator:
    """
    Pagination state for the palette.

    Usage:
        paginator = Paginator(width=360)
        paginator.refresh(discovery.names)
        paginator.current_items  # names on the active page
    """
    width: float = 360.0
    config: PaletteConfig = field(default_factory=PaletteConfig)

    active_page: int = 0
    translate: float = 0.0  # Rubber-band offset while swiping
    filter_prefix: str = ""

    _names: list[str] = field(default_factory=list)
    _known_count: int = 0

    # =========================================================================
    # Layout
    # =========================================================================

    @property
    def columns(self) -> int:
        usable = self.width - 2 * self.config.padding
        return max(1, int(usable // self.config.cell_width))

    @property
    def capacity(self) -> int:
        return max(1, self.config.rows * self.columns)

    # =========================================================================
    # Pages
    # =========================================================================

    @property
    def filtered(self) -> list[str]:
        if not self.filter_prefix:
            return list(self._names)
        prefix = self.filter_prefix.lower()
        return [name for name in self._names if name.lower().startswith(prefix)]

    @property
    def pages(self) -> list[list[str]]:
        items = self.filtered
        size = self.capacity
        return [items[i:i + size] for i in range(0, len(items), size)]

    @property
    def page_count(self) -> int:
        """At least one page, even when nothing matches."""
        return max(1, len(self.pages))

    @property
    def current_items(self) -> list[str]:
        pages = self.pages
        if not pages:
            return []
        return pages[self.active_page]

    # =========================================================================
    # Updates
    # =========================================================================

    def refresh(self, names: list[str]) -> bool:
        """
        Take a new discovered-name list. Returns True if the active page changed.

        Jumps to the last page only when the discovery count grew and the
        page count grew with it.
        """
        before_page = self.active_page
        before_count = self.page_count
        grew = len(names) > self._known_count

        self._names = list(names)
        self._known_count = len(names)

        if grew and self.page_count > before_count:
            self.active_page = self.page_count - 1
        self._clamp()
        return self.active_page != before_page

    def set_width(self, width: float) -> bool:
        """Resize; capacity and page count may change, the page never jumps."""
        before = self.active_page
        self.width = width
        self._clamp()
        return self.active_page != before

    def set_filter(self, prefix: str) -> bool:
        """Set the prefix filter. Returns True if it changed."""
        if prefix == self.filter_prefix:
            return False
        self.filter_prefix = prefix
        self.active_page = 0
        self.translate = 0.0
        logger.debug("Palette filter set to %r (%d matches)", prefix, len(self.filtered))
        return True

    def clear_filter(self) -> bool:
        return self.set_filter("")

    def key(self, key: str) -> bool:
        """
        Keyboard input for the filter.

        A single printable character becomes the filter; Escape and
        Backspace clear it. Anything else is ignored.
        """
        if key in CLEAR_KEYS:
            return self.clear_filter()
        if len(key) == 1 and key.isprintable() and not key.isspace():
            return self.set_filter(key)
        return False

    def go_to(self, page: int) -> bool:
        before = self.active_page
        self.active_page = page
        self._clamp()
        return self.active_page != before

    def advance(self) -> bool:
        return self.go_to(self.active_page + 1)

    def retreat(self) -> bool:
        return self.go_to(self.active_page - 1)

    def _clamp(self):
        self.active_page = min(max(self.active_page, 0), self.page_count - 1)

    # =========================================================================
    # Hit testing
    # =========================================================================

    def entry_at(self, x: float, y: float, palette_top: float, palette_height: float) -> str | None:
        """Name of the entry under a point on the active page, if any."""
        grid_top = palette_top + self.config.header_height
        grid_height = palette_height - 2 * self.config.header_height
        if grid_height <= 0 or y < grid_top or y >= grid_top + grid_height:
            return None

        usable = self.width - 2 * self.config.padding
        if x < self.config.padding or x >= self.config.padding + usable:
            return None

        col = int((x - self.config.padding) // (usable / self.columns))
        row = int((y - grid_top) // (grid_height / self.config.rows))
        idx = row * self.columns + col

        items = self.current_items
        if 0 <= idx < len(items):
            return items[idx]
        return None
