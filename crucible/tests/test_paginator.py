"""
Tests for palette pagination.

Tests:
- Capacity from width
- Prefix filter
- Jump-to-last-page on growth
- Clamping on resize
- Hit testing
"""

import pytest

from ..palette.paginator import Paginator

PRIMITIVES = ["air", "fire", "earth", "water"]


def names(count: int) -> list[str]:
    return PRIMITIVES + [f"element{i}" for i in range(count - len(PRIMITIVES))]


class TestLayout:
    """Capacity is rows x columns and columns follow width."""

    def test_default_capacity(self):
        paginator = Paginator(width=360)
        assert paginator.columns == 4
        assert paginator.capacity == 12

    def test_narrow_width_keeps_one_column(self):
        paginator = Paginator(width=50)
        assert paginator.columns == 1
        assert paginator.capacity == 3

    def test_page_count_at_least_one(self):
        paginator = Paginator()
        assert paginator.page_count == 1
        assert paginator.current_items == []


class TestFilter:
    """Case-insensitive prefix filter."""

    def test_filter_f(self):
        paginator = Paginator()
        paginator.refresh(["air", "fire", "earth", "water", "steam"])

        paginator.key("f")

        assert paginator.filtered == ["fire"]
        assert paginator.active_page == 0
        assert paginator.current_items == ["fire"]

    def test_filter_case_insensitive(self):
        paginator = Paginator()
        paginator.refresh(["Fire", "forest", "air"])
        paginator.set_filter("F")
        assert paginator.filtered == ["Fire", "forest"]

    def test_filter_resets_page(self):
        paginator = Paginator()
        paginator.refresh(names(30))
        paginator.go_to(2)

        paginator.set_filter("e")

        assert paginator.active_page == 0

    def test_clear_keys(self):
        paginator = Paginator()
        paginator.refresh(PRIMITIVES)
        paginator.key("w")

        assert paginator.key("Escape")
        assert paginator.filter_prefix == ""
        paginator.key("w")
        assert paginator.key("Backspace")
        assert paginator.filtered == PRIMITIVES

    def test_non_character_keys_ignored(self):
        paginator = Paginator()
        assert not paginator.key("Shift")
        assert not paginator.key(" ")
        assert paginator.filter_prefix == ""

    def test_no_match_is_one_empty_page(self):
        paginator = Paginator()
        paginator.refresh(PRIMITIVES)
        paginator.set_filter("z")
        assert paginator.page_count == 1
        assert paginator.current_items == []


class TestRefresh:
    """New discoveries."""

    def test_jump_to_new_last_page(self):
        paginator = Paginator()
        paginator.refresh(names(12))
        assert paginator.page_count == 1

        changed = paginator.refresh(names(13))

        assert changed
        assert paginator.page_count == 2
        assert paginator.active_page == 1
        assert paginator.current_items == ["element8"]

    def test_no_jump_without_new_page(self):
        paginator = Paginator()
        paginator.refresh(names(13))
        paginator.go_to(0)

        assert not paginator.refresh(names(14))
        assert paginator.active_page == 0

    def test_shrink_clamps(self):
        paginator = Paginator()
        paginator.refresh(names(30))
        assert paginator.active_page == 2

        paginator.refresh(PRIMITIVES)

        assert paginator.active_page == 0


class TestNavigation:
    """Page turns and resizes."""

    def test_advance_and_retreat_clamp(self):
        paginator = Paginator()
        paginator.refresh(names(13))
        paginator.go_to(0)

        assert paginator.advance()
        assert not paginator.advance()
        assert paginator.retreat()
        assert not paginator.retreat()

    def test_go_to_clamps(self):
        paginator = Paginator()
        paginator.refresh(names(13))
        paginator.go_to(99)
        assert paginator.active_page == 1
        paginator.go_to(-3)
        assert paginator.active_page == 0

    def test_resize_clamps_without_jumping(self):
        paginator = Paginator(width=360)
        paginator.refresh(names(13))
        assert paginator.active_page == 1

        assert paginator.set_width(1000)
        assert paginator.page_count == 1
        assert paginator.active_page == 0

        assert not paginator.set_width(360)
        assert paginator.page_count == 2
        assert paginator.active_page == 0


class TestHitTesting:
    """entry_at maps palette coordinates to names."""

    @pytest.fixture
    def paginator(self):
        paginator = Paginator(width=360)
        paginator.refresh(["air", "fire", "earth", "water", "steam"])
        return paginator

    def test_first_row(self, paginator):
        # Palette spans y 384..640; the grid starts one header below.
        assert paginator.entry_at(20, 420, 384, 256) == "air"
        assert paginator.entry_at(100, 420, 384, 256) == "fire"

    def test_second_row(self, paginator):
        assert paginator.entry_at(20, 490, 384, 256) == "steam"

    def test_empty_cell(self, paginator):
        assert paginator.entry_at(100, 490, 384, 256) is None

    def test_header_and_padding_miss(self, paginator):
        assert paginator.entry_at(20, 400, 384, 256) is None
        assert paginator.entry_at(5, 420, 384, 256) is None
