"""
Tests for the merge resolver.

Tests:
- Merges, including multi-output bounce-apart
- Rejection shake and symmetric separation
- Tie-break by table order
- Timers that outlive their tokens
- Explosions
"""

import math

import pytest

from ..engine_core.catalog import RecipeCatalog
from ..engine_core.discovery import DiscoverySet
from ..engine_core.events import EventType
from ..engine_core.resolver import MergeResolver, OutcomeType, bounce_positions, unit_vector
from ..engine_core.state import TableState, TokenStatus


class TestMerge:
    """Successful combinations."""

    def test_water_air_makes_steam(self, table, discovery, resolver, scheduler, events):
        water = table.spawn("water", 100, 100)
        air = table.spawn("air", 130, 100)

        outcome = resolver.release(air.id)

        assert outcome.outcome == OutcomeType.MERGED
        assert water.id not in table and air.id not in table
        assert [t.name for t in table.tokens] == ["steam"]
        steam = table.tokens[0]
        assert (steam.x, steam.y) == (115, 100)
        assert discovery.names == ["air", "fire", "earth", "water", "steam"]
        assert outcome.discovered == ["steam"]

        types = [e.event_type for e in events]
        assert types == [EventType.MERGED, EventType.DISCOVERED, EventType.SUCCESS_FLASH]

    def test_merge_adds_one_token_per_output(self, table, resolver):
        table.spawn("air", 0, 0)
        lava = table.spawn("lava", 200, 200)
        water = table.spawn("water", 220, 200)

        resolver.release(water.id)

        assert len(table) == 3
        assert lava.id not in table

    def test_rediscovery_is_not_new(self, table, discovery, resolver):
        discovery.add("steam")
        table.spawn("water", 100, 100)
        air = table.spawn("air", 110, 100)

        outcome = resolver.release(air.id)

        assert outcome.outcome == OutcomeType.MERGED
        assert outcome.discovered == []
        assert discovery.names.count("steam") == 1

    def test_water_lava_bounces_apart(self, table, resolver, scheduler):
        table.spawn("lava", 80, 100)
        water = table.spawn("water", 120, 100)

        outcome = resolver.release(water.id)

        steam, stone = outcome.created
        assert (steam.name, stone.name) == ("steam", "stone")
        assert (steam.x, steam.y) == (100, 100)
        assert (stone.x, stone.y) == (100, 100)

        scheduler.advance(0.05)

        steam = table.get(steam.id)
        stone = table.get(stone.id)
        assert steam.x == pytest.approx(150)
        assert steam.y == pytest.approx(100)
        assert stone.x == pytest.approx(50)
        assert stone.y == pytest.approx(100)

    def test_flash_clears_after_duration(self, table, resolver, scheduler, events):
        table.spawn("water", 100, 100)
        air = table.spawn("air", 110, 100)
        resolver.release(air.id)

        assert resolver.flash is not None
        scheduler.advance(0.4)
        assert resolver.flash is not None
        scheduler.advance(0.1)
        assert resolver.flash is None
        assert events[-1].event_type == EventType.FLASH_CLEARED

    def test_newer_flash_survives_older_timer(self, table, resolver, scheduler):
        table.spawn("water", 100, 100)
        air = table.spawn("air", 110, 100)
        resolver.release(air.id)

        scheduler.advance(0.3)
        table.spawn("earth", 300, 300)
        fire = table.spawn("fire", 310, 300)
        resolver.release(fire.id)
        newest = resolver.flash

        scheduler.advance(0.2)
        assert resolver.flash is newest
        scheduler.advance(0.5)
        assert resolver.flash is None


class TestProximity:
    """Target selection."""

    def test_nothing_nearby(self, table, resolver):
        table.spawn("water", 0, 0)
        air = table.spawn("air", 200, 200)

        outcome = resolver.release(air.id)

        assert outcome.outcome == OutcomeType.NONE
        assert len(table) == 2

    def test_merge_radius_is_strict(self, table, resolver):
        table.spawn("water", 100, 100)
        air = table.spawn("air", 160, 100)
        assert resolver.release(air.id).outcome == OutcomeType.NONE

    def test_first_in_table_order_wins(self, table, resolver):
        """The first proximate token is the target, even if another is nearer."""
        table.spawn("fire", 100, 100)
        table.spawn("water", 125, 100)
        air = table.spawn("air", 120, 100)

        resolver.release(air.id)

        assert [t.name for t in table.tokens] == ["water", "energy"]

    def test_reactive_marks_exactly_the_pair(self, table, resolver):
        water = table.spawn("water", 100, 100)
        bystander = table.spawn("earth", 400, 400)
        air = table.spawn("air", 130, 100)

        resolver.update_reactive(air.id)
        assert set(table.with_status(TokenStatus.REACTIVE)) == {water.id, air.id}
        assert table.get(bystander.id).status == TokenStatus.IDLE

        table.move(air.id, 300, 100)
        resolver.update_reactive(air.id)
        assert table.with_status(TokenStatus.REACTIVE) == []

    def test_no_reactive_without_recipe(self, table, resolver):
        table.spawn("air", 100, 100)
        other = table.spawn("air", 120, 100)
        resolver.update_reactive(other.id)
        assert table.with_status(TokenStatus.REACTIVE) == []

    def test_release_clears_reactive(self, table, resolver):
        table.spawn("air", 100, 100)
        fire = table.spawn("fire", 300, 300)
        water = table.spawn("water", 300, 320)
        resolver.update_reactive(water.id)
        table.move(water.id, 500, 500)

        resolver.release(water.id)

        assert table.get(fire.id).status == TokenStatus.IDLE


class TestReject:
    """Pairs without a recipe."""

    def test_reject_shakes_then_separates(self, table, resolver, scheduler, events):
        target = table.spawn("air", 100, 100)
        dragged = table.spawn("air", 130, 100)

        outcome = resolver.release(dragged.id)

        assert outcome.outcome == OutcomeType.REJECTED
        assert table.get(target.id).status == TokenStatus.SHAKING
        assert table.get(dragged.id).status == TokenStatus.SHAKING
        assert (table.get(dragged.id).x, table.get(target.id).x) == (130, 100)

        scheduler.advance(0.4)

        assert table.get(dragged.id).x == pytest.approx(170)
        assert table.get(target.id).x == pytest.approx(60)
        assert table.get(dragged.id).status == TokenStatus.IDLE
        assert events[-1].event_type == EventType.SEPARATED

    def test_separation_is_symmetric(self, table, resolver, scheduler):
        target = table.spawn("earth", 100, 100)
        dragged = table.spawn("earth", 120, 130)
        mid_before = ((100 + 120) / 2, (100 + 130) / 2)

        resolver.release(dragged.id)
        scheduler.advance(0.4)

        a, b = table.get(dragged.id), table.get(target.id)
        assert ((a.x + b.x) / 2, (a.y + b.y) / 2) == pytest.approx(mid_before)
        assert math.hypot(a.x - b.x, a.y - b.y) == pytest.approx(math.hypot(20, 30) + 80)

    def test_coincident_pair_pushes_along_x(self, table, resolver, scheduler):
        target = table.spawn("fire", 100, 100)
        dragged = table.spawn("fire", 100, 100)

        resolver.release(dragged.id)
        scheduler.advance(0.4)

        assert table.get(dragged.id).x == pytest.approx(140)
        assert table.get(target.id).x == pytest.approx(60)

    def test_repeated_rejection_keeps_shaking(self, table, resolver, scheduler):
        target = table.spawn("air", 100, 100)
        dragged = table.spawn("air", 130, 100)
        resolver.release(dragged.id)

        scheduler.advance(0.2)
        table.move(dragged.id, 110, 100)
        resolver.release(dragged.id)

        scheduler.advance(0.25)
        assert table.get(dragged.id).status == TokenStatus.SHAKING
        assert table.get(target.id).status == TokenStatus.SHAKING

        scheduler.advance(0.2)
        assert table.get(dragged.id).status == TokenStatus.IDLE
        assert table.get(target.id).status == TokenStatus.IDLE


class TestStaleTimers:
    """Timers re-validate the tokens they touch."""

    def test_removed_token_not_resurrected_by_separation(self, table, resolver, scheduler):
        target = table.spawn("air", 100, 100)
        dragged = table.spawn("air", 130, 100)
        resolver.release(dragged.id)

        table.remove([target.id])
        scheduler.advance(0.4)

        assert target.id not in table
        assert table.get(dragged.id).x == pytest.approx(170)

    def test_removed_product_not_bounced(self, table, resolver, scheduler):
        table.spawn("lava", 80, 100)
        water = table.spawn("water", 120, 100)
        steam, stone = resolver.release(water.id).created

        table.remove([steam.id])
        scheduler.advance(0.05)

        assert steam.id not in table
        assert table.get(stone.id).x == pytest.approx(50)

    def test_held_product_not_bounced(self, table, resolver, scheduler):
        table.spawn("lava", 80, 100)
        water = table.spawn("water", 120, 100)
        steam, stone = resolver.release(water.id).created

        resolver.held_id = steam.id
        scheduler.advance(0.05)

        assert (table.get(steam.id).x, table.get(steam.id).y) == (100, 100)
        assert table.get(stone.id).x == pytest.approx(50)

    def test_held_token_not_separated(self, table, resolver, scheduler):
        target = table.spawn("air", 100, 100)
        dragged = table.spawn("air", 130, 100)
        resolver.release(dragged.id)

        resolver.held_id = target.id
        scheduler.advance(0.4)

        assert table.get(target.id).x == 100
        assert table.get(target.id).status == TokenStatus.IDLE
        assert table.get(dragged.id).x == pytest.approx(170)

    def test_all_removed_is_noop(self, table, resolver, scheduler):
        target = table.spawn("air", 100, 100)
        dragged = table.spawn("air", 130, 100)
        resolver.release(dragged.id)
        table.clear()

        assert scheduler.advance(1.0) >= 1
        assert len(table) == 0
        assert target.id not in table


class TestExplosion:
    """Recipes that give back one of their inputs."""

    @pytest.fixture
    def explosive_resolver(self, table, scheduler, emitter):
        catalog = RecipeCatalog({"fire+metal": ["fire", "spark"]})
        return MergeResolver(table, DiscoverySet(), catalog, scheduler, emitter=emitter)

    def test_products_exploding_until_flash_clears(self, table, explosive_resolver, scheduler):
        table.spawn("metal", 100, 100)
        fire = table.spawn("fire", 140, 100)

        outcome = explosive_resolver.release(fire.id)

        assert outcome.outcome == OutcomeType.EXPLODED
        created_ids = [t.id for t in outcome.created]
        assert set(table.with_status(TokenStatus.EXPLODING)) == set(created_ids)

        scheduler.advance(0.5)
        assert table.with_status(TokenStatus.EXPLODING) == []

    def test_bystanders_pushed_out(self, table, explosive_resolver, scheduler, events):
        table.spawn("metal", 100, 100)
        bystander = table.spawn("air", 120, 150)
        far = table.spawn("water", 400, 400)
        fire = table.spawn("fire", 140, 100)

        explosive_resolver.release(fire.id)

        assert table.get(bystander.id).status == TokenStatus.PUSHED_OUT
        assert table.get(far.id).status == TokenStatus.IDLE

        scheduler.advance(0.05)

        pushed = table.get(bystander.id)
        assert (pushed.x, pushed.y) == pytest.approx((120, 210))
        assert pushed.status == TokenStatus.IDLE
        assert (table.get(far.id).x, table.get(far.id).y) == (400, 400)
        assert EventType.EXPLODED in [e.event_type for e in events]

    def test_push_does_not_cascade(self, table, explosive_resolver, scheduler):
        """A pushed token landing near a partner is only moved, never merged."""
        table.spawn("metal", 100, 100)
        bystander = table.spawn("air", 120, 150)
        table.spawn("water", 120, 220)
        fire = table.spawn("fire", 140, 100)

        explosive_resolver.release(fire.id)
        scheduler.run_all()

        assert bystander.id in table
        assert "steam" not in [t.name for t in table.tokens]


class TestDiscard:
    """Dropping a token on the palette."""

    def test_discard_removes_token(self, table, resolver, events):
        token = table.spawn("air", 0, 0)

        outcome = resolver.discard(token.id)

        assert outcome.outcome == OutcomeType.DISCARDED
        assert len(table) == 0
        assert events[-1].event_type == EventType.DISCARDED

    def test_discard_unknown(self, resolver):
        assert resolver.discard("el-404").outcome == OutcomeType.NONE


class TestGeometry:
    """Pure helpers."""

    def test_unit_vector(self):
        assert unit_vector(3, 4) == pytest.approx((0.6, 0.8))
        assert unit_vector(0, 0) == (1.0, 0.0)

    def test_bounce_positions_evenly_spaced(self):
        positions = bounce_positions((0, 0), 4, 50)
        assert positions[0] == pytest.approx((50, 0))
        assert positions[1] == pytest.approx((0, 50), abs=1e-9)
        assert positions[2] == pytest.approx((-50, 0), abs=1e-9)
