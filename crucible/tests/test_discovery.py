"""
Tests for the discovery set.
"""

from ..engine_core.discovery import DiscoverySet


class TestDiscoverySet:
    """Ordered, append-only name set."""

    def test_starts_with_primitives(self, discovery):
        assert discovery.names == ["air", "fire", "earth", "water"]

    def test_add_appends_in_order(self, discovery):
        added = discovery.add_all(["steam", "stone", "steam"])
        assert added == ["steam", "stone"]
        assert discovery.names[-2:] == ["steam", "stone"]

    def test_add_known_is_noop(self, discovery):
        assert discovery.add("fire") is False
        assert len(discovery) == 4

    def test_listener_receives_new_names(self, discovery):
        calls = []
        discovery.subscribe(calls.append)

        discovery.add("steam")
        discovery.add("steam")

        assert calls == [["steam"]]

    def test_merge_keeps_local_order(self):
        discovery = DiscoverySet(["air", "fire", "earth", "water", "alcohol"])
        added = discovery.merge(["air", "steam", "fire", "earth", "water"])

        assert added == ["steam"]
        assert discovery.names == ["air", "fire", "earth", "water", "alcohol", "steam"]

    def test_wipe_keeps_primitives(self, discovery):
        discovery.add_all(["steam", "lava"])
        discovery.wipe()
        assert discovery.names == ["air", "fire", "earth", "water"]

    def test_restore_prepends_missing_primitives(self):
        discovery = DiscoverySet()
        discovery.restore(["water", "steam"])
        assert discovery.names == ["air", "fire", "earth", "water", "steam"]

    def test_restore_keeps_snapshot_order(self):
        discovery = DiscoverySet()
        discovery.restore(["water", "earth", "fire", "air", "steam"])
        assert discovery.names == ["water", "earth", "fire", "air", "steam"]

    def test_wipe_and_restore_notify_empty(self, discovery):
        calls = []
        discovery.subscribe(calls.append)
        discovery.wipe()
        discovery.restore(["steam"])
        assert calls == [[], []]

    def test_contains_and_iter(self, discovery):
        assert "air" in discovery
        assert "steam" not in discovery
        assert list(discovery) == discovery.names
