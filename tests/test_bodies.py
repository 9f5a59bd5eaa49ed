from tests.helpers import at
from sentinel_activity.analytics.bodies import BodyRegistry, BodyState
from sentinel_activity.types import NO_GESTURE, NO_ZONE


class TestBodyRegistry:
    def test_update_and_get(self):
        registry = BodyRegistry()
        registry.update(100, 2, label="PickUp", zone="Pantry", confidence=0.8, timestamp=at(0))

        state = registry.get(100)
        assert state.tracked
        assert state.label == "PickUp"
        assert state.zone == "Pantry"
        assert state.body_id == 2
        assert registry.is_tracked(100)

    def test_mark_untracked_clears_winning_state(self):
        registry = BodyRegistry()
        registry.update(100, 2, label="PickUp", zone="Pantry", confidence=0.8, timestamp=at(0))

        state = registry.mark_untracked(100)

        assert not state.tracked
        assert state.label == NO_GESTURE
        assert state.zone == NO_ZONE
        assert state.confidence == 0.0
        assert state.last_seen == at(0)
        assert not registry.is_tracked(100)

    def test_mark_untracked_unknown(self):
        assert BodyRegistry().mark_untracked(5) is None

    def test_mark_slot_untracked_clears_last_occupant(self):
        registry = BodyRegistry()
        registry.update(100, 2, label="Pour", zone="FoodPrep")
        registry.update(200, 3, label="PickUp", zone="Pantry")

        state = registry.mark_slot_untracked(2)

        assert state.tracking_id == 100
        assert not registry.is_tracked(100)
        assert registry.is_tracked(200)
        assert registry.mark_slot_untracked(4) is None

    def test_update_retracks(self):
        registry = BodyRegistry()
        registry.update(100, 2)
        registry.mark_untracked(100)
        registry.update(100, 2, label="Pour")
        assert registry.is_tracked(100)

    def test_prune(self):
        registry = BodyRegistry()
        registry.update(100, 2)
        registry.update(200, 3)

        assert registry.prune({200}) == 1

        assert registry.get(100) is None
        assert registry.mark_slot_untracked(2) is None
        assert len(registry) == 1

    def test_prune_drops_untracked(self):
        registry = BodyRegistry()
        registry.update(100, 2)
        registry.update(200, 3)
        registry.mark_untracked(100)

        assert registry.prune({100, 200}) == 0
        assert registry.prune({100, 200}, drop_untracked=True) == 1
        assert registry.get(100) is None
        assert registry.is_tracked(200)

    def test_snapshot_is_a_copy(self):
        registry = BodyRegistry()
        registry.update(100, 2)
        snapshot = registry.snapshot()
        registry.clear()

        assert list(snapshot) == [100]
        assert len(registry) == 0


class TestBodyState:
    def test_to_dict(self):
        state = BodyState(tracking_id=1, body_id=0, label="Pour", zone="FoodPrep",
                          confidence=0.5, last_seen=at(0))
        data = state.to_dict()
        assert data["label"] == "Pour"
        assert data["last_seen"] == "2026-03-02T07:40:00"

    def test_defaults(self):
        state = BodyState(tracking_id=1, body_id=0)
        assert state.label == NO_GESTURE
        assert state.zone == NO_ZONE
        assert state.to_dict()["last_seen"] is None
