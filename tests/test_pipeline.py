import pytest

from tests.helpers import (
    DINING_SPINE,
    MEDICATION_HAND,
    TRACKING_ID,
    at,
    body,
    observation,
)
from sentinel_activity import (
    DEFAULT_ZONE_PRIORITIES,
    DEFAULT_ZONES,
    ActivityPipeline,
    ActivityRuleEngine,
    FloorPlane,
    GestureLabelResolver,
    ZoneClassifier,
)
from sentinel_activity.types import GestureKind, NO_GESTURE

PICK_UP_MEDICATION = (GestureKind.PICK_UP, "Medication")


@pytest.fixture
def pipeline(clock):
    return ActivityPipeline(
        classifier=ZoneClassifier(DEFAULT_ZONES, DEFAULT_ZONE_PRIORITIES),
        resolver=GestureLabelResolver(),
        engine=ActivityRuleEngine(clock=clock),
        clock=clock,
    )


def _pick_up_frame(pipeline, seconds=0, hand=MEDICATION_HAND, **kwargs):
    return pipeline.process_frame(
        [body(hand_right=hand, spine_mid=(0.9, 1.0, 1.7))],
        [observation(GestureKind.PICK_UP, 0.8, seconds=seconds)],
        **kwargs,
    )


def _hand_to_mouth_frame(pipeline, seconds):
    return pipeline.process_frame(
        [body(spine_mid=DINING_SPINE)],
        [observation(GestureKind.HAND_TO_MOUTH, 0.9, seconds=seconds)],
    )


class TestProcessFrame:
    def test_medication_scenario(self, pipeline):
        assert _pick_up_frame(pipeline, seconds=0) == []
        fired = _hand_to_mouth_frame(pipeline, seconds=60)

        assert [activity.name for activity in fired] == ["MedicationTaken"]
        assert fired[0].timestamp == at(60)

    def test_fired_list_is_per_frame(self, pipeline):
        _pick_up_frame(pipeline, seconds=0)
        _hand_to_mouth_frame(pipeline, seconds=60)
        assert _hand_to_mouth_frame(pipeline, seconds=61) == []

    def test_registry_tracks_zone_and_label(self, pipeline):
        _pick_up_frame(pipeline)

        state = pipeline.registry.get(TRACKING_ID)
        assert state.label == "PickUp"
        assert state.zone == "Medication"
        assert state.body_id == 2

    def test_no_winner_records_no_gesture(self, pipeline):
        pipeline.process_frame(
            [body(spine_mid=DINING_SPINE)],
            [observation(GestureKind.POUR, 0.01)],
        )
        assert pipeline.registry.get(TRACKING_ID).label == NO_GESTURE
        assert pipeline.engine.store.keys() == []

    def test_observations_of_other_bodies_ignored(self, pipeline):
        pipeline.process_frame(
            [body(hand_right=MEDICATION_HAND)],
            [observation(GestureKind.PICK_UP, 0.8, body_id=999)],
        )
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 0

    def test_untracked_slot_clears_previous_occupant(self, pipeline):
        _pick_up_frame(pipeline)
        pipeline.process_frame(
            [body(tracking_id=0)],
            [observation(GestureKind.PICK_UP, 0.8, seconds=1, body_id=0)],
        )

        state = pipeline.registry.get(TRACKING_ID)
        assert not state.tracked
        assert state.label == NO_GESTURE
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 1

    def test_invalid_tracking_produces_no_events(self, pipeline):
        _pick_up_frame(pipeline, seconds=0)
        fired = pipeline.process_frame(
            [body(spine_mid=DINING_SPINE, tracking_valid=False)],
            [observation(GestureKind.HAND_TO_MOUTH, 0.9, seconds=10)],
        )
        assert fired == []
        assert not pipeline.registry.is_tracked(TRACKING_ID)

    def test_body_without_joints_skipped(self, pipeline):
        pipeline.process_frame([body()], [observation(GestureKind.PICK_UP, 0.8)])
        assert pipeline.registry.get(TRACKING_ID) is None
        assert pipeline.engine.store.keys() == []


class TestFloor:
    def test_floor_correction_applied_before_classification(self, pipeline):
        x, y, z = MEDICATION_HAND
        raw_hand = (x, y - 0.5, z)

        _pick_up_frame(pipeline, hand=raw_hand, floor=FloorPlane(x=0.0, y=1.0, z=0.0, w=0.5))

        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 1

    def test_floor_kept_between_frames(self, pipeline):
        plane = FloorPlane(x=0.0, y=1.0, z=0.0, w=0.5)
        x, y, z = MEDICATION_HAND

        _pick_up_frame(pipeline, seconds=0, hand=(x, y - 0.5, z), floor=plane)
        _pick_up_frame(pipeline, seconds=1, hand=(x, y - 0.5, z))

        assert pipeline.floor == plane
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 2

    def test_update_floor_reuses_corrector(self, pipeline):
        plane = FloorPlane(x=0.0, y=0.97, z=0.24, w=0.9)
        corrector = pipeline.update_floor(plane)
        assert pipeline.update_floor(FloorPlane(x=0.0, y=0.97, z=0.24, w=0.9)) is corrector


class TestTrackingLost:
    def test_tracking_lost_clears_body(self, pipeline):
        _pick_up_frame(pipeline)
        state = pipeline.tracking_lost(TRACKING_ID)

        assert not state.tracked
        assert state.zone == "None"
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 1

    def test_tracking_lost_unknown_body(self, pipeline):
        assert pipeline.tracking_lost(12345) is None


class TestBodyRetention:
    def test_lost_bodies_forgotten_on_next_frame(self, pipeline):
        for tracking_id in range(1, 501):
            pipeline.process_frame([body(spine_mid=DINING_SPINE, tracking_id=tracking_id)], [])
            pipeline.tracking_lost(tracking_id)

        assert len(pipeline.registry) == 1
        assert list(pipeline.debug_snapshot()["bodies"]) == [500]

    def test_absent_body_forgotten_after_one_frame(self, pipeline):
        _pick_up_frame(pipeline, seconds=0)
        other = body(spine_mid=DINING_SPINE, tracking_id=7, body_id=3)

        pipeline.process_frame([other], [])
        assert pipeline.registry.get(TRACKING_ID) is not None

        pipeline.process_frame([other], [])
        assert pipeline.registry.get(TRACKING_ID) is None
        assert pipeline.registry.is_tracked(7)
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 1

    def test_body_seen_again_is_kept(self, pipeline):
        for seconds in range(5):
            _pick_up_frame(pipeline, seconds=seconds)
        assert pipeline.registry.is_tracked(TRACKING_ID)


class TestDebugSnapshot:
    def test_snapshot(self, pipeline, clock):
        _pick_up_frame(pipeline, seconds=0)
        clock.advance(10)

        snapshot = pipeline.debug_snapshot()

        assert snapshot["bodies"][TRACKING_ID]["zone"] == "Medication"
        assert snapshot["logs"] == {"PickUp@Medication": 1}
        assert snapshot["ages"] == {"PickUp@Medication": 10.0}

    def test_reset_history(self, pipeline):
        _pick_up_frame(pipeline)
        pipeline.reset_history()
        assert pipeline.engine.store.count(PICK_UP_MEDICATION) == 0
