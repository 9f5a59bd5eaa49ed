import pytest

from tests.helpers import observation
from sentinel_activity.analytics.resolver import GestureLabelResolver, WinnerPolicy
from sentinel_activity.types import GestureKind, NO_GESTURE


class TestThreshold:
    @pytest.mark.parametrize("confidence", [0.0, 0.04, 0.05])
    def test_at_or_below_threshold_is_no_detection(self, confidence):
        resolver = GestureLabelResolver()
        assert resolver.resolve([observation(GestureKind.PICK_UP, confidence)]) is None
        assert resolver.label([observation(GestureKind.PICK_UP, confidence)]) == NO_GESTURE

    def test_above_threshold_is_detection(self):
        resolver = GestureLabelResolver()
        winner = resolver.resolve([observation(GestureKind.PICK_UP, 0.06)])
        assert winner.kind == GestureKind.PICK_UP

    def test_kind_without_threshold_never_wins(self):
        resolver = GestureLabelResolver(thresholds={GestureKind.POUR: 0.05})
        assert resolver.resolve([observation(GestureKind.PICK_UP, 0.99)]) is None

    def test_require_detected(self):
        resolver = GestureLabelResolver(require_detected=True)
        obs = observation(GestureKind.POUR, 0.9, detected=False)
        assert resolver.resolve([obs]) is None

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            GestureLabelResolver(thresholds={GestureKind.POUR: 1.5})


class TestWinnerPolicy:
    def test_highest_confidence_wins(self):
        resolver = GestureLabelResolver()
        frame = [
            observation(GestureKind.PICK_UP, 0.3),
            observation(GestureKind.POUR, 0.7),
            observation(GestureKind.OPEN_DOOR, 0.5),
        ]
        assert resolver.label(frame) == "Pour"

    def test_tie_goes_to_earlier_declared_kind(self):
        resolver = GestureLabelResolver()
        frame = [
            observation(GestureKind.POUR, 0.5),
            observation(GestureKind.PICK_UP, 0.5),
        ]
        assert resolver.label(frame) == "PickUp"

    def test_result_does_not_depend_on_input_order(self):
        resolver = GestureLabelResolver()
        frame = [
            observation(GestureKind.HAND_TO_MOUTH, 0.4),
            observation(GestureKind.PUT_DOWN, 0.4),
            observation(GestureKind.OPEN_DOOR, 0.2),
        ]
        assert resolver.label(frame) == resolver.label(list(reversed(frame))) == "PutDown"

    def test_last_declared(self):
        resolver = GestureLabelResolver(policy=WinnerPolicy.LAST_DECLARED)
        frame = [
            observation(GestureKind.PICK_UP, 0.9),
            observation(GestureKind.POUR, 0.1),
        ]
        assert resolver.label(frame) == "Pour"

    def test_policy_from_string(self):
        assert GestureLabelResolver(policy="last_declared").policy == WinnerPolicy.LAST_DECLARED


class TestObservers:
    def test_resolve_event_notifies_callables_and_observers(self):
        resolver = GestureLabelResolver()
        seen = []

        class Recorder:
            def __init__(self):
                self.events = []

            def on_resolved_event(self, event):
                self.events.append(event)

        recorder = Recorder()
        resolver.subscribe(seen.append)
        resolver.subscribe(recorder)

        event = resolver.resolve_event(
            body_id=7,
            observations=[observation(GestureKind.PICK_UP, 0.8, seconds=3)],
            locate=lambda kind: "Pantry",
        )

        assert event.body_id == 7
        assert event.zone == "Pantry"
        assert event.confidence == 0.8
        assert seen == [event]
        assert recorder.events == [event]

    def test_no_winner_notifies_nobody(self):
        resolver = GestureLabelResolver()
        seen = []
        resolver.subscribe(seen.append)

        event = resolver.resolve_event(1, [observation(GestureKind.POUR, 0.01)], lambda kind: "FoodPrep")

        assert event is None
        assert seen == []

    def test_locate_receives_winning_kind(self):
        resolver = GestureLabelResolver()
        asked = []

        def locate(kind):
            asked.append(kind)
            return "FoodPrep"

        resolver.resolve_event(1, [observation(GestureKind.POUR, 0.6)], locate)
        assert asked == [GestureKind.POUR]

    def test_unsubscribe(self):
        resolver = GestureLabelResolver()
        seen = []
        resolver.subscribe(seen.append)
        resolver.unsubscribe(seen.append)

        resolver.resolve_event(1, [observation(GestureKind.POUR, 0.6)], lambda kind: "FoodPrep")
        assert seen == []
