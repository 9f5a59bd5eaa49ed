from pathlib import Path

import pytest
import yaml

from tests.helpers import resolved
from sentinel_activity.analytics.resolver import WinnerPolicy
from sentinel_activity.geometry import DEFAULT_ZONES
from sentinel_activity.types import GestureKind
from sentinel_processor.config import (
    CandidateConfig,
    GestureConfig,
    MQTTConfig,
    ProcessorConfig,
    RuleConfig,
    ZoneConfig,
    build_pipeline,
    parse_log_key,
)

SHIPPED_CONFIG = Path(__file__).resolve().parent.parent / "config" / "sentinel_processor" / "processor_config.yaml"


def _write(tmp_path, data):
    path = tmp_path / "processor.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestParseLogKey:
    def test_valid(self):
        assert parse_log_key("PickUp@Medication") == (GestureKind.PICK_UP, "Medication")

    @pytest.mark.parametrize("text", ["PickUp", "@Pantry", "PickUp@", "Jump@Pantry"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_log_key(text)


class TestDefaults:
    def test_empty_sections_fall_back(self):
        config = ProcessorConfig(service_id="kitchen-1")
        assert config.zone_table() == DEFAULT_ZONES
        assert [rule.name for rule in config.activity_rules()] == ["MedicationTaken", "EatingMeal"]
        assert config.gestures.policy == "highest_confidence"
        assert config.gestures.min_confidence == 0.4

    def test_shipped_yaml_matches_built_in_layout(self):
        config = ProcessorConfig.from_yaml(SHIPPED_CONFIG)

        assert config.service_id == "kitchen-1"
        assert config.zone_table() == DEFAULT_ZONES
        shipped = {rule.name: rule for rule in config.activity_rules()}
        defaults = {rule.name: rule for rule in ProcessorConfig(service_id="x").activity_rules()}
        assert shipped == defaults

    def test_empty_yaml_needs_service_id(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="service_id"):
            ProcessorConfig.from_yaml(path)


class TestValidation:
    def test_unknown_zone_reference(self, tmp_path):
        path = _write(tmp_path, {
            "service_id": "kitchen-1",
            "priorities": {"PickUp": [{"zone": "Garage"}]},
        })
        with pytest.raises(ValueError, match="Garage"):
            ProcessorConfig.from_yaml(path)

    def test_duplicate_zone_names(self):
        zone = ZoneConfig("Pantry", (0.0, 1.0, 1.0), 0.1, 0.1)
        with pytest.raises(ValueError, match="Duplicate"):
            ProcessorConfig(service_id="x", zones=[zone, zone])

    def test_invalid_probe(self):
        with pytest.raises(ValueError):
            CandidateConfig(zone="Pantry", probe="feet")

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            GestureConfig(policy="random")

    def test_unknown_gesture_kind_threshold(self):
        with pytest.raises(ValueError):
            GestureConfig(thresholds={"Jump": 0.1})

    def test_rule_with_unknown_kind(self):
        with pytest.raises(ValueError):
            ProcessorConfig(service_id="x", rules=[RuleConfig(name="R", trigger="Jump")])

    def test_missing_zone_field(self):
        with pytest.raises(ValueError, match="Missing"):
            ProcessorConfig.from_dict({"service_id": "x", "zones": [{"name": "Pantry"}]})

    def test_unknown_section_field(self):
        with pytest.raises(ValueError):
            ProcessorConfig.from_dict({"service_id": "x", "gestures": {"speed": 3}})

    def test_history_capacity(self):
        with pytest.raises(ValueError):
            ProcessorConfig(service_id="x", history_capacity=0)

    def test_mqtt_port(self):
        with pytest.raises(ValueError):
            MQTTConfig(port=0)


class TestCustomConfig:
    def test_custom_layout_and_rule(self, tmp_path):
        path = _write(tmp_path, {
            "service_id": "flat-2",
            "history_capacity": 4,
            "zones": [
                {"name": "Kettle", "anchor": [0.0, 1.0, 2.0], "tolerance_x": 0.2, "tolerance_z": 0.2},
                {"name": "Sofa", "anchor": [2.0, 0.5, 3.0], "tolerance_x": 0.5, "tolerance_z": 0.5},
            ],
            "priorities": {
                "Pour": [{"zone": "Kettle"}],
                "HandToMouth": [{"zone": "Sofa"}],
            },
            "gestures": {"thresholds": {"Pour": 0.3, "HandToMouth": 0.3}, "policy": "last_declared"},
            "rules": [{
                "name": "TeaBreak",
                "trigger": "HandToMouth@Sofa",
                "requires": [{"key": "Pour@Kettle", "max_age_seconds": 300}],
            }],
        })

        config = ProcessorConfig.from_yaml(path)
        rule = config.activity_rules()[0]

        assert sorted(config.zone_table()) == ["Kettle", "Sofa"]
        assert rule.trigger_zone == "Sofa"
        assert rule.consumes == ((GestureKind.POUR, "Kettle"), (GestureKind.HAND_TO_MOUTH, "Sofa"))

        pipeline = build_pipeline(config)
        assert pipeline.resolver.policy == WinnerPolicy.LAST_DECLARED
        assert pipeline.engine.store.capacity == 4

        pipeline.engine.on_resolved_event(resolved(GestureKind.POUR, "Kettle", seconds=0))
        fired = pipeline.engine.on_resolved_event(resolved(GestureKind.HAND_TO_MOUTH, "Sofa", seconds=200))
        assert [activity.name for activity in fired] == ["TeaBreak"]

    def test_rule_ordering_from_dict(self):
        rule = RuleConfig.from_dict({
            "name": "R",
            "trigger": "HandToMouth",
            "requires": [
                {"key": "OpenDoor@Pantry", "max_age_seconds": 10},
                {"key": "Pour@FoodPrep", "max_age_seconds": 10},
            ],
            "ordering": [{"newer": "Pour@FoodPrep", "older": "OpenDoor@Pantry"}],
        }).to_rule()

        assert rule.ordering[0].newer == (GestureKind.POUR, "FoodPrep")

    def test_build_pipeline_uses_clock(self, clock):
        pipeline = build_pipeline(ProcessorConfig(service_id="x"), clock=clock)
        pipeline.engine.on_resolved_event(resolved(GestureKind.POUR, "FoodPrep", seconds=0))
        clock.advance(5)
        assert pipeline.engine.log_ages() == {"Pour@FoodPrep": 5.0}


class TestMQTTConfig:
    def test_topics_substitute_service_id(self):
        topics = MQTTConfig().topics("kitchen-1")
        assert topics["observation"] == "sentinel/data/observations/kitchen-1"
        assert topics["command"] == "sentinel/control/kitchen-1/commands"
        assert topics["status"] == "sentinel/control/kitchen-1/status"
        assert set(topics) == {
            "observation", "tracking_lost", "activity", "body_status", "command", "status",
        }

    def test_from_yaml_section(self, tmp_path):
        path = _write(tmp_path, {
            "service_id": "kitchen-1",
            "mqtt_config": {"broker": "mqtt.local", "port": 8883, "qos": 1},
        })
        config = ProcessorConfig.from_yaml(path)
        assert config.mqtt_config.broker == "mqtt.local"
        assert config.mqtt_config.qos == 1
