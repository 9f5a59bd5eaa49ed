"""
Configuration schema for the activity processor service.

Zone table, per-kind zone priorities, gesture thresholds, activity rules,
history capacity and MQTT settings, loaded from YAML. Every section is
optional: omitted sections fall back to the built-in kitchen layout and
default rules.

Log keys in rule sections are written "Kind@Zone", e.g. "PickUp@Medication".
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import yaml

from sentinel_activity.analytics.bodies import BodyRegistry
from sentinel_activity.analytics.history import DEFAULT_CAPACITY, EventLogStore, LogKey
from sentinel_activity.analytics.resolver import (
    DEFAULT_THRESHOLD,
    GestureLabelResolver,
    WinnerPolicy,
)
from sentinel_activity.analytics.rules import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_RULES,
    ActivityRule,
    ActivityRuleEngine,
    AgeRequirement,
    OrderingConstraint,
)
from sentinel_activity.geometry import (
    DEFAULT_ZONE_PRIORITIES,
    DEFAULT_ZONES,
    JointProbe,
    Zone,
    ZoneCandidate,
    ZoneClassifier,
)
from sentinel_activity.pipeline import ActivityPipeline
from sentinel_activity.types import GestureKind


def parse_log_key(text: str) -> LogKey:
    """
    Parse "Kind@Zone" into a log key.

    Raises:
        ValueError: If the text is malformed or names an unknown kind
    """
    kind, sep, zone = str(text).partition("@")
    if not sep or not kind or not zone:
        raise ValueError(f"Log key must look like 'Kind@Zone', got '{text}'")
    return (GestureKind.parse(kind), zone)


@dataclass(frozen=True)
class ZoneConfig:
    """One zone of the zone table."""

    name: str
    anchor: Tuple[float, float, float]
    tolerance_x: float
    tolerance_z: float
    uses_y: bool = False
    tolerance_y: float = 0.0

    def __post_init__(self):
        if len(self.anchor) != 3:
            raise ValueError(
                f"Zone '{self.name}' anchor must have 3 coordinates, got {len(self.anchor)}"
            )
        object.__setattr__(self, "anchor", tuple(float(c) for c in self.anchor))

    def to_zone(self) -> Zone:
        return Zone(
            name=self.name,
            anchor=self.anchor,
            tolerance_x=self.tolerance_x,
            tolerance_z=self.tolerance_z,
            uses_y=self.uses_y,
            tolerance_y=self.tolerance_y,
        )


@dataclass(frozen=True)
class CandidateConfig:
    """One entry of a kind's zone priority list."""

    zone: str
    probe: str = "body"  # "body" (spine) or "hands" (fingertips)
    tolerance_x: Optional[float] = None
    tolerance_z: Optional[float] = None
    tolerance_y: Optional[float] = None

    def __post_init__(self):
        valid_probes = {probe.value for probe in JointProbe}
        if self.probe not in valid_probes:
            raise ValueError(
                f"Invalid probe '{self.probe}' for zone '{self.zone}'. "
                f"Must be one of {sorted(valid_probes)}"
            )

    def to_candidate(self) -> ZoneCandidate:
        return ZoneCandidate(
            zone=self.zone,
            probe=JointProbe(self.probe),
            tolerance_x=self.tolerance_x,
            tolerance_z=self.tolerance_z,
            tolerance_y=self.tolerance_y,
        )


@dataclass(frozen=True)
class GestureConfig:
    """Label resolution and commit settings."""

    thresholds: Dict[str, float] = field(
        default_factory=lambda: {kind.value: DEFAULT_THRESHOLD for kind in GestureKind}
    )
    policy: str = WinnerPolicy.HIGHEST_CONFIDENCE.value
    require_detected: bool = False
    min_confidence: float = DEFAULT_MIN_CONFIDENCE

    def __post_init__(self):
        valid_policies = {policy.value for policy in WinnerPolicy}
        if self.policy not in valid_policies:
            raise ValueError(
                f"Invalid policy: {self.policy}. Must be one of {sorted(valid_policies)}"
            )

        for kind, threshold in self.thresholds.items():
            GestureKind.parse(kind)
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(
                    f"Threshold for {kind} must be in [0.0, 1.0], got {threshold}"
                )

        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(
                f"min_confidence must be in [0.0, 1.0], got {self.min_confidence}"
            )

    def kind_thresholds(self) -> Dict[GestureKind, float]:
        return {GestureKind.parse(kind): float(t) for kind, t in self.thresholds.items()}


@dataclass(frozen=True)
class AgeConfig:
    key: str  # "Kind@Zone"
    max_age_seconds: float

    def to_requirement(self) -> AgeRequirement:
        return AgeRequirement(parse_log_key(self.key), float(self.max_age_seconds))


@dataclass(frozen=True)
class OrderingConfig:
    newer: str  # "Kind@Zone" that must be more recent
    older: str

    def to_constraint(self) -> OrderingConstraint:
        return OrderingConstraint(parse_log_key(self.newer), parse_log_key(self.older))


@dataclass(frozen=True)
class RuleConfig:
    """
    One activity rule.

    Example YAML:
        - name: "MedicationTaken"
          trigger: "HandToMouth"        # or "HandToMouth@Dining"
          requires:
            - {key: "PickUp@Medication", max_age_seconds: 120}
          ordering: []
          consumes: []                  # default: required logs (+ trigger log)
    """

    name: str
    trigger: str
    requires: List[AgeConfig] = field(default_factory=list)
    ordering: List[OrderingConfig] = field(default_factory=list)
    consumes: List[str] = field(default_factory=list)

    def to_rule(self) -> ActivityRule:
        if "@" in self.trigger:
            trigger_kind, trigger_zone = parse_log_key(self.trigger)
        else:
            trigger_kind, trigger_zone = GestureKind.parse(self.trigger), None

        return ActivityRule(
            name=self.name,
            trigger_kind=trigger_kind,
            trigger_zone=trigger_zone,
            requirements=tuple(req.to_requirement() for req in self.requires),
            ordering=tuple(order.to_constraint() for order in self.ordering),
            consumes=tuple(parse_log_key(key) for key in self.consumes),
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "RuleConfig":
        return cls(
            name=data["name"],
            trigger=data["trigger"],
            requires=[AgeConfig(**req) for req in data.get("requires", [])],
            ordering=[OrderingConfig(**order) for order in data.get("ordering", [])],
            consumes=list(data.get("consumes", [])),
        )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration. Topics may contain {service_id}."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0  # Data plane QoS (observations in, status out)

    observation_topic: str = "sentinel/data/observations/{service_id}"
    tracking_lost_topic: str = "sentinel/data/tracking_lost/{service_id}"
    activity_topic: str = "sentinel/data/activities/{service_id}"
    body_status_topic: str = "sentinel/data/bodies/{service_id}"
    command_topic: str = "sentinel/control/{service_id}/commands"
    status_topic: str = "sentinel/control/{service_id}/status"

    def __post_init__(self):
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topics(self, service_id: str) -> Dict[str, str]:
        """All topics with {service_id} substituted."""
        return {
            "observation": self.observation_topic.format(service_id=service_id),
            "tracking_lost": self.tracking_lost_topic.format(service_id=service_id),
            "activity": self.activity_topic.format(service_id=service_id),
            "body_status": self.body_status_topic.format(service_id=service_id),
            "command": self.command_topic.format(service_id=service_id),
            "status": self.status_topic.format(service_id=service_id),
        }


@dataclass(frozen=True)
class ProcessorConfig:
    """
    Main configuration for the activity processor.

    Immutable after construction; validated by building the zone classifier
    and the rules once, so a bad table fails at startup.
    """

    service_id: str

    zones: List[ZoneConfig] = field(default_factory=list)
    priorities: Dict[str, List[CandidateConfig]] = field(default_factory=dict)
    gestures: GestureConfig = field(default_factory=GestureConfig)
    rules: List[RuleConfig] = field(default_factory=list)

    history_capacity: int = DEFAULT_CAPACITY
    input_queue_size: int = 1024
    publish_debug: bool = False

    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if self.history_capacity < 1:
            raise ValueError(
                f"history_capacity must be >= 1, got {self.history_capacity}"
            )

        if self.input_queue_size < 1:
            raise ValueError(
                f"input_queue_size must be >= 1, got {self.input_queue_size}"
            )

        names = [zone.name for zone in self.zones]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate zone names: {names}")

        # Fail fast on dangling zone references and malformed rules
        ZoneClassifier(self.zone_table(), self.zone_priorities())
        ActivityRuleEngine(rules=self.activity_rules())

    def zone_table(self) -> Dict[str, Zone]:
        if not self.zones:
            return dict(DEFAULT_ZONES)
        return {zone.name: zone.to_zone() for zone in self.zones}

    def zone_priorities(self) -> Dict[GestureKind, List[ZoneCandidate]]:
        if not self.priorities:
            return {kind: list(candidates) for kind, candidates in DEFAULT_ZONE_PRIORITIES.items()}
        return {
            GestureKind.parse(kind): [candidate.to_candidate() for candidate in candidates]
            for kind, candidates in self.priorities.items()
        }

    def activity_rules(self) -> Tuple[ActivityRule, ...]:
        if not self.rules:
            return DEFAULT_RULES
        return tuple(rule.to_rule() for rule in self.rules)

    @classmethod
    def from_dict(cls, data: Dict) -> "ProcessorConfig":
        """
        Build from a parsed YAML document.

        Raises:
            ValueError: If a section is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a mapping")

        try:
            zones = [
                ZoneConfig(
                    name=z["name"],
                    anchor=tuple(z["anchor"]),
                    tolerance_x=z["tolerance_x"],
                    tolerance_z=z["tolerance_z"],
                    uses_y=z.get("uses_y", False),
                    tolerance_y=z.get("tolerance_y", 0.0),
                )
                for z in data.get("zones") or []
            ]

            priorities = {
                kind: [CandidateConfig(**candidate) for candidate in candidates]
                for kind, candidates in (data.get("priorities") or {}).items()
            }

            gestures = GestureConfig(**(data.get("gestures") or {}))
            rules = [RuleConfig.from_dict(rule) for rule in data.get("rules") or []]
            mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))

            return cls(
                service_id=data["service_id"],
                zones=zones,
                priorities=priorities,
                gestures=gestures,
                rules=rules,
                history_capacity=data.get("history_capacity", DEFAULT_CAPACITY),
                input_queue_size=data.get("input_queue_size", 1024),
                publish_debug=data.get("publish_debug", False),
                mqtt_config=mqtt_config,
            )
        except KeyError as e:
            raise ValueError(f"Missing required configuration field: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}")

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ProcessorConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "kitchen-1"
            history_capacity: 32

            zones:
              - name: "Medication"
                anchor: [1.11, 0.86, 1.68]
                tolerance_x: 0.1
                tolerance_z: 0.1
                uses_y: true
                tolerance_y: 0.1

            priorities:
              PickUp:
                - {zone: "Medication", probe: "hands"}

            gestures:
              policy: "highest_confidence"
              min_confidence: 0.4

            mqtt_config:
              broker: "localhost"
              port: 1883
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})


def build_pipeline(
    config: ProcessorConfig,
    clock: Optional[Callable[[], datetime]] = None,
) -> ActivityPipeline:
    """Assemble the inference core described by a configuration."""
    clock = clock or datetime.now

    classifier = ZoneClassifier(config.zone_table(), config.zone_priorities())
    resolver = GestureLabelResolver(
        thresholds=config.gestures.kind_thresholds(),
        policy=WinnerPolicy(config.gestures.policy),
        require_detected=config.gestures.require_detected,
    )
    engine = ActivityRuleEngine(
        rules=config.activity_rules(),
        store=EventLogStore(config.history_capacity),
        clock=clock,
        min_confidence=config.gestures.min_confidence,
    )

    return ActivityPipeline(
        classifier=classifier,
        resolver=resolver,
        engine=engine,
        registry=BodyRegistry(),
        clock=clock,
    )
