"""
sentinel_processor - Activity processor service

Bounded Context: Service assembly and runtime
Responsibilities:
  - YAML configuration (zones, priorities, thresholds, rules, MQTT)
  - Building the inference pipeline from configuration
  - Serialising all inputs onto one evaluation thread
  - Publishing inferred activities
"""

from .config import (
    AgeConfig,
    CandidateConfig,
    GestureConfig,
    MQTTConfig,
    OrderingConfig,
    ProcessorConfig,
    RuleConfig,
    ZoneConfig,
    build_pipeline,
    parse_log_key,
)
from .service import ActivityProcessorService

__all__ = [
    "AgeConfig",
    "CandidateConfig",
    "GestureConfig",
    "MQTTConfig",
    "OrderingConfig",
    "ProcessorConfig",
    "RuleConfig",
    "ZoneConfig",
    "build_pipeline",
    "parse_log_key",
    "ActivityProcessorService",
]
