"""
Sentinel CLI - Command-line interface for the activity processor.

Offline tools (no broker needed) and MQTT control commands.

Usage:
    sentinel-cli replay recordings/breakfast.jsonl --config config/sentinel_processor/processor_config.yaml
    sentinel-cli classify PickUp --hand 1.12 0.87 1.69 --body 0.9 1.0 1.7
    sentinel-cli zones
    sentinel-cli pause
    sentinel-cli clear-history
"""

__version__ = "1.0.0"
