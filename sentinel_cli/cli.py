"""
Sentinel CLI - Main entry point.

Offline commands run the inference core locally; control commands are sent
to a running processor over MQTT.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO

import yaml

from sentinel_activity.geometry import FloorCorrector, FloorPlane
from sentinel_activity.types import ActivityEvent, GestureKind
from sentinel_mqtt.schemas import ObservationMessage, TrackingLostMessage
from sentinel_processor.config import MQTTConfig, ProcessorConfig, build_pipeline
from sentinel_processor.service import ActivityProcessorService

from .mqtt_client import MQTTCommandClient

DEFAULT_SERVICE_ID = "kitchen-1"

# CLI name -> control plane command
CONTROL_COMMANDS = {
    "pause": "pause",
    "resume": "resume",
    "status": "status",
    "list-zones": "list_zones",
    "clear-history": "clear_history",
}


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")


def load_processor_config(config_path: Optional[str], service_id: str) -> ProcessorConfig:
    """Processor config from YAML, or the built-in defaults."""
    if config_path is None:
        return ProcessorConfig(service_id=service_id)
    data = load_yaml_config(config_path)
    data.setdefault("service_id", service_id)
    return ProcessorConfig.from_dict(data)


def iter_replay_lines(stream: TextIO) -> Iterator[Dict[str, Any]]:
    """
    Parse a JSONL recording, skipping blank lines and '#' comments.

    Raises:
        ValueError: On a malformed line (with its line number)
    """
    for line_no, line in enumerate(stream, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Line {line_no}: not JSON ({e})")
        if not isinstance(data, dict):
            raise ValueError(f"Line {line_no}: expected a JSON object")
        yield data


def replay(stream: TextIO, config: ProcessorConfig, out: Optional[TextIO] = None) -> List[ActivityEvent]:
    """
    Run a recording through the pipeline and print every fired activity.

    Each line is an ObservationMessage, or a tracking-lost notification
    written as {"type": "tracking_lost", "timestamp": ..., "tracking_id": ...}.
    Output goes to stdout unless another stream is given.
    """
    service = ActivityProcessorService(config)
    fired: List[ActivityEvent] = []

    for data in iter_replay_lines(stream):
        if data.get("type") == "tracking_lost":
            service.notify_tracking_lost(TrackingLostMessage.from_dict(data))
        else:
            service.submit_observation(ObservationMessage.from_dict(data))

        for activity in service.process_pending():
            print(f"{activity.timestamp.isoformat()}  {activity.name}", file=out)
            fired.append(activity)

    stats = service.get_stats()
    print(
        f"Replayed {stats['frames_processed']} frames, {len(fired)} activities",
        file=out,
    )
    return fired


def classify(
    config: ProcessorConfig,
    kind: str,
    hands: List[List[float]],
    body: Optional[List[float]] = None,
    floor: Optional[List[float]] = None,
) -> str:
    """Zone of one gesture given raw joints (floor-corrected first if a plane is given)."""
    pipeline = build_pipeline(config)
    corrector = FloorCorrector(FloorPlane(*floor) if floor else FloorPlane.identity())

    hand_points = corrector.correct_many([tuple(h) for h in hands])
    body_point = corrector.correct(tuple(body)) if body else None

    return pipeline.classifier.classify(
        GestureKind.parse(kind), hands=hand_points, body=body_point
    )


def format_zone_table(config: ProcessorConfig) -> str:
    lines = [f"{'Zone':<14} {'Anchor (x, y, z)':<26} {'Tol x':>6} {'Tol z':>6} {'Tol y':>6}"]
    for name, zone in config.zone_table().items():
        anchor = "(" + ", ".join(f"{c:.2f}" for c in zone.anchor) + ")"
        tol_y = f"{zone.tolerance_y:.2f}" if zone.uses_y else "-"
        lines.append(
            f"{name:<14} {anchor:<26} "
            f"{zone.tolerance_x:>6.2f} {zone.tolerance_z:>6.2f} {tol_y:>6}"
        )

    lines.append("")
    for kind, candidates in config.zone_priorities().items():
        entries = ", ".join(
            f"{c.zone}[{c.probe.value}]" for c in candidates
        )
        lines.append(f"{kind.value:<12} -> {entries}")
    return "\n".join(lines)


def send_command(
    command: Dict[str, Any],
    service_id: str = DEFAULT_SERVICE_ID,
    broker: str = "localhost",
    port: int = 1883
) -> None:
    """Send a command to a running processor's control plane."""
    topic = MQTTConfig().topics(service_id)["command"]

    client = MQTTCommandClient(broker=broker, port=port)
    client.send_command(topic, command, qos=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentinel-cli",
        description="Sentinel CLI - Activity inference tools and processor control",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Offline (no broker)
  sentinel-cli replay recordings/breakfast.jsonl --config config/sentinel_processor/processor_config.yaml
  sentinel-cli classify PickUp --hand 1.12 0.87 1.69 --body 0.9 1.0 1.7
  sentinel-cli zones

  # Control a running processor
  sentinel-cli pause
  sentinel-cli resume
  sentinel-cli status
  sentinel-cli list-zones
  sentinel-cli clear-history
"""
    )

    parser.add_argument(
        "--service-id",
        default=DEFAULT_SERVICE_ID,
        help=f"Target service ID (default: {DEFAULT_SERVICE_ID})"
    )
    parser.add_argument("--broker", default="localhost", help="MQTT broker host (default: localhost)")
    parser.add_argument("--port", type=int, default=1883, help="MQTT broker port (default: 1883)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    replay_cmd = subparsers.add_parser("replay", help="Replay a JSONL observation recording")
    replay_cmd.add_argument("recording", help="Path to JSONL recording ('-' for stdin)")
    replay_cmd.add_argument("--config", help="Processor config YAML (default: built-in layout)")

    classify_cmd = subparsers.add_parser("classify", help="Classify the zone of a gesture")
    classify_cmd.add_argument("kind", help=f"Gesture kind ({', '.join(k.value for k in GestureKind)})")
    classify_cmd.add_argument(
        "--hand", nargs=3, type=float, action="append", default=[],
        metavar=("X", "Y", "Z"), help="Hand position (repeat for both hands)"
    )
    classify_cmd.add_argument(
        "--body", nargs=3, type=float, metavar=("X", "Y", "Z"), help="Spine-mid position"
    )
    classify_cmd.add_argument(
        "--floor", nargs=4, type=float, metavar=("FX", "FY", "FZ", "FW"),
        help="Floor plane (positions are taken as floor-relative if omitted)"
    )
    classify_cmd.add_argument("--config", help="Processor config YAML")

    zones_cmd = subparsers.add_parser("zones", help="Print the zone table and priorities")
    zones_cmd.add_argument("--config", help="Processor config YAML")

    subparsers.add_parser("pause", help="Pause activity inference")
    subparsers.add_parser("resume", help="Resume activity inference")
    subparsers.add_parser("status", help="Query service status")
    subparsers.add_parser("list-zones", help="List zones of the running processor")
    subparsers.add_parser("clear-history", help="Clear all gesture history")

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "replay":
            config = load_processor_config(args.config, args.service_id)
            if args.recording == "-":
                replay(sys.stdin, config)
            else:
                with open(args.recording) as f:
                    replay(f, config)

        elif args.command == "classify":
            if not args.hand and args.body is None:
                parser.error("classify needs at least one --hand or --body")
            config = load_processor_config(args.config, args.service_id)
            print(classify(config, args.kind, args.hand, args.body, args.floor))

        elif args.command == "zones":
            config = load_processor_config(args.config, args.service_id)
            print(format_zone_table(config))

        elif args.command in CONTROL_COMMANDS:
            command = {"command": CONTROL_COMMANDS[args.command]}
            send_command(command, args.service_id, args.broker, args.port)

    except (OSError, ValueError, RuntimeError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
