#!/usr/bin/env python3
"""
Activity Processor Service - Entry Point
========================================

Starts the Sentinel activity processor, which:
- Subscribes to observation frames and tracking-lost notifications (MQTT)
- Infers activities (medication taken, meal eaten) from gesture histories
- Publishes activity events (and optionally per-body status) to MQTT
- Responds to control commands via the MQTT control plane

Usage:
    python run_activity_processor.py --config config/sentinel_processor/processor_config.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create control plane, publisher and subscriber
    4. Create ActivityProcessorService
    5. Start service (non-blocking)
    6. Wait for stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown

Logs:
    - Console: INFO level
    - File: logs/activity_processor.log (INFO level)
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from sentinel_control import MQTTControlPlane
from sentinel_mqtt import ActivityEventPublisher, ObservationSubscriber, create_logger
from sentinel_processor import ActivityProcessorService
from sentinel_processor.config import ProcessorConfig


def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """Configure the root logger: stdout plus an optional file."""
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


class ProcessorApp:
    """
    Application wrapper for ActivityProcessorService.

    Handles configuration loading, component wiring, signals and shutdown.
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None, verbose: bool = False):
        self.config_path = config_path
        self.logger = setup_logging(log_file, logging.DEBUG if verbose else logging.INFO)

        self.config: Optional[ProcessorConfig] = None
        self.control_plane: Optional[MQTTControlPlane] = None
        self.publisher: Optional[ActivityEventPublisher] = None
        self.subscriber: Optional[ObservationSubscriber] = None
        self.service: Optional[ActivityProcessorService] = None

        self._shutdown_requested = False

    def setup(self):
        self.logger.info("=" * 80)
        self.logger.info("🚀 Sentinel Activity Processor - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = ProcessorConfig.from_yaml(self.config_path)
        service_id = self.config.service_id
        mqtt_config = self.config.mqtt_config
        topics = mqtt_config.topics(service_id)
        self.logger.info(f"✅ Configuration loaded (service_id={service_id})")

        mqtt_logger = create_logger(component="activity_processor")

        self.control_plane = MQTTControlPlane(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            command_topic=topics["command"],
            status_topic=topics["status"],
            client_id=f"sentinel_control_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
        )

        self.publisher = ActivityEventPublisher(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            topic=topics["activity"],
            status_topic=topics["body_status"] if self.config.publish_debug else None,
            logger=mqtt_logger,
            client_id=f"sentinel_activities_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
        )

        self.service = ActivityProcessorService(
            config=self.config,
            control_plane=self.control_plane,
            publisher=self.publisher,
        )

        self.subscriber = ObservationSubscriber(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            observation_topic=topics["observation"],
            tracking_lost_topic=topics["tracking_lost"],
            on_observation=self.service.submit_observation,
            on_tracking_lost=self.service.notify_tracking_lost,
            logger=mqtt_logger,
            client_id=f"sentinel_observations_{service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
        )
        self.service.subscriber = self.subscriber

        self.logger.info(f"  - Observation topic: {topics['observation']}")
        self.logger.info(f"  - Activity topic: {topics['activity']}")
        self.logger.info(f"  - Command topic: {topics['command']}")

        self.service.setup()
        self.logger.info("=" * 80)

    def run(self):
        """Block until shutdown is requested."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()
            self.logger.info("✅ Service started successfully")
            self.logger.info("Press Ctrl+C to stop")
            self.service.wait()
        except RuntimeError as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

    def shutdown(self):
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True
        self.logger.info("🛑 Shutting down activity processor")

        if self.service:
            self.service.stop()

        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Sentinel Activity Processor - gestures in, activities out (MQTT)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_activity_processor.py --config config/sentinel_processor/processor_config.yaml
  python run_activity_processor.py --config config/sentinel_processor/processor_config.yaml --no-log-file -v
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to processor configuration YAML file'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/activity_processor.log'),
        help='Path to log file (default: logs/activity_processor.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Debug logging'
    )

    return parser.parse_args(argv)


def main():
    args = parse_args()
    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = ProcessorApp(config_path=args.config, log_file=log_file, verbose=args.verbose)

    try:
        app.setup()
    except (OSError, ValueError) as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    app.run()


if __name__ == '__main__':
    main()
