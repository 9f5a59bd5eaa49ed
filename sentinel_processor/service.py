"""
Activity Processor Service - Main inference orchestrator.

Consumes observation frames and tracking-lost notifications, runs them
through the activity pipeline, and publishes inferred activities.

Threading Model:
- MQTT subscriber thread (paho internal): deserializes, enqueues
- Control Plane thread (paho internal): enqueues commands
- Evaluation Thread (ours): the ONLY thread touching the pipeline
- MQTT Publisher Thread (ours): drains the publish queue

Every input goes through one input queue, so pushes and rule evaluations
happen strictly in arrival order no matter how many sources feed it.
process_pending() drains the same queue synchronously (offline replay).
"""

import logging
import queue
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sentinel_activity.pipeline import ActivityPipeline
from sentinel_activity.types import ActivityEvent
from sentinel_mqtt.schemas import (
    SCHEMA_VERSION,
    ActivityEventMessage,
    BodyStatus,
    BodyStatusMessage,
    ObservationMessage,
    Timestamp,
    TrackingLostMessage,
)
from sentinel_processor.config import ProcessorConfig, build_pipeline

logger = logging.getLogger(__name__)

ActivityListener = Callable[[ActivityEvent], object]

# Commands executed on the evaluation thread
QUEUED_COMMANDS = ("pause", "resume", "status", "clear_history")


class ActivityProcessorService:
    """
    Main activity processing service.

    Thread Safety:
    - pipeline: NOT thread-safe, only touched by the evaluation thread
      (or by the caller of process_pending when no thread is running)
    - input_queue / publish_queue: thread-safe queue.Queue
    - body registry: own lock (debug reads from any thread)

    Usage (live):
        service = ActivityProcessorService(
            config=config,
            control_plane=control_plane,
            subscriber=observation_subscriber,
            publisher=activity_publisher,
        )
        service.setup()
        service.start()
        service.wait()

    Usage (offline):
        service = ActivityProcessorService(config)
        service.submit_observation(message)
        fired = service.process_pending()
    """

    def __init__(
        self,
        config: ProcessorConfig,
        pipeline: Optional[ActivityPipeline] = None,
        control_plane=None,  # MQTTControlPlane
        publisher=None,  # ActivityEventPublisher
        subscriber=None,  # ObservationSubscriber
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.pipeline = pipeline if pipeline is not None else build_pipeline(config, clock)
        self.control_plane = control_plane
        self.publisher = publisher
        self.subscriber = subscriber

        self.input_queue: "queue.Queue[Tuple[str, Any]]" = queue.Queue(
            maxsize=config.input_queue_size
        )
        self.publish_queue: "queue.Queue[Tuple[str, Any]]" = queue.Queue(maxsize=512)

        self.stop_event = threading.Event()
        self.evaluation_thread: Optional[threading.Thread] = None
        self.publisher_thread: Optional[threading.Thread] = None

        self._paused = False
        self._running = False
        self._listeners: List[ActivityListener] = []

        self._stats_lock = threading.Lock()
        self._stats = {
            "frames_processed": 0,
            "frames_skipped_paused": 0,
            "frames_dropped": 0,
            "activities": 0,
        }

        logger.info(
            f"ActivityProcessorService initialized for service_id={config.service_id}"
        )

    # ─────────────────────────────────────────────────────────────────────
    # Inputs (any thread)
    # ─────────────────────────────────────────────────────────────────────

    def submit_observation(self, message: ObservationMessage) -> bool:
        """Enqueue a frame. Returns False (and counts a drop) if the queue is full."""
        try:
            self.input_queue.put_nowait(("observation", message))
            return True
        except queue.Full:
            self._bump("frames_dropped")
            logger.warning(f"Input queue full, dropping frame {message.frame_id}")
            return False

    def notify_tracking_lost(self, message: Union[TrackingLostMessage, int]) -> None:
        tracking_id = message.tracking_id if isinstance(message, TrackingLostMessage) else int(message)
        self.input_queue.put(("tracking_lost", tracking_id))

    def submit_command(self, command: str, command_data: Optional[Dict[str, Any]] = None) -> None:
        """
        Enqueue a command for the evaluation thread.

        Raises:
            ValueError: If the command is not executed on the evaluation thread
        """
        if command not in QUEUED_COMMANDS:
            raise ValueError(f"Unknown queued command '{command}'. Must be one of {QUEUED_COMMANDS}")
        self.input_queue.put(("command", (command, dict(command_data or {}))))

    def add_activity_listener(self, listener: ActivityListener) -> None:
        """Called on the evaluation thread for every fired activity."""
        self._listeners.append(listener)

    # ─────────────────────────────────────────────────────────────────────
    # Evaluation (single thread)
    # ─────────────────────────────────────────────────────────────────────

    def process_pending(self) -> List[ActivityEvent]:
        """
        Drain the input queue on the calling thread.

        Must not be used while the evaluation thread is running.

        Returns:
            Activities fired while draining
        """
        if self.evaluation_thread is not None and self.evaluation_thread.is_alive():
            raise RuntimeError("process_pending() called while the evaluation thread is running")

        fired: List[ActivityEvent] = []
        while True:
            try:
                item = self.input_queue.get_nowait()
            except queue.Empty:
                return fired
            fired.extend(self._handle(item))

    def _handle(self, item: Tuple[str, Any]) -> List[ActivityEvent]:
        kind, payload = item

        if kind == "observation":
            return self._handle_observation(payload)
        if kind == "tracking_lost":
            self.pipeline.tracking_lost(payload)
            return []
        if kind == "command":
            command, command_data = payload
            self._execute_command(command, command_data)
            return []

        raise ValueError(f"Unknown input item kind: {kind}")

    def _handle_observation(self, message: ObservationMessage) -> List[ActivityEvent]:
        if self._paused:
            self._bump("frames_skipped_paused")
            return []

        fired = self.pipeline.process_frame(
            message.body_frames(),
            message.gesture_observations(),
            floor=message.floor_plane(),
        )
        self._bump("frames_processed")

        for activity in fired:
            self._bump("activities")
            self._enqueue_publish(
                "activity",
                ActivityEventMessage.from_activity(activity, self.config.service_id),
            )
            for listener in list(self._listeners):
                listener(activity)

        if self.config.publish_debug:
            self._enqueue_publish("body_status", self._build_body_status(message.frame_id))

        return fired

    def _build_body_status(self, frame_id: int) -> BodyStatusMessage:
        bodies = [
            BodyStatus.from_state(state)
            for state in self.pipeline.registry.snapshot().values()
        ]
        return BodyStatusMessage(
            schema_version=SCHEMA_VERSION,
            timestamp=Timestamp.now(),
            service_id=self.config.service_id,
            frame_id=frame_id,
            bodies=bodies,
            logs=self.pipeline.engine.store.snapshot(),
        )

    def _evaluation_loop(self):
        logger.info("Evaluation loop started")

        while not self.stop_event.is_set():
            try:
                item = self.input_queue.get(timeout=0.1)
            except queue.Empty:
                continue

            try:
                self._handle(item)
            except Exception as e:
                logger.error(f"Error handling {item[0]}: {e}", exc_info=True)

        logger.info("Evaluation loop stopped")

    # ─────────────────────────────────────────────────────────────────────
    # Publishing (publisher thread)
    # ─────────────────────────────────────────────────────────────────────

    def _enqueue_publish(self, msg_type: str, msg) -> None:
        if self.publisher is None:
            return
        try:
            self.publish_queue.put_nowait((msg_type, msg))
        except queue.Full:
            logger.warning(f"Publish queue full, dropping {msg_type} message")

    def _publish_loop(self):
        logger.info("MQTT publisher loop started")

        while not self.stop_event.is_set():
            try:
                msg_type, msg = self.publish_queue.get(timeout=0.1)
            except queue.Empty:
                continue

            try:
                if msg_type == "activity":
                    self.publisher.publish_activity(msg)
                elif msg_type == "body_status":
                    self.publisher.publish_body_status(msg)
            except Exception as e:
                logger.error(f"Error publishing {msg_type}: {e}", exc_info=True)

        logger.info("MQTT publisher loop stopped")

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def setup(self):
        """Register control commands. Call once, before start()."""
        if self.control_plane is None:
            return

        registry = self.control_plane.command_registry
        registry.register("pause", self._queue_command("pause"), "Pause activity inference")
        registry.register("resume", self._queue_command("resume"), "Resume activity inference")
        registry.register("status", self._queue_command("status"), "Publish service status")
        registry.register(
            "clear_history", self._queue_command("clear_history"), "Clear all gesture history"
        )
        registry.register("list_zones", self._handle_list_zones, "List configured zones")

        logger.info("Control handlers registered")

    def start(self):
        """
        Start the service (non-blocking).

        Lifecycle:
        1. Connect control plane
        2. Connect publisher
        3. Start evaluation + publisher threads
        4. Connect subscriber (frames start flowing)
        """
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting activity processor service")
        self.stop_event.clear()

        if self.control_plane is not None and not self.control_plane.connect(timeout=5.0):
            raise RuntimeError("Failed to connect to MQTT broker (control plane)")

        if self.publisher is not None and not self.publisher.connect():
            logger.warning("Activity publisher not connected; activities will not be published")

        self.evaluation_thread = threading.Thread(
            target=self._evaluation_loop, name="EvaluationThread", daemon=True
        )
        self.evaluation_thread.start()

        if self.publisher is not None:
            self.publisher_thread = threading.Thread(
                target=self._publish_loop, name="MQTTPublisherThread", daemon=True
            )
            self.publisher_thread.start()

        if self.subscriber is not None and not self.subscriber.connect():
            self.stop()
            raise RuntimeError("Failed to connect to MQTT broker (observation subscriber)")

        self._running = True
        self._publish_status("running")
        logger.info("✅ Activity processor service started")

    def wait(self):
        """Block until stop() is called."""
        try:
            while not self.stop_event.wait(timeout=0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, stopping...")
            self.stop()

    def stop(self):
        """Stop threads and disconnect (safe to call more than once)."""
        if self.stop_event.is_set() and not self._running:
            return

        logger.info("Stopping activity processor service")

        if self.subscriber is not None:
            self.subscriber.stop()

        self.stop_event.set()
        for thread in (self.evaluation_thread, self.publisher_thread):
            if thread is not None:
                thread.join(timeout=5.0)

        if self.publisher is not None:
            self.publisher.disconnect()

        self._publish_status("stopped")
        if self.control_plane is not None:
            self.control_plane.disconnect()

        self._running = False
        logger.info("✅ Activity processor service stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    # ─────────────────────────────────────────────────────────────────────
    # Command Handlers
    # ─────────────────────────────────────────────────────────────────────

    def _queue_command(self, command: str) -> Callable[[Dict[str, Any]], None]:
        """Control Plane Thread: hand the command to the evaluation thread."""
        def handler(command_data: Dict[str, Any]) -> None:
            self.submit_command(command, command_data)
        return handler

    def _execute_command(self, command: str, command_data: Dict[str, Any]) -> None:
        """Evaluation Thread."""
        if command == "pause":
            self._paused = True
            self._publish_status("paused")
            logger.info("Activity inference paused")
        elif command == "resume":
            self._paused = False
            self._publish_status("running")
            logger.info("Activity inference resumed")
        elif command == "clear_history":
            self.pipeline.reset_history()
            self._publish_status("history_cleared")
            logger.info("Gesture history cleared")
        elif command == "status":
            self._publish_status("paused" if self._paused else "running", self.get_status())

    def _handle_list_zones(self, command_data: Dict[str, Any]) -> Dict[str, Any]:
        """Control Plane Thread (zone table is immutable)."""
        zones = {
            name: {
                "anchor": list(zone.anchor),
                "tolerance_x": zone.tolerance_x,
                "tolerance_z": zone.tolerance_z,
                "uses_y": zone.uses_y,
                "tolerance_y": zone.tolerance_y,
            }
            for name, zone in self.pipeline.classifier.zones.items()
        }
        self._publish_status("zones_list", {"zones": zones})
        logger.info(f"Listed zones: {list(zones)}")
        return zones

    def _publish_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> None:
        if self.control_plane is not None:
            self.control_plane.publish_status(status, details)

    # ─────────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────────

    def _bump(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def get_stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self._stats)

    def get_status(self) -> Dict[str, Any]:
        """Evaluation-thread view: counters, engine stats and bodies."""
        return {
            "service_id": self.config.service_id,
            "paused": self._paused,
            "stats": self.get_stats(),
            "engine": self.pipeline.engine.get_stats(),
            "debug": self.pipeline.debug_snapshot(),
        }
