"""
MQTTControlPlane - MQTT Control Plane for the activity processor

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command message reception (subscribe to command topic)
  - Status publishing (publish to status topic)
  - Command delegation to CommandRegistry

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Command handlers run in the MQTT thread; the processor's handlers only
    enqueue work for its evaluation thread
"""

import json
import logging
from datetime import datetime
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandNotAvailableError, CommandRegistry

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT Control Plane for receiving commands and publishing status.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="sentinel/control/kitchen-1/commands",
            status_topic="sentinel/control/kitchen-1/status",
            client_id="sentinel_control_kitchen-1"
        )
        control_plane.command_registry.register('pause', service.pause_command, "Pause")

        if control_plane.connect(timeout=5.0):
            ...
        control_plane.disconnect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        self._connected = Event()
        self._running = False

        self.command_registry = CommandRegistry()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        logger.info(f"🔌 Connecting control plane to {self.broker_host}:{self.broker_port}")
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

        self.client.loop_start()
        self._running = True

        if self._connected.wait(timeout=timeout):
            logger.info("✅ MQTT Control Plane connected")
            return True

        logger.error(f"❌ Connection timeout after {timeout}s")
        return False

    def disconnect(self) -> None:
        """Safe to call multiple times."""
        if not self._running:
            return

        self.publish_status("disconnected")
        self.client.loop_stop()
        self.client.disconnect()
        self._running = False
        self._connected.clear()
        logger.info("MQTT Control Plane disconnected")

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def publish_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        """
        Publish a status update (QoS 1, retained).

        Args:
            status: Status string ("running", "paused", "stopped", ...)
            details: Extra fields merged into the message (command replies)

        Returns:
            True if handed to the client
        """
        message: Dict[str, Any] = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
        }
        if details:
            message.update(details)

        try:
            payload = json.dumps(message, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"❌ Status not serializable: {e}")
            return False

        result = self.client.publish(self.status_topic, payload, qos=1, retain=True)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"Status publish failed (rc={result.rc})")
            return False

        logger.debug(f"Status published: {status}")
        return True

    def handle_command(self, payload: bytes) -> bool:
        """
        Decode a command payload and execute it via the registry.

        Expected payload: {"command": "<name>", ...arguments}

        Returns:
            True if a handler ran
        """
        try:
            command_data = json.loads(payload)
        except ValueError as e:
            logger.error(f"❌ Error decoding command JSON: {payload!r} ({e})")
            return False

        if not isinstance(command_data, dict):
            logger.warning(f"Command payload must be a JSON object, got {command_data!r}")
            return False

        command = str(command_data.get('command', '')).lower()
        if not command:
            logger.warning("⚠️ Empty command received")
            return False

        logger.info(f"🎯 Executing command: {command}")
        try:
            self.command_registry.execute(command, command_data)
        except CommandNotAvailableError as e:
            logger.warning(f"⚠️ {e}")
            return False
        except Exception as e:
            # Runs on the paho network thread; a failing handler must not stop it
            logger.error(f"❌ Command '{command}' failed: {e}", exc_info=True)
            return False

        return True

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"❌ Connection failed ({reason_code})")
            self._connected.clear()
            return

        client.subscribe(self.command_topic, qos=1)
        logger.info(f"📥 Subscribed to: {self.command_topic} (QoS 1)")
        self.publish_status("connected")
        self._connected.set()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.warning(f"⚠️ Unexpected disconnection ({reason_code})")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        self.handle_command(msg.payload)
