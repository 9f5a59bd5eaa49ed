"""
MQTT client wrapper for sending commands to the activity processor.
"""

import json
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt


class MQTTCommandClient:
    """
    One-shot MQTT client: connect, publish a command with QoS 1, disconnect.
    """

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "sentinel_cli"
    ):
        self.broker = broker
        self.port = port

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)

    @staticmethod
    def encode(command: Dict[str, Any]) -> str:
        """
        Raises:
            ValueError: If the command has no name or is not serializable
        """
        if not command.get('command'):
            raise ValueError(f"Command payload needs a 'command' field, got {command}")
        try:
            return json.dumps(command)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid command data: {e}")

    def send_command(
        self,
        topic: str,
        command: Dict[str, Any],
        qos: int = 1,
        timeout: float = 5.0
    ) -> None:
        """
        Send command to MQTT topic.

        Raises:
            ConnectionError: If unable to connect to MQTT broker
            ValueError: If command serialization fails
            TimeoutError: If the broker did not acknowledge in time
        """
        payload = self.encode(command)

        try:
            self.client.connect(self.broker, self.port, keepalive=60)
        except OSError as e:
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {self.broker}:{self.port}. "
                f"Is mosquitto running? ({e})"
            )

        self.client.loop_start()
        try:
            result = self.client.publish(topic, payload, qos=qos)
            result.wait_for_publish(timeout=timeout)
            if not result.is_published():
                raise TimeoutError(f"Command not acknowledged within {timeout}s")
        finally:
            self.client.disconnect()
            self.client.loop_stop()

        print(f"✅ Command sent: {command['command']}")
