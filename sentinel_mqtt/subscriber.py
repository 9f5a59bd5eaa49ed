"""
MQTT Subscriber
===============

Bounded Context: Message Consumption

Receives observation frames and tracking-lost notifications for the
activity processor.

Design:
- Callback-based (callbacks run on the paho network thread: keep them fast,
  the processor only enqueues)
- Deserialization errors are logged and the message dropped
- paho reconnects on its own; topics are re-subscribed in on_connect

Message Flow:
    1. Subscriber receives JSON from MQTT
    2. Deserializes to ObservationMessage / TrackingLostMessage
    3. Invokes the matching callback
"""

import threading
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from .logging import LogEvent, StructuredLogger
from .schemas import ObservationMessage, TrackingLostMessage


class ObservationSubscriber:
    """
    MQTT subscriber for observation frames and tracking-lost notifications.

    Example:
        >>> subscriber = ObservationSubscriber(
        ...     broker_host="localhost",
        ...     observation_topic="sentinel/data/observations/kitchen-1",
        ...     tracking_lost_topic="sentinel/data/tracking_lost/kitchen-1",
        ...     on_observation=service.submit_observation,
        ...     on_tracking_lost=service.notify_tracking_lost,
        ...     logger=logger
        ... )
        >>> subscriber.connect()
    """

    def __init__(
        self,
        broker_host: str,
        observation_topic: str,
        on_observation: Callable[[ObservationMessage], object],
        logger: StructuredLogger,
        tracking_lost_topic: Optional[str] = None,
        on_tracking_lost: Optional[Callable[[TrackingLostMessage], object]] = None,
        broker_port: int = 1883,
        client_id: str = "sentinel_observation_subscriber",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.observation_topic = observation_topic
        self.tracking_lost_topic = tracking_lost_topic
        self.client_id = client_id
        self.logger = logger
        self.qos = qos

        self.on_observation = on_observation
        self.on_tracking_lost = on_tracking_lost

        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = threading.Event()
        self._stats_lock = threading.Lock()
        self._counts = {'observations': 0, 'tracking_lost': 0, 'rejected': 0}

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})",
                metadata={'broker': self.broker}
            )
            return

        self._connected.set()
        client.subscribe(self.observation_topic, qos=self.qos)
        if self.tracking_lost_topic:
            client.subscribe(self.tracking_lost_topic, qos=self.qos)

        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message="Connected and subscribed to observation topics",
            metadata={
                'broker': self.broker,
                'observation_topic': self.observation_topic,
                'tracking_lost_topic': self.tracking_lost_topic
            }
        )

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def _on_message(self, client, userdata, msg: mqtt.MQTTMessage) -> None:
        self.handle_payload(msg.topic, msg.payload)

    def handle_payload(self, topic: str, payload: bytes) -> bool:
        """
        Deserialize one payload and dispatch it by topic.

        Returns:
            True if a callback was invoked
        """
        if topic == self.observation_topic:
            return self._handle_observation(topic, payload)
        if self.tracking_lost_topic and topic == self.tracking_lost_topic:
            return self._handle_tracking_lost(topic, payload)

        self.logger.warning(
            event=LogEvent.DESERIALIZATION_ERROR,
            message=f"Received message from unknown topic: {topic}"
        )
        return False

    def _handle_observation(self, topic: str, payload: bytes) -> bool:
        try:
            message = ObservationMessage.from_json(payload)
        except ValueError as e:
            self._reject(topic, e)
            return False

        with self._stats_lock:
            self._counts['observations'] += 1

        self.logger.debug(
            event=LogEvent.OBSERVATION_RECEIVED,
            message="Received observation frame",
            metadata={'frame_id': message.frame_id, 'body_count': message.body_count}
        )
        self.on_observation(message)
        return True

    def _handle_tracking_lost(self, topic: str, payload: bytes) -> bool:
        if self.on_tracking_lost is None:
            return False

        try:
            message = TrackingLostMessage.from_json(payload)
        except ValueError as e:
            self._reject(topic, e)
            return False

        with self._stats_lock:
            self._counts['tracking_lost'] += 1

        self.logger.info(
            event=LogEvent.BODY_TRACKING_LOST,
            message=f"Tracking lost for body {message.tracking_id}",
            metadata={'tracking_id': message.tracking_id}
        )
        self.on_tracking_lost(message)
        return True

    def _reject(self, topic: str, error: Exception) -> None:
        with self._stats_lock:
            self._counts['rejected'] += 1
        self.logger.error(
            event=LogEvent.SCHEMA_VALIDATION_ERROR,
            message="Message failed schema validation",
            exc_info=error,
            metadata={'topic': topic}
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect and start listening (non-blocking network loop).

        Returns:
            True if connected within timeout
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

        self.client.loop_start()

        if self._connected.wait(timeout=timeout):
            return True

        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message="Connection timeout",
            metadata={'broker': self.broker, 'timeout': timeout}
        )
        return False

    def stop(self) -> None:
        self.client.loop_stop()
        self.client.disconnect()
        self._connected.clear()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Subscriber stopped",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def get_stats(self) -> dict:
        with self._stats_lock:
            return {
                'observations_received': self._counts['observations'],
                'tracking_lost_received': self._counts['tracking_lost'],
                'rejected': self._counts['rejected'],
                'connected': self._connected.is_set(),
                'observation_topic': self.observation_topic,
                'broker': self.broker
            }
