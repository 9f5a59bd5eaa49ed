"""
Activity Event Publisher
========================

Bounded Context: Outbound activity stream

Design:
- Inherits from BasePublisher (connection management)
- Activities go to the activity topic
- Per-body debug status goes to a separate status topic

Message Flow:
    ActivityRuleEngine -> ActivityEventMessage -> ActivityEventPublisher -> MQTT
"""

from typing import Any, Dict, Optional, Union

from .base import BasePublisher
from ..logging import LogEvent, StructuredLogger
from ..schemas import ActivityEventMessage, BodyStatusMessage


class ActivityEventPublisher(BasePublisher):
    """
    Publisher for activity events and body status.

    Example:
        >>> publisher = ActivityEventPublisher(
        ...     broker_host="localhost",
        ...     topic="sentinel/data/activities/kitchen-1",
        ...     status_topic="sentinel/data/bodies/kitchen-1",
        ...     logger=logger
        ... )
        >>> publisher.connect()
        >>> publisher.publish_activity(ActivityEventMessage.from_activity(event, "kitchen-1"))
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        status_topic: Optional[str] = None,
        broker_port: int = 1883,
        client_id: str = "sentinel_activity_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.status_topic = status_topic

    def format_message(
        self,
        message: Union[ActivityEventMessage, BodyStatusMessage]
    ) -> Dict[str, Any]:
        """
        Raises:
            ValueError: If the message is not an outbound schema type
        """
        if not isinstance(message, (ActivityEventMessage, BodyStatusMessage)):
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message=f"Unsupported message type {type(message).__name__}",
            )
            raise ValueError(f"Cannot format {type(message).__name__}")
        return message.to_dict()

    def publish_activity(self, message: ActivityEventMessage) -> bool:
        """Publish one activity. Returns True on success."""
        success = self.publish(self.format_message(message))

        if success:
            self.logger.info(
                event=LogEvent.ACTIVITY_DETECTED,
                message=f"Published activity {message.activity}",
                metadata={
                    'activity': message.activity,
                    'occurred_at': message.occurred_at.value,
                    'service_id': message.service_id
                }
            )
        return success

    def publish_body_status(self, message: BodyStatusMessage) -> bool:
        """Publish the debug surface (no-op without a status topic)."""
        if not self.status_topic:
            return False

        success = self.publish(self.format_message(message), topic=self.status_topic)
        if success:
            self.logger.debug(
                event=LogEvent.BODY_STATUS_PUBLISHED,
                message=f"Published status of {len(message.bodies)} bodies",
                metadata={'frame_id': message.frame_id}
            )
        return success
