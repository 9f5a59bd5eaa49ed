"""
Structured JSON Logger
======================

JSON-lines logger for MQTT traffic and activity emission.

Design:
- Wraps Python's logging module (thread-safe, standard handlers)
- One JSON object per line; metadata carried as a nested dict
- Typed events (LogEvent) instead of free-form strings

Output:
    {
        "timestamp": "2026-03-02T07:41:12.501233+00:00",
        "level": "INFO",
        "component": "processor",
        "event": "activity.detected",
        "message": "MedicationTaken",
        "metadata": {"body_id": 72057594037927936}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Example:
        >>> logger = StructuredLogger("processor")
        >>> logger.info(
        ...     event=LogEvent.ACTIVITY_DETECTED,
        ...     message="EatingMeal",
        ...     metadata={'timestamp': '2026-03-02T07:41:12'}
        ... )
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Args:
            component: Component identifier (e.g., "processor", "cli")
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: sentinel_mqtt.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"sentinel_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            # Already JSON; don't duplicate through the root's text handlers
            self.logger.propagate = False

    def build_entry(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        """Assemble the JSON object for one log line."""
        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            entry['metadata'] = metadata

        if exc_info is not None:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        return entry

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        log_level = getattr(logging, level)
        if not self.logger.isEnabledFor(log_level):
            return

        entry = self.build_entry(level, event, message, metadata, exc_info)
        self.logger.log(log_level, json.dumps(entry, default=str))

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('DEBUG', event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('INFO', event, message, metadata)

    def warning(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     ObservationMessage.from_json(payload)
            ... except ValueError as e:
            ...     logger.error(
            ...         event=LogEvent.SCHEMA_VALIDATION_ERROR,
            ...         message="Invalid observation frame",
            ...         exc_info=e,
            ...         metadata={'topic': topic}
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """Pass-through formatter: StructuredLogger messages are already JSON."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(component: str, level: int = logging.INFO) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Example:
        >>> logger = create_logger("processor", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
