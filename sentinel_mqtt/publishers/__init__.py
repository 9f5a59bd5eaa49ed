"""
MQTT Publishers
===============

Bounded Context: Message Production

    BasePublisher: Abstract publisher (connection lifecycle, JSON publish, stats)
    ActivityEventPublisher: Activity events + per-body status
"""

from .base import BasePublisher
from .activity_event import ActivityEventPublisher

__all__ = [
    'BasePublisher',
    'ActivityEventPublisher',
]
