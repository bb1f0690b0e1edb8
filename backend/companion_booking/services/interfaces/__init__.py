"""
Service interfaces for dependency inversion.
Allows swapping collaborators (clock, notification delivery) without changing business logic.
"""

from .clock import Clock, SystemClock
from .notifier import NotificationSink

__all__ = ['Clock', 'SystemClock', 'NotificationSink']
