"""
Notification sink interface.
Delivery mechanism is pluggable; the booking core only emits events.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NotificationSink(ABC):
    """
    Fire-and-forget notification delivery.

    Implementations must never raise: a failed notification cannot roll back
    the booking transition that produced it.
    """

    @abstractmethod
    async def notify(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Deliver one notification.

        Args:
            recipient_id: Profile id of the party being notified
            type: Machine-readable notification type, e.g. "booking_accepted"
            title: Short headline
            message: Human-readable body
            data: Optional structured payload (booking id, amount, ...)
        """
        pass
