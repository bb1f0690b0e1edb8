from companion_booking.models.booking import Booking
from companion_booking.models.chat import ChatWindow
from companion_booking.models.companion_schedule import CompanionSchedule
from companion_booking.models.message import Message
from companion_booking.models.payment_request import PaymentRequest
from companion_booking.models.notification import Notification
from companion_booking.models.block import Block

__all__ = [
    "Booking",
    "ChatWindow",
    "CompanionSchedule",
    "Message",
    "PaymentRequest",
    "Notification",
    "Block",
]
