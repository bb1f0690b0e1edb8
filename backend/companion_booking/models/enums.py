"""
Closed value sets for booking state and activity labels.
"""

from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    REQUESTED = "requested"
    PAID = "paid"
    CONFIRMED = "confirmed"
    DISPUTED = "disputed"


class Activity(str, Enum):
    MOVIES = "Movies"
    WALKING = "Walking"
    HIKING = "Hiking"
    EVENTS = "Events"
    CONVERSATIONS = "Conversations"
    COFFEE = "Coffee"
    DINING = "Dining"
    SHOPPING = "Shopping"
    GAMING = "Gaming"
    MUSIC = "Music"
    ART_GALLERY = "Art Gallery"
    PHOTOGRAPHY = "Photography"


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REJECTED})

# Statuses that occupy a companion's calendar (double-booking guard)
SCHEDULED_STATUSES = frozenset({BookingStatus.ACCEPTED, BookingStatus.ACTIVE})

# Statuses under which a booking's chat window may be reachable
CHAT_STATUSES = frozenset({BookingStatus.ACCEPTED, BookingStatus.ACTIVE, BookingStatus.COMPLETED})


def sql_values(statuses) -> list[str]:
    return sorted(s.value for s in statuses)
