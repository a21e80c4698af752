"""Database models for the clinic booking and ledger service."""

from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.ledger import (
    Booking,
    BookingStatus,
    Card,
    CardStatus,
    PaymentRecord,
    PaymentStatus,
)
from clinic_ledger.models.scheduling import ScheduleSlot, SlotOccupancy
from clinic_ledger.models.user import STAFF_ROLES, User, UserRole

__all__ = [
    "User",
    "UserRole",
    "STAFF_ROLES",
    "CatalogItem",
    "ScheduleSlot",
    "SlotOccupancy",
    "Card",
    "CardStatus",
    "Booking",
    "BookingStatus",
    "PaymentRecord",
    "PaymentStatus",
]
