"""Business logic services."""

from clinic_ledger.services.auth import AuthService
from clinic_ledger.services.booking import BookingService
from clinic_ledger.services.cards import CardService
from clinic_ledger.services.catalog import CatalogService
from clinic_ledger.services.identity import IdentityService
from clinic_ledger.services.ledger import LedgerService
from clinic_ledger.services.rbac import Permission, RBACService
from clinic_ledger.services.schedule import ScheduleAllocator

__all__ = [
    "AuthService",
    "BookingService",
    "CardService",
    "CatalogService",
    "IdentityService",
    "LedgerService",
    "Permission",
    "RBACService",
    "ScheduleAllocator",
]
