"""Pydantic schemas for request/response validation."""

from clinic_ledger.schemas.auth import LoginRequest, TokenResponse
from clinic_ledger.schemas.booking import (
    BookingCreate,
    BookingCreated,
    BookingRead,
    BookingUpdate,
    PatientOverviewRead,
)
from clinic_ledger.schemas.catalog import CatalogItemCreate, CatalogItemRead, CatalogItemUpdate
from clinic_ledger.schemas.ledger import (
    CardRead,
    PaymentCreate,
    PaymentDetailRead,
    PaymentRead,
    TopUpRequest,
)
from clinic_ledger.schemas.schedule import SlotCreate, SlotRead, SlotUpdate
from clinic_ledger.schemas.user import PatientRegister, StaffCreate, UserRead

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "PatientRegister",
    "StaffCreate",
    "UserRead",
    "CatalogItemCreate",
    "CatalogItemUpdate",
    "CatalogItemRead",
    "SlotCreate",
    "SlotUpdate",
    "SlotRead",
    "BookingCreate",
    "BookingCreated",
    "BookingUpdate",
    "BookingRead",
    "PatientOverviewRead",
    "CardRead",
    "TopUpRequest",
    "PaymentCreate",
    "PaymentRead",
    "PaymentDetailRead",
]
