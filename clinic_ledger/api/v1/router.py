"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from clinic_ledger.api.v1 import (
    auth,
    bookings,
    cards,
    catalog,
    health,
    payments,
    schedule,
    users,
)

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Authentication
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["auth"],
)

# Users
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"],
)

# Catalog
api_router.include_router(
    catalog.router,
    prefix="/catalog",
    tags=["catalog"],
)

# Doctor schedules
api_router.include_router(
    schedule.router,
    prefix="/schedule",
    tags=["schedule"],
)

# Bookings
api_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["bookings"],
)

# Cards
api_router.include_router(
    cards.router,
    prefix="/cards",
    tags=["cards"],
)

# Payments
api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["payments"],
)
