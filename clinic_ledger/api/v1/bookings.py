"""Booking endpoints.

Patients book catalog items with a doctor; the assigned doctor (or a
director) edits and closes the booking.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from clinic_ledger.api.deps import CurrentUser, DbSession, require_permissions
from clinic_ledger.models.user import User
from clinic_ledger.schemas.booking import (
    BookingCreate,
    BookingCreated,
    BookingRead,
    BookingUpdate,
    PatientOverviewRead,
)
from clinic_ledger.services.booking import BookingService
from clinic_ledger.services.rbac import Permission, RBACService
from clinic_ledger.utils.time import epoch_millis_to_date

router = APIRouter()


@router.post(
    "",
    response_model=BookingCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Book a service",
    description="Reserve the doctor's free day for a catalog item",
)
async def create_booking(
    request: BookingCreate,
    session: DbSession,
    user: Annotated[User, Depends(require_permissions(Permission.BOOKINGS_CREATE))],
) -> BookingCreated:
    booking = await BookingService(session).create(
        patient_id=user.id,
        item_id=request.item_id,
        doctor_id=request.doctor_id,
        from_date=epoch_millis_to_date(request.from_date),
    )
    return BookingCreated(id=booking.id)


@router.put(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Update or close a booking",
)
async def update_booking(
    booking_id: str,
    request: BookingUpdate,
    session: DbSession,
    user: CurrentUser,
) -> BookingRead:
    booking = await BookingService(session).update(
        booking_id,
        actor_id=user.id,
        from_date=epoch_millis_to_date(request.from_date) if request.from_date is not None else None,
        item_id=request.item_id,
        to_date=epoch_millis_to_date(request.to_date) if request.to_date is not None else None,
    )
    return BookingRead.model_validate(booking)


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Get a booking",
)
async def get_booking(
    booking_id: str,
    session: DbSession,
    user: CurrentUser,
) -> BookingRead:
    booking = await BookingService(session).get(booking_id)
    return BookingRead.model_validate(booking)


@router.get(
    "/patient/{patient_id}",
    response_model=PatientOverviewRead,
    summary="Patient bookings overview",
    description="Card, balance and bookings of a patient",
)
async def patient_overview(
    patient_id: str,
    session: DbSession,
    user: CurrentUser,
) -> PatientOverviewRead:
    RBACService.decide_owned(user, patient_id, None, Permission.BOOKINGS_READ_ANY).enforce()
    overview = await BookingService(session).patient_overview(patient_id)
    return PatientOverviewRead.from_overview(overview)
