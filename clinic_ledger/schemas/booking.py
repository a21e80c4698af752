"""Booking schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from clinic_ledger.models.ledger import BookingStatus, PaymentStatus
from clinic_ledger.services.booking import PatientOverview


class BookingCreate(BaseModel):
    """Schema for booking a catalog item with a doctor."""

    item_id: str
    doctor_id: str
    from_date: int = Field(ge=0, description="Start day as epoch milliseconds (UTC)")


class BookingCreated(BaseModel):
    id: str


class BookingUpdate(BaseModel):
    """Schema for editing or closing a booking.

    Setting ``to_date`` closes the booking.
    """

    from_date: int | None = Field(None, ge=0)
    item_id: str | None = None
    to_date: int | None = Field(None, ge=0)


class BookingRead(BaseModel):
    id: str
    card_id: str
    item_id: str
    doctor_id: str
    from_date: date
    to_date: date | None
    expected_completion: date
    status: BookingStatus
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class BookingLineRead(BaseModel):
    booking_id: str
    item_name: str
    doctor_name: str
    from_date: date
    to_date: date | None
    expected_completion: date
    status: BookingStatus
    amount_paid: Decimal
    payment_status: PaymentStatus


class PatientOverviewRead(BaseModel):
    """A patient's card and bookings."""

    patient_id: str
    full_name: str
    card_number: str
    funded_balance: Decimal
    total_paid: Decimal
    bookings: list[BookingLineRead]

    @classmethod
    def from_overview(cls, overview: PatientOverview) -> "PatientOverviewRead":
        return cls(
            patient_id=overview.patient.id,
            full_name=overview.patient.full_name,
            card_number=overview.card.card_number,
            funded_balance=overview.card.funded_balance,
            total_paid=overview.total_paid,
            bookings=[
                BookingLineRead(
                    booking_id=line.booking.id,
                    item_name=line.booking.item.name,
                    doctor_name=line.booking.doctor.full_name,
                    from_date=line.booking.from_date,
                    to_date=line.booking.to_date,
                    expected_completion=line.booking.expected_completion,
                    status=line.booking.status,
                    amount_paid=line.amount_paid,
                    payment_status=line.payment_status,
                )
                for line in overview.lines
            ],
        )
