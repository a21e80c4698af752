"""Card and payment schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from clinic_ledger.models.ledger import CardStatus, PaymentStatus
from clinic_ledger.services.ledger import PaymentDetail


class CardRead(BaseModel):
    id: str
    patient_id: str
    card_number: str
    funded_balance: Decimal
    status: CardStatus

    model_config = {"from_attributes": True}


class TopUpRequest(BaseModel):
    """Add funds to the caller's card."""

    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class PaymentCreate(BaseModel):
    """Charge a booking from the caller's card."""

    booking_id: str
    paid_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    method: str = Field(min_length=1, max_length=30)


class PaymentRead(BaseModel):
    id: str
    booking_id: str
    patient_id: str
    amount_paid: Decimal
    method: str
    status: PaymentStatus

    model_config = {"from_attributes": True}


class PaymentLineRead(BaseModel):
    booking_id: str
    item_name: str
    amount: Decimal
    status: PaymentStatus
    method: str
    paid_at: datetime

    model_config = {"from_attributes": True}


class PaymentDetailRead(BaseModel):
    """A patient's payments with their total."""

    patient_id: str
    full_name: str
    total_paid: Decimal
    payments: list[PaymentLineRead]

    @classmethod
    def from_detail(cls, detail: PaymentDetail) -> "PaymentDetailRead":
        return cls(
            patient_id=detail.patient.id,
            full_name=detail.patient.full_name,
            total_paid=detail.total_paid,
            payments=[PaymentLineRead.model_validate(line) for line in detail.payments],
        )
