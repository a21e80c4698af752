"""Payment ledger: charging bookings against a patient's funded balance.

A booking has at most one PaymentRecord. Partial payments accumulate on it
until ``amount_paid`` reaches the item price, at which point it becomes PAID
and refuses further charges. Every charge debits the card in the same
transaction that records it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import (
    AlreadyFullyPaid,
    CardNotFound,
    ClinicError,
    InsufficientFunds,
    OverpaymentNotAllowed,
    PaymentConflict,
    ValidationFailed,
)
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.db.queries import get_active
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.ledger import Booking, Card, PaymentRecord, PaymentStatus
from clinic_ledger.models.user import User
from clinic_ledger.services.booking import BookingService
from clinic_ledger.services.cards import CardService
from clinic_ledger.services.identity import IdentityService
from clinic_ledger.services.rbac import Permission, RBACService

logger = logging.getLogger(__name__)


@dataclass
class PaymentLine:
    booking_id: str
    item_name: str
    amount: Decimal
    status: PaymentStatus
    method: str
    paid_at: datetime


@dataclass
class PaymentDetail:
    """A patient's payments with the running total."""

    patient: User
    total_paid: Decimal
    payments: list[PaymentLine] = field(default_factory=list)


class LedgerService:
    """Cards, top-ups and booking charges."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.identity = IdentityService(session)
        self.cards = CardService(session)
        self.bookings = BookingService(session)

    async def open_card(self, patient_id: str) -> Card:
        return await self.cards.open_card(patient_id)

    async def top_up(self, patient_id: str, amount: Decimal) -> Card:
        return await self.cards.top_up(patient_id, amount)

    async def charge_for_booking(
        self,
        booking_id: str,
        amount: Decimal,
        method: str,
        actor_id: str | None = None,
    ) -> PaymentRecord:
        """Pay ``amount`` towards a booking from the patient's card.

        Args:
            booking_id: Booking being paid for
            amount: Positive amount to charge
            method: Opaque payment method label
            actor_id: Requesting user; when given it must own the card

        Returns:
            The booking's payment record after the charge

        Raises:
            BookingNotFound: If the booking does not exist
            NoPermission: If the actor does not own the booking's card
            ValidationFailed: If the amount is not positive
            InsufficientFunds: If the card balance is below the amount
            AlreadyFullyPaid: If the booking is already paid in full
            OverpaymentNotAllowed: If the amount exceeds what is still due
            PaymentConflict: If a concurrent charge created the record first
        """
        try:
            booking = await self.bookings.get(booking_id)
            card = await get_active(self.session, Card, booking.card_id, for_update=True)
            if card is None:
                raise CardNotFound(f"Card for booking {booking_id} not found")

            if actor_id is not None:
                actor = await self.identity.resolve_user(actor_id)
                RBACService.decide_owned(
                    actor, card.patient_id, Permission.PAYMENTS_CREATE, None
                ).enforce()

            if amount <= 0:
                raise ValidationFailed("Payment amount must be positive")
            if card.funded_balance < amount:
                raise InsufficientFunds(
                    f"Balance {card.funded_balance} is less than {amount}"
                )

            price = booking.item.price
            payment = await self.bookings.get_payment(booking.id, for_update=True)
            if payment is None:
                if amount > price:
                    raise OverpaymentNotAllowed(f"Amount {amount} exceeds price {price}")
                payment = PaymentRecord(
                    booking_id=booking.id,
                    patient_id=card.patient_id,
                    amount_paid=amount,
                    method=method,
                    status=PaymentStatus.PAID if amount == price else PaymentStatus.NOT_PAID,
                    created_by=actor_id,
                )
                self.session.add(payment)
                try:
                    await self.session.flush()
                except IntegrityError:
                    await self.session.rollback()
                    raise PaymentConflict(f"Booking {booking_id} was charged concurrently")
            else:
                if payment.status == PaymentStatus.PAID:
                    raise AlreadyFullyPaid(f"Booking {booking_id} is already paid")
                remaining = price - payment.amount_paid
                if amount > remaining:
                    raise OverpaymentNotAllowed(
                        f"Amount {amount} exceeds remaining {remaining}"
                    )
                payment.amount_paid = payment.amount_paid + amount
                payment.method = method
                payment.status = (
                    PaymentStatus.PAID if payment.amount_paid == price else PaymentStatus.NOT_PAID
                )
                payment.updated_by = actor_id

            await self._debit(card, amount)
            await self.session.commit()
        except ClinicError:
            await self.session.rollback()
            raise

        await self.session.refresh(payment)
        await self.session.refresh(card)
        audit_logger.log(
            "booking_charged",
            actor_id or card.patient_id,
            "payment_record",
            payment.id,
            {
                "booking_id": booking_id,
                "amount": str(amount),
                "status": PaymentStatus(payment.status).value,
            },
        )
        return payment

    async def _debit(self, card: Card, amount: Decimal) -> None:
        """Subtract ``amount`` from the card unless that would go negative."""
        result = await self.session.execute(
            update(Card)
            .where(
                Card.id == card.id,
                Card.funded_balance >= amount,
            )
            .values(funded_balance=Card.funded_balance - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(f"Card {card.id} balance changed during charge")
            raise InsufficientFunds(f"Balance is less than {amount}")

    async def total_paid(self, patient_id: str) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(PaymentRecord.amount_paid), 0)).where(
                PaymentRecord.patient_id == patient_id,
                PaymentRecord.is_deleted == False,  # noqa: E712
            )
        )
        return Decimal(str(result.scalar_one()))

    async def detail_for_patient(self, patient_id: str) -> PaymentDetail:
        """List a patient's payments with item names.

        Raises:
            UserNotFound: If the patient does not exist
        """
        patient = await self.identity.resolve_user(patient_id)

        result = await self.session.execute(
            select(PaymentRecord, CatalogItem.name)
            .join(Booking, Booking.id == PaymentRecord.booking_id)
            .join(CatalogItem, CatalogItem.id == Booking.item_id)
            .where(
                PaymentRecord.patient_id == patient_id,
                PaymentRecord.is_deleted == False,  # noqa: E712
            )
            .order_by(PaymentRecord.created_at)
        )
        lines = [
            PaymentLine(
                booking_id=payment.booking_id,
                item_name=item_name,
                amount=payment.amount_paid,
                status=PaymentStatus(payment.status),
                method=payment.method,
                paid_at=payment.updated_at or payment.created_at,
            )
            for payment, item_name in result.all()
        ]

        return PaymentDetail(
            patient=patient,
            total_paid=await self.total_paid(patient_id),
            payments=lines,
        )
