"""Booking workflow: reserving a doctor's day for a catalog item.

State machine per booking::

    [start] --create--> IN_PROCESS --close(to_date)--> DONE

Creation spans the patient's card, the doctor's slot and the catalog item
and commits as one unit of work.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import (
    BookingAlreadyClosed,
    BookingNotFound,
    ClinicError,
    InvalidDateRange,
    ValidationFailed,
)
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.db.queries import get_active
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.ledger import (
    Booking,
    BookingStatus,
    Card,
    PaymentRecord,
    PaymentStatus,
)
from clinic_ledger.models.user import User
from clinic_ledger.services.cards import CardService
from clinic_ledger.services.catalog import CatalogService
from clinic_ledger.services.identity import IdentityService
from clinic_ledger.services.rbac import Permission, RBACService
from clinic_ledger.services.schedule import ScheduleAllocator

logger = logging.getLogger(__name__)


def expected_completion(from_date: date, item: CatalogItem) -> date:
    return from_date + timedelta(days=item.duration_days)


@dataclass
class BookingLine:
    """One booking in a patient overview with its payment, if any."""

    booking: Booking
    payment: PaymentRecord | None

    @property
    def amount_paid(self) -> Decimal:
        return self.payment.amount_paid if self.payment else Decimal("0")

    @property
    def payment_status(self) -> PaymentStatus:
        return PaymentStatus(self.payment.status) if self.payment else PaymentStatus.NOT_PAID


@dataclass
class PatientOverview:
    """Read-only composition of a patient's card and bookings."""

    patient: User
    card: Card
    total_paid: Decimal
    lines: list[BookingLine] = field(default_factory=list)


class BookingService:
    """Creates, updates and reads bookings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.identity = IdentityService(session)
        self.cards = CardService(session)
        self.catalog = CatalogService(session)
        self.allocator = ScheduleAllocator(session)

    async def get(self, booking_id: str, for_update: bool = False) -> Booking:
        """Get a booking.

        Raises:
            BookingNotFound: If absent or deleted
        """
        booking = await get_active(self.session, Booking, booking_id, for_update=for_update)
        if not booking:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    async def get_payment(
        self,
        booking_id: str,
        for_update: bool = False,
    ) -> PaymentRecord | None:
        """Get the booking's payment record, if one was made."""
        query = select(PaymentRecord).where(
            PaymentRecord.booking_id == booking_id,
            PaymentRecord.is_deleted == False,  # noqa: E712
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        patient_id: str,
        item_id: str,
        doctor_id: str,
        from_date: date,
    ) -> Booking:
        """Book ``item_id`` with ``doctor_id`` starting on ``from_date``.

        Opens the patient's card if needed, reserves the doctor's free slot
        for that day and stores an IN_PROCESS booking. Nothing is persisted
        unless every step succeeds.

        Raises:
            ScheduleNotAvailable: If the doctor has no free slot that day
            NoPermission: If the doctor id is not a doctor or the patient id
                is not a patient
            ItemNotFound: If the catalog item does not exist
        """
        try:
            card = await self.cards.open_card(patient_id, commit=False)
            slot = await self.allocator.find_free_slot(doctor_id, from_date)
            item = await self.catalog.resolve_item(item_id)

            booking = Booking(
                card_id=card.id,
                item_id=item.id,
                doctor_id=doctor_id,
                from_date=from_date,
                to_date=None,
                expected_completion=expected_completion(from_date, item),
                status=BookingStatus.IN_PROCESS,
                created_by=patient_id,
            )
            self.session.add(booking)
            await self.session.flush()

            await self.allocator.reserve(slot)
            await self.session.commit()
        except ClinicError:
            await self.session.rollback()
            raise

        await self.session.refresh(booking)
        audit_logger.log(
            "booking_created",
            patient_id,
            "booking",
            booking.id,
            {"doctor_id": doctor_id, "item_id": item_id, "from_date": from_date.isoformat()},
        )
        return booking

    async def update(
        self,
        booking_id: str,
        actor_id: str,
        from_date: date | None = None,
        item_id: str | None = None,
        to_date: date | None = None,
    ) -> Booking:
        """Edit or close a booking.

        Only the assigned doctor or a role with the override permission may
        edit. Moving ``from_date`` moves the reservation to the doctor's slot
        on the new day; setting ``to_date`` closes the booking and frees the
        slot.

        Raises:
            NoPermission: If the actor may not edit this booking
            BookingAlreadyClosed: If the booking is DONE
            InvalidDateRange: If ``to_date`` precedes the start date
            ScheduleNotAvailable: If the new start day is not free
        """
        try:
            booking = await self.get(booking_id, for_update=True)
            actor = await self.identity.resolve_user(actor_id)
            RBACService.decide_owned(
                actor,
                booking.doctor_id,
                Permission.BOOKINGS_UPDATE,
                Permission.BOOKINGS_OVERRIDE,
            ).enforce()

            if booking.is_closed:
                raise BookingAlreadyClosed(f"Booking {booking_id} is already done")

            if to_date is not None and to_date < (from_date or booking.from_date):
                raise InvalidDateRange(
                    f"Finish date {to_date} is before start date {from_date or booking.from_date}"
                )

            if from_date is not None and from_date != booking.from_date:
                await self._move(booking, from_date)

            if item_id is not None and item_id != booking.item_id:
                await self._rebind_item(booking, item_id)

            if to_date is not None:
                booking.to_date = to_date
                booking.status = BookingStatus.DONE
                await self.allocator.release(booking.doctor_id, booking.from_date)

            booking.updated_by = actor_id
            await self.session.commit()
        except ClinicError:
            await self.session.rollback()
            raise

        await self.session.refresh(booking)
        audit_logger.log(
            "booking_closed" if booking.is_closed else "booking_updated",
            actor_id,
            "booking",
            booking.id,
            {"status": BookingStatus(booking.status).value},
        )
        return booking

    async def _move(self, booking: Booking, from_date: date) -> None:
        """Re-stamp the start day, moving the slot reservation with it."""
        new_slot = await self.allocator.find_free_slot(booking.doctor_id, from_date)
        await self.allocator.reserve(new_slot)
        await self.allocator.release(booking.doctor_id, booking.from_date)

        item = await self.catalog.resolve_item(booking.item_id)
        booking.from_date = from_date
        booking.expected_completion = expected_completion(from_date, item)

    async def _rebind_item(self, booking: Booking, item_id: str) -> None:
        """Point the booking at another item, keeping the payment consistent."""
        item = await self.catalog.resolve_item(item_id)
        payment = await self.get_payment(booking.id, for_update=True)
        if payment is not None:
            if payment.amount_paid > item.price:
                raise ValidationFailed(
                    "Already paid more than the price of the new item"
                )
            payment.status = (
                PaymentStatus.PAID if payment.amount_paid == item.price else PaymentStatus.NOT_PAID
            )

        booking.item_id = item.id
        booking.expected_completion = expected_completion(booking.from_date, item)

    async def list_for_card(self, card_id: str) -> list[Booking]:
        result = await self.session.execute(
            select(Booking)
            .where(
                Booking.card_id == card_id,
                Booking.is_deleted == False,  # noqa: E712
            )
            .order_by(Booking.from_date, Booking.created_at)
        )
        return list(result.scalars().all())

    async def patient_overview(self, patient_id: str) -> PatientOverview:
        """Card, balance and bookings (with payments) of one patient.

        Raises:
            UserNotFound: If the patient does not exist
            CardNotFound: If the patient never opened a card
        """
        patient = await self.identity.resolve_user(patient_id)
        card = await self.cards.require_card(patient_id)
        bookings = await self.list_for_card(card.id)

        payments: dict[str, PaymentRecord] = {}
        if bookings:
            result = await self.session.execute(
                select(PaymentRecord).where(
                    PaymentRecord.booking_id.in_([b.id for b in bookings]),
                    PaymentRecord.is_deleted == False,  # noqa: E712
                )
            )
            payments = {p.booking_id: p for p in result.scalars().all()}

        lines = [BookingLine(booking=b, payment=payments.get(b.id)) for b in bookings]
        total_paid = sum((line.amount_paid for line in lines), Decimal("0"))

        return PatientOverview(
            patient=patient,
            card=card,
            total_paid=total_paid,
            lines=lines,
        )
