"""Tests for the booking workflow: creation, editing, closing and overview."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import (
    BookingAlreadyClosed,
    BookingNotFound,
    CardNotFound,
    InvalidDateRange,
    ItemNotFound,
    NoPermission,
    ScheduleNotAvailable,
    ValidationFailed,
)
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.ledger import Booking, BookingStatus, Card, PaymentStatus
from clinic_ledger.models.scheduling import ScheduleSlot, SlotOccupancy
from clinic_ledger.models.user import User
from clinic_ledger.services.booking import BookingService
from clinic_ledger.services.cards import CardService
from clinic_ledger.services.ledger import LedgerService

from conftest import BOOKING_DAY, NEXT_DAY


async def slot_occupancy(session: AsyncSession, slot_id: str) -> SlotOccupancy:
    result = await session.execute(
        select(ScheduleSlot.occupancy).where(ScheduleSlot.id == slot_id)
    )
    return SlotOccupancy(result.scalar_one())


async def count(session: AsyncSession, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.mark.asyncio
class TestCreateBooking:
    """Booking creation reserves the slot and opens the card in one unit."""

    async def test_create_booking(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)

        booking = await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)

        assert booking.status == BookingStatus.IN_PROCESS
        assert booking.from_date == BOOKING_DAY
        assert booking.to_date is None
        assert booking.expected_completion == BOOKING_DAY + timedelta(days=5)
        assert booking.doctor_id == doctor.id
        assert booking.item_id == item.id
        assert await slot_occupancy(async_session, slot.id) == SlotOccupancy.OCCUPIED

    async def test_create_opens_card_with_number(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)

        booking = await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)
        card = await CardService(async_session).require_card(patient.id)

        assert booking.card_id == card.id
        assert len(card.card_number) == 16
        assert card.funded_balance == Decimal("0")

    async def test_second_booking_same_day_rejected(
        self,
        async_session: AsyncSession,
        patient: User,
        second_patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)
        second_patient_id = second_patient.id
        await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)

        with pytest.raises(ScheduleNotAvailable):
            await service.create(second_patient_id, item.id, doctor.id, BOOKING_DAY)

        assert await count(async_session, Booking) == 1

    async def test_no_slot_means_no_booking_and_no_card(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
    ) -> None:
        """A failed booking leaves no partial state behind."""
        service = BookingService(async_session)

        with pytest.raises(ScheduleNotAvailable):
            await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)

        assert await count(async_session, Booking) == 0
        assert await count(async_session, Card) == 0

    async def test_unknown_item_frees_nothing(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)
        slot_id = slot.id

        with pytest.raises(ItemNotFound):
            await service.create(
                patient.id, "00000000-0000-0000-0000-000000000000", doctor.id, BOOKING_DAY
            )

        assert await slot_occupancy(async_session, slot_id) == SlotOccupancy.FREE
        assert await count(async_session, Booking) == 0

    async def test_doctor_must_have_doctor_role(
        self,
        async_session: AsyncSession,
        patient: User,
        cashier: User,
        item: CatalogItem,
    ) -> None:
        service = BookingService(async_session)

        with pytest.raises(NoPermission):
            await service.create(patient.id, item.id, cashier.id, BOOKING_DAY)


@pytest.mark.asyncio
class TestUpdateBooking:
    """Editing and closing bookings."""

    @pytest.fixture
    async def booking(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> Booking:
        return await BookingService(async_session).create(
            patient.id, item.id, doctor.id, BOOKING_DAY
        )

    async def test_close_on_start_day(
        self,
        async_session: AsyncSession,
        doctor: User,
        slot: ScheduleSlot,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        closed = await service.update(booking.id, doctor.id, to_date=BOOKING_DAY)

        assert closed.status == BookingStatus.DONE
        assert closed.to_date == BOOKING_DAY
        assert await slot_occupancy(async_session, slot.id) == SlotOccupancy.FREE

    async def test_close_before_start_rejected(
        self,
        async_session: AsyncSession,
        doctor: User,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)
        booking_id = booking.id

        with pytest.raises(InvalidDateRange):
            await service.update(booking_id, doctor.id, to_date=BOOKING_DAY - timedelta(days=1))

        reloaded = await service.get(booking_id)
        assert reloaded.status == BookingStatus.IN_PROCESS
        assert reloaded.to_date is None

    async def test_invalid_date_range_is_a_validation_error(self) -> None:
        assert issubclass(InvalidDateRange, ValidationFailed)

    async def test_closed_booking_is_terminal(
        self,
        async_session: AsyncSession,
        doctor: User,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)
        booking_id = booking.id
        doctor_id = doctor.id
        await service.update(booking_id, doctor_id, to_date=NEXT_DAY)

        with pytest.raises(BookingAlreadyClosed):
            await service.update(booking_id, doctor_id, to_date=NEXT_DAY)

    async def test_other_doctor_cannot_edit(
        self,
        async_session: AsyncSession,
        second_doctor: User,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        with pytest.raises(NoPermission):
            await service.update(booking.id, second_doctor.id, to_date=BOOKING_DAY)

    async def test_patient_cannot_edit(
        self,
        async_session: AsyncSession,
        patient: User,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        with pytest.raises(NoPermission):
            await service.update(booking.id, patient.id, to_date=BOOKING_DAY)

    async def test_director_overrides(
        self,
        async_session: AsyncSession,
        director: User,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        closed = await service.update(booking.id, director.id, to_date=NEXT_DAY)

        assert closed.status == BookingStatus.DONE

    async def test_move_start_day_moves_reservation(
        self,
        async_session: AsyncSession,
        doctor: User,
        slot: ScheduleSlot,
        next_slot: ScheduleSlot,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        moved = await service.update(booking.id, doctor.id, from_date=NEXT_DAY)

        assert moved.from_date == NEXT_DAY
        assert moved.expected_completion == NEXT_DAY + timedelta(days=5)
        assert await slot_occupancy(async_session, slot.id) == SlotOccupancy.FREE
        assert await slot_occupancy(async_session, next_slot.id) == SlotOccupancy.OCCUPIED

    async def test_move_to_unavailable_day_rejected(
        self,
        async_session: AsyncSession,
        doctor: User,
        slot: ScheduleSlot,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)
        booking_id = booking.id
        slot_id = slot.id

        with pytest.raises(ScheduleNotAvailable):
            await service.update(booking_id, doctor.id, from_date=NEXT_DAY)

        reloaded = await service.get(booking_id)
        assert reloaded.from_date == BOOKING_DAY
        assert await slot_occupancy(async_session, slot_id) == SlotOccupancy.OCCUPIED

    async def test_rebind_item(
        self,
        async_session: AsyncSession,
        doctor: User,
        cheap_item: CatalogItem,
        booking: Booking,
    ) -> None:
        service = BookingService(async_session)

        updated = await service.update(booking.id, doctor.id, item_id=cheap_item.id)

        assert updated.item_id == cheap_item.id
        assert updated.expected_completion == BOOKING_DAY

    async def test_rebind_below_amount_paid_rejected(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        cheap_item: CatalogItem,
        booking: Booking,
    ) -> None:
        ledger = LedgerService(async_session)
        booking_id = booking.id
        cheap_item_id = cheap_item.id
        await ledger.top_up(patient.id, Decimal("60"))
        await ledger.charge_for_booking(booking_id, Decimal("60"), "PAYME")

        with pytest.raises(ValidationFailed):
            await BookingService(async_session).update(
                booking_id, doctor.id, item_id=cheap_item_id
            )

    async def test_rebind_recomputes_payment_status(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        cheap_item: CatalogItem,
        booking: Booking,
    ) -> None:
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("30"))
        await ledger.charge_for_booking(booking.id, Decimal("30"), "CLICK")

        await BookingService(async_session).update(booking.id, doctor.id, item_id=cheap_item.id)
        payment = await BookingService(async_session).get_payment(booking.id)

        assert payment.status == PaymentStatus.PAID


@pytest.mark.asyncio
class TestReadBookings:
    """Get and patient overview."""

    async def test_get_is_idempotent(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)
        booking = await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)

        first = await service.get(booking.id)
        second = await service.get(booking.id)

        assert first.id == second.id
        assert first.status == second.status
        assert first.from_date == second.from_date

    async def test_get_unknown(self, async_session: AsyncSession) -> None:
        with pytest.raises(BookingNotFound):
            await BookingService(async_session).get("00000000-0000-0000-0000-000000000000")

    async def test_patient_overview(
        self,
        async_session: AsyncSession,
        patient: User,
        doctor: User,
        item: CatalogItem,
        slot: ScheduleSlot,
    ) -> None:
        service = BookingService(async_session)
        booking = await service.create(patient.id, item.id, doctor.id, BOOKING_DAY)
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))
        await ledger.charge_for_booking(booking.id, Decimal("40"), "PAYME")

        overview = await service.patient_overview(patient.id)

        assert overview.patient.id == patient.id
        assert overview.card.funded_balance == Decimal("60")
        assert overview.total_paid == Decimal("40")
        assert len(overview.lines) == 1
        line = overview.lines[0]
        assert line.booking.id == booking.id
        assert line.booking.item.name == "Dental cleaning"
        assert line.booking.doctor.full_name == "Dr. Karimov"
        assert line.amount_paid == Decimal("40")
        assert line.payment_status == PaymentStatus.NOT_PAID

    async def test_overview_without_card(
        self, async_session: AsyncSession, patient: User
    ) -> None:
        with pytest.raises(CardNotFound):
            await BookingService(async_session).patient_overview(patient.id)
