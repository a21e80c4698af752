"""Tests for cards, top-ups and booking charges."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.config import settings
from clinic_ledger.core.errors import (
    AlreadyFullyPaid,
    BookingNotFound,
    CardNumberUnavailable,
    InsufficientFunds,
    NoPermission,
    OverpaymentNotAllowed,
    ValidationFailed,
)
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.ledger import Booking, Card, CardStatus, PaymentRecord, PaymentStatus
from clinic_ledger.models.scheduling import ScheduleSlot
from clinic_ledger.models.user import User
from clinic_ledger.services.booking import BookingService
from clinic_ledger.services.cards import (
    CARD_NUMBER_MAX,
    CARD_NUMBER_MIN,
    CardService,
    generate_card_number,
)
from clinic_ledger.services.ledger import LedgerService

from conftest import BOOKING_DAY


async def balance_of(session: AsyncSession, patient_id: str) -> Decimal:
    result = await session.execute(
        select(Card.funded_balance).where(Card.patient_id == patient_id)
    )
    return Decimal(str(result.scalar_one()))


async def payment_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(PaymentRecord))
    return result.scalar_one()


@pytest.fixture
async def booking(
    async_session: AsyncSession,
    patient: User,
    doctor: User,
    item: CatalogItem,
    slot: ScheduleSlot,
) -> Booking:
    """A booking for the 100-priced item."""
    return await BookingService(async_session).create(patient.id, item.id, doctor.id, BOOKING_DAY)


class TestCardNumbers:
    """Card number generation."""

    def test_sixteen_digits(self) -> None:
        for _ in range(200):
            number = generate_card_number()
            assert len(number) == 16
            assert number.isdigit()
            assert CARD_NUMBER_MIN <= int(number) <= CARD_NUMBER_MAX


@pytest.mark.asyncio
class TestCards:
    """Opening cards and topping up."""

    async def test_open_card(self, async_session: AsyncSession, patient: User) -> None:
        card = await CardService(async_session).open_card(patient.id)

        assert card.patient_id == patient.id
        assert card.status == CardStatus.ACTIVE
        assert card.funded_balance == Decimal("0")
        assert len(card.card_number) == 16

    async def test_open_card_is_idempotent(
        self, async_session: AsyncSession, patient: User
    ) -> None:
        ledger = LedgerService(async_session)

        first = await ledger.open_card(patient.id)
        second = await ledger.open_card(patient.id)

        assert first.id == second.id
        assert first.card_number == second.card_number

    async def test_card_numbers_are_unique(
        self, async_session: AsyncSession, patient: User, second_patient: User
    ) -> None:
        service = CardService(async_session)

        first = await service.open_card(patient.id)
        second = await service.open_card(second_patient.id)

        assert first.card_number != second.card_number

    async def test_staff_cannot_own_card(
        self, async_session: AsyncSession, doctor: User
    ) -> None:
        with pytest.raises(NoPermission):
            await CardService(async_session).open_card(doctor.id)

    async def test_top_up_opens_card(self, async_session: AsyncSession, patient: User) -> None:
        card = await LedgerService(async_session).top_up(patient.id, Decimal("150.50"))

        assert card.funded_balance == Decimal("150.50")

    async def test_top_ups_accumulate(self, async_session: AsyncSession, patient: User) -> None:
        ledger = LedgerService(async_session)

        await ledger.top_up(patient.id, Decimal("10"))
        card = await ledger.top_up(patient.id, Decimal("15"))

        assert card.funded_balance == Decimal("25")

    async def test_zero_top_up_allowed(self, async_session: AsyncSession, patient: User) -> None:
        card = await LedgerService(async_session).top_up(patient.id, Decimal("0"))

        assert card.funded_balance == Decimal("0")

    async def test_negative_top_up_rejected(
        self, async_session: AsyncSession, patient: User
    ) -> None:
        with pytest.raises(ValidationFailed):
            await LedgerService(async_session).top_up(patient.id, Decimal("-1"))

    async def test_card_number_exhaustion_is_a_conflict(
        self,
        async_session: AsyncSession,
        patient: User,
        second_patient: User,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Every drawn number is taken: a coded error, and no second card."""
        service = CardService(async_session)
        second_patient_id = second_patient.id
        taken = (await service.open_card(patient.id)).card_number
        monkeypatch.setattr("clinic_ledger.services.cards.generate_card_number", lambda: taken)
        monkeypatch.setattr(settings, "card_number_attempts", 3)

        with pytest.raises(CardNumberUnavailable) as exc_info:
            await service.open_card(second_patient_id)

        assert exc_info.value.code == 553
        assert await service.get_card(second_patient_id) is None


@pytest.mark.asyncio
class TestCharge:
    """Charging bookings against the funded balance."""

    async def test_partial_payments_settle(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        """Top up 100, pay 60 then 40: the booking ends up PAID with nothing left."""
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))

        first = await ledger.charge_for_booking(booking.id, Decimal("60"), "PAYME")
        assert first.amount_paid == Decimal("60")
        assert first.status == PaymentStatus.NOT_PAID
        assert await balance_of(async_session, patient.id) == Decimal("40")

        second = await ledger.charge_for_booking(booking.id, Decimal("40"), "PAYME")
        assert second.id == first.id
        assert second.amount_paid == Decimal("100")
        assert second.status == PaymentStatus.PAID
        assert await balance_of(async_session, patient.id) == Decimal("0")

    async def test_charge_after_paid_rejected(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        booking_id = booking.id
        patient_id = patient.id
        await ledger.top_up(patient_id, Decimal("150"))
        await ledger.charge_for_booking(booking_id, Decimal("100"), "CLICK")

        with pytest.raises(AlreadyFullyPaid):
            await ledger.charge_for_booking(booking_id, Decimal("1"), "CLICK")

        assert await balance_of(async_session, patient_id) == Decimal("50")

    async def test_funds_checked_before_paid_status(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        """An emptied card reports missing funds even on a settled booking."""
        ledger = LedgerService(async_session)
        booking_id = booking.id
        await ledger.top_up(patient.id, Decimal("100"))
        await ledger.charge_for_booking(booking_id, Decimal("60"), "PAYME")
        await ledger.charge_for_booking(booking_id, Decimal("40"), "PAYME")

        with pytest.raises(InsufficientFunds):
            await ledger.charge_for_booking(booking_id, Decimal("1"), "PAYME")

    async def test_insufficient_funds(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        """Balance 50, charge 60: rejected, balance kept, no payment record."""
        ledger = LedgerService(async_session)
        booking_id = booking.id
        patient_id = patient.id
        await ledger.top_up(patient_id, Decimal("50"))

        with pytest.raises(InsufficientFunds):
            await ledger.charge_for_booking(booking_id, Decimal("60"), "PAYME")

        assert await balance_of(async_session, patient_id) == Decimal("50")
        assert await payment_count(async_session) == 0

    async def test_first_charge_above_price_rejected(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        booking_id = booking.id
        patient_id = patient.id
        await ledger.top_up(patient_id, Decimal("500"))

        with pytest.raises(OverpaymentNotAllowed):
            await ledger.charge_for_booking(booking_id, Decimal("101"), "PAYME")

        assert await balance_of(async_session, patient_id) == Decimal("500")
        assert await payment_count(async_session) == 0

    async def test_charge_above_remaining_rejected(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        """Overpayment leaves both the balance and the payment record untouched."""
        ledger = LedgerService(async_session)
        booking_id = booking.id
        patient_id = patient.id
        await ledger.top_up(patient_id, Decimal("500"))
        await ledger.charge_for_booking(booking_id, Decimal("70"), "PAYME")

        with pytest.raises(OverpaymentNotAllowed):
            await ledger.charge_for_booking(booking_id, Decimal("31"), "PAYME")

        payment = await BookingService(async_session).get_payment(booking_id)
        assert payment.amount_paid == Decimal("70")
        assert payment.status == PaymentStatus.NOT_PAID
        assert await balance_of(async_session, patient_id) == Decimal("430")

    async def test_non_positive_amount_rejected(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        booking_id = booking.id
        await ledger.top_up(patient.id, Decimal("10"))

        with pytest.raises(ValidationFailed):
            await ledger.charge_for_booking(booking_id, Decimal("0"), "PAYME")

    async def test_unknown_booking(self, async_session: AsyncSession) -> None:
        with pytest.raises(BookingNotFound):
            await LedgerService(async_session).charge_for_booking(
                "00000000-0000-0000-0000-000000000000", Decimal("1"), "PAYME"
            )

    async def test_other_patient_cannot_pay_from_card(
        self,
        async_session: AsyncSession,
        patient: User,
        second_patient: User,
        booking: Booking,
    ) -> None:
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))

        with pytest.raises(NoPermission):
            await ledger.charge_for_booking(
                booking.id, Decimal("10"), "PAYME", actor_id=second_patient.id
            )

    async def test_owner_of_card_may_pay(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))

        payment = await ledger.charge_for_booking(
            booking.id, Decimal("10"), "cash", actor_id=patient.id
        )

        assert payment.patient_id == patient.id
        assert payment.method == "cash"
        assert payment.created_by == patient.id

    async def test_balance_never_negative(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        booking_id = booking.id
        patient_id = patient.id
        await ledger.top_up(patient_id, Decimal("30"))
        await ledger.charge_for_booking(booking_id, Decimal("30"), "PAYME")

        with pytest.raises(InsufficientFunds):
            await ledger.charge_for_booking(booking_id, Decimal("0.01"), "PAYME")

        assert await balance_of(async_session, patient_id) == Decimal("0")


@pytest.mark.asyncio
class TestPaymentDetail:
    """Payment history per patient."""

    async def test_detail_for_patient(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))
        await ledger.charge_for_booking(booking.id, Decimal("25"), "PAYME")

        detail = await ledger.detail_for_patient(patient.id)

        assert detail.patient.full_name == "Pat Patient"
        assert detail.total_paid == Decimal("25")
        assert len(detail.payments) == 1
        line = detail.payments[0]
        assert line.item_name == "Dental cleaning"
        assert line.amount == Decimal("25")
        assert line.status == PaymentStatus.NOT_PAID
        assert line.method == "PAYME"
        assert line.paid_at is not None

    async def test_total_paid_without_payments(
        self, async_session: AsyncSession, patient: User
    ) -> None:
        assert await LedgerService(async_session).total_paid(patient.id) == Decimal("0")

    async def test_deleted_payments_not_counted(
        self, async_session: AsyncSession, patient: User, booking: Booking
    ) -> None:
        ledger = LedgerService(async_session)
        await ledger.top_up(patient.id, Decimal("100"))
        payment = await ledger.charge_for_booking(booking.id, Decimal("25"), "PAYME")

        payment.soft_delete()
        await async_session.commit()

        assert await ledger.total_paid(patient.id) == Decimal("0")
        assert (await ledger.detail_for_patient(patient.id)).payments == []
