"""Patient cards: opening and balance top-up."""

import logging
import secrets
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.config import settings
from clinic_ledger.core.errors import CardNotFound, CardNumberUnavailable, ValidationFailed
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.db.queries import exists_active
from clinic_ledger.models.ledger import Card, CardStatus
from clinic_ledger.models.user import UserRole
from clinic_ledger.services.identity import IdentityService

logger = logging.getLogger(__name__)

CARD_NUMBER_MIN = 1000_0000_0000_0000
CARD_NUMBER_MAX = 9999_9999_9999_9999


def generate_card_number() -> str:
    """Draw a random 16-digit card number."""
    return str(CARD_NUMBER_MIN + secrets.randbelow(CARD_NUMBER_MAX - CARD_NUMBER_MIN + 1))


class CardService:
    """Owns each patient's single card and its funded balance."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.identity = IdentityService(session)

    async def get_card(self, patient_id: str, for_update: bool = False) -> Card | None:
        query = select(Card).where(
            Card.patient_id == patient_id,
            Card.is_deleted == False,  # noqa: E712
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def require_card(self, patient_id: str) -> Card:
        card = await self.get_card(patient_id)
        if not card:
            raise CardNotFound(f"Patient {patient_id} has no card")
        return card

    async def open_card(self, patient_id: str, commit: bool = True) -> Card:
        """Return the patient's card, creating it on first use.

        Idempotent: a second call returns the same card. New cards start
        ACTIVE with a zero balance and a unique 16-digit number. With
        ``commit=False`` the card is only flushed so that it joins the
        caller's transaction; it must be the caller's first write.

        Raises:
            UserNotFound: If the patient does not exist
            NoPermission: If the user is not a patient
            CardNumberUnavailable: If every drawn number was already taken
        """
        card = await self.get_card(patient_id)
        if card:
            return card

        await self.identity.resolve_with_role(patient_id, UserRole.PATIENT)

        for _ in range(settings.card_number_attempts):
            card_number = generate_card_number()
            if await exists_active(self.session, Card, card_number=card_number):
                continue

            card = Card(
                patient_id=patient_id,
                card_number=card_number,
                funded_balance=Decimal("0"),
                status=CardStatus.ACTIVE,
                created_by=patient_id,
            )
            self.session.add(card)
            try:
                await self.session.flush()
            except IntegrityError:
                # Either a concurrent open for the same patient or a number clash
                await self.session.rollback()
                existing = await self.get_card(patient_id)
                if existing:
                    return existing
                continue

            if commit:
                await self.session.commit()
            await self.session.refresh(card)

            audit_logger.log("card_opened", patient_id, "card", card.id)
            return card

        logger.warning(
            f"No free card number after {settings.card_number_attempts} attempts",
            extra={"patient_id": patient_id},
        )
        raise CardNumberUnavailable(f"No free card number for patient {patient_id}")

    async def top_up(self, patient_id: str, amount: Decimal) -> Card:
        """Add funds to the patient's card, opening it if needed.

        Raises:
            ValidationFailed: If the amount is negative
        """
        if amount < 0:
            raise ValidationFailed("Top-up amount must not be negative")

        card = await self.open_card(patient_id, commit=False)
        await self.session.execute(
            update(Card)
            .where(Card.id == card.id)
            .values(funded_balance=Card.funded_balance + amount)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        await self.session.refresh(card)

        audit_logger.log(
            "card_topped_up",
            patient_id,
            "card",
            card.id,
            {"amount": str(amount), "balance": str(card.funded_balance)},
        )
        return card
