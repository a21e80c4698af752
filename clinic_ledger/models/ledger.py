"""Cards, bookings and payment records.

A Card holds a patient's funded balance. A Booking reserves one catalog item
with one doctor and is paid for through at most one PaymentRecord, which
accumulates partial payments until the item price is reached.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic_ledger.db.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.user import User


class CardStatus(str, Enum):
    """Status of a patient card."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class BookingStatus(str, Enum):
    """Lifecycle state of a booking."""

    IN_PROCESS = "in_process"
    DONE = "done"


class PaymentStatus(str, Enum):
    """Settlement state of a booking's payment record."""

    NOT_PAID = "not_paid"
    PAID = "paid"


class Card(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """A patient's funded-balance account."""

    __tablename__ = "cards"
    __table_args__ = (
        Index(
            "uq_cards_patient_id_active",
            "patient_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index(
            "uq_cards_card_number_active",
            "card_number",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        CheckConstraint("funded_balance >= 0", name="funded_balance_non_negative"),
    )

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # 16-digit number shown to the patient
    card_number: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )
    funded_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    status: Mapped[CardStatus] = mapped_column(
        String(20),
        default=CardStatus.ACTIVE,
        nullable=False,
    )

    patient: Mapped[User] = relationship(
        "User",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Card ****{self.card_number[-4:]} balance={self.funded_balance}>"


class Booking(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """A patient's reservation of one catalog item with one doctor."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(
            "to_date IS NULL OR to_date >= from_date",
            name="to_date_not_before_from_date",
        ),
    )

    card_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("cards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    item_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("catalog_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    doctor_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    from_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    # Set when the booking is closed
    to_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    expected_completion: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        default=BookingStatus.IN_PROCESS,
        nullable=False,
        index=True,
    )

    card: Mapped[Card] = relationship(
        "Card",
        lazy="selectin",
    )
    item: Mapped[CatalogItem] = relationship(
        "CatalogItem",
        lazy="selectin",
    )
    doctor: Mapped[User] = relationship(
        "User",
        lazy="selectin",
        foreign_keys=[doctor_id],
    )

    @property
    def is_closed(self) -> bool:
        return self.status == BookingStatus.DONE

    def __repr__(self) -> str:
        return f"<Booking {self.id[:8]}... {self.from_date} status={self.status}>"


class PaymentRecord(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """Accumulated payment for one booking."""

    __tablename__ = "payment_records"
    __table_args__ = (
        # One live payment record per booking
        Index(
            "uq_payment_records_booking_id_active",
            "booking_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        CheckConstraint("amount_paid >= 0", name="amount_paid_non_negative"),
    )

    booking_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("bookings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    # Opaque label (PAYME, CLICK, cash...)
    method: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )
    status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        default=PaymentStatus.NOT_PAID,
        nullable=False,
    )

    booking: Mapped[Booking] = relationship(
        "Booking",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<PaymentRecord booking={self.booking_id[:8]} paid={self.amount_paid} {self.status}>"
