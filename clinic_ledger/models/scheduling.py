"""Doctor schedule slots.

A slot is a doctor's single bookable unit of capacity for one calendar day.
"""

import datetime as dt
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, String, Time, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic_ledger.db.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin
from clinic_ledger.models.user import User


class SlotOccupancy(str, Enum):
    """Occupancy state of a schedule slot."""

    FREE = "free"
    OCCUPIED = "occupied"


class ScheduleSlot(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """Working hours of one doctor on one day."""

    __tablename__ = "schedule_slots"
    __table_args__ = (
        # At most one live slot per doctor per day
        Index(
            "uq_schedule_slots_doctor_date_active",
            "doctor_id",
            "date",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
    )

    doctor_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    start_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
    )
    finish_time: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
    )
    break_start: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
    )
    break_end: Mapped[dt.time] = mapped_column(
        Time,
        nullable=False,
    )
    occupancy: Mapped[SlotOccupancy] = mapped_column(
        String(20),
        default=SlotOccupancy.FREE,
        nullable=False,
        index=True,
    )

    doctor: Mapped[User] = relationship(
        "User",
        lazy="selectin",
    )

    @property
    def is_free(self) -> bool:
        return self.occupancy == SlotOccupancy.FREE

    def __repr__(self) -> str:
        return f"<ScheduleSlot {self.id[:8]}... doctor={self.doctor_id[:8]} {self.date} {self.occupancy}>"
