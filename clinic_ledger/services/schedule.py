"""Schedule allocator for doctor day slots.

Each doctor has at most one slot per calendar day. Booking a day means
flipping that slot from FREE to OCCUPIED with a compare-and-set update, so
two concurrent requests for the same doctor and day can never both win.
"""

import logging
from datetime import date, time
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import (
    ScheduleNotAvailable,
    ScheduleNotFound,
    SlotAlreadyExists,
    SlotOccupied,
    ValidationFailed,
)
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.db.queries import exists_active, get_active, list_active, trash
from clinic_ledger.models.scheduling import ScheduleSlot, SlotOccupancy
from clinic_ledger.models.user import UserRole
from clinic_ledger.services.identity import IdentityService
from clinic_ledger.services.rbac import Permission, RBACService

logger = logging.getLogger(__name__)


def validate_working_hours(
    start_time: time,
    finish_time: time,
    break_start: time,
    break_end: time,
) -> None:
    """Check that the break lies inside the working day.

    Raises:
        ValidationFailed: Unless start <= break_start <= break_end <= finish
    """
    if not (start_time <= break_start <= break_end <= finish_time):
        raise ValidationFailed(
            "Working hours must satisfy start <= break start <= break end <= finish"
        )


class ScheduleAllocator:
    """Owns doctor slots and their occupancy state.

    Lookups and reservations run inside the caller's transaction; only the
    slot maintenance methods (create/update/delete) commit on their own.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.identity = IdentityService(session)

    async def get_slot(self, slot_id: str) -> ScheduleSlot:
        slot = await get_active(self.session, ScheduleSlot, slot_id)
        if not slot:
            raise ScheduleNotFound(f"Schedule slot {slot_id} not found")
        return slot

    async def list_slots(
        self,
        doctor_id: str | None = None,
        day: date | None = None,
        occupancy: SlotOccupancy | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Sequence[ScheduleSlot]:
        criteria = []
        if doctor_id:
            criteria.append(ScheduleSlot.doctor_id == doctor_id)
        if day:
            criteria.append(ScheduleSlot.date == day)
        if occupancy:
            criteria.append(ScheduleSlot.occupancy == occupancy)
        return await list_active(
            self.session,
            ScheduleSlot,
            *criteria,
            order_by=ScheduleSlot.date,
            page=page,
            size=size,
        )

    async def create_slot(
        self,
        doctor_id: str,
        day: date,
        start_time: time,
        finish_time: time,
        break_start: time,
        break_end: time,
        actor_id: str,
    ) -> ScheduleSlot:
        """Open a doctor's day for booking.

        Raises:
            NoPermission: If the target is not a doctor, or the actor may not
                manage that doctor's schedule
            ValidationFailed: If the working hours are inconsistent
            SlotAlreadyExists: If the doctor already has a slot that day
        """
        actor = await self.identity.resolve_user(actor_id)
        await self.identity.resolve_with_role(doctor_id, UserRole.DOCTOR)
        RBACService.decide_owned(
            actor, doctor_id, Permission.SCHEDULE_WRITE, Permission.SCHEDULE_MANAGE_ANY
        ).enforce()
        validate_working_hours(start_time, finish_time, break_start, break_end)

        if await exists_active(self.session, ScheduleSlot, doctor_id=doctor_id, date=day):
            raise SlotAlreadyExists(f"Doctor {doctor_id} already has a slot on {day}")

        slot = ScheduleSlot(
            doctor_id=doctor_id,
            date=day,
            start_time=start_time,
            finish_time=finish_time,
            break_start=break_start,
            break_end=break_end,
            occupancy=SlotOccupancy.FREE,
            created_by=actor_id,
        )
        self.session.add(slot)
        try:
            await self.session.commit()
        except IntegrityError:
            # Lost a race against another create for the same doctor and day
            await self.session.rollback()
            raise SlotAlreadyExists(f"Doctor {doctor_id} already has a slot on {day}")
        await self.session.refresh(slot)

        audit_logger.log("slot_created", actor_id, "schedule_slot", slot.id, {"date": day.isoformat()})
        return slot

    async def update_slot(
        self,
        slot_id: str,
        actor_id: str,
        day: date | None = None,
        start_time: time | None = None,
        finish_time: time | None = None,
        break_start: time | None = None,
        break_end: time | None = None,
    ) -> ScheduleSlot:
        """Move a slot to another day or change its hours."""
        slot = await self.get_slot(slot_id)
        actor = await self.identity.resolve_user(actor_id)
        RBACService.decide_owned(
            actor, slot.doctor_id, Permission.SCHEDULE_WRITE, Permission.SCHEDULE_MANAGE_ANY
        ).enforce()

        if day is not None and day != slot.date:
            if not slot.is_free:
                raise SlotOccupied("A booked slot cannot be moved to another day")
            if await exists_active(
                self.session,
                ScheduleSlot,
                exclude_id=slot.id,
                doctor_id=slot.doctor_id,
                date=day,
            ):
                raise SlotAlreadyExists(f"Doctor already has a slot on {day}")
            slot.date = day

        validate_working_hours(
            start_time or slot.start_time,
            finish_time or slot.finish_time,
            break_start or slot.break_start,
            break_end or slot.break_end,
        )
        if start_time is not None:
            slot.start_time = start_time
        if finish_time is not None:
            slot.finish_time = finish_time
        if break_start is not None:
            slot.break_start = break_start
        if break_end is not None:
            slot.break_end = break_end
        slot.updated_by = actor_id

        await self.session.commit()
        await self.session.refresh(slot)
        return slot

    async def delete_slot(self, slot_id: str, actor_id: str) -> None:
        """Soft delete a free slot."""
        slot = await self.get_slot(slot_id)
        actor = await self.identity.resolve_user(actor_id)
        RBACService.decide_owned(
            actor, slot.doctor_id, Permission.SCHEDULE_WRITE, Permission.SCHEDULE_MANAGE_ANY
        ).enforce()
        if not slot.is_free:
            raise SlotOccupied("Slot holds a booking")

        trash(slot, actor_id)
        await self.session.commit()
        audit_logger.log("slot_deleted", actor_id, "schedule_slot", slot.id)

    async def get_doctor_slot(
        self,
        doctor_id: str,
        day: date,
        for_update: bool = False,
    ) -> ScheduleSlot | None:
        """Find the doctor's slot for a day regardless of occupancy."""
        query = select(ScheduleSlot).where(
            ScheduleSlot.doctor_id == doctor_id,
            ScheduleSlot.date == day,
            ScheduleSlot.is_deleted == False,  # noqa: E712
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_free_slot(self, doctor_id: str, day: date) -> ScheduleSlot:
        """Find and lock the doctor's free slot on ``day``.

        Raises:
            UserNotFound: If the doctor does not exist
            NoPermission: If the user is not a doctor
            ScheduleNotAvailable: If there is no free slot that day
        """
        await self.identity.resolve_with_role(doctor_id, UserRole.DOCTOR)

        slot = await self.get_doctor_slot(doctor_id, day, for_update=True)
        if not slot or not slot.is_free:
            raise ScheduleNotAvailable(f"Doctor {doctor_id} is not available on {day}")
        return slot

    async def reserve(self, slot: ScheduleSlot) -> ScheduleSlot:
        """Flip a slot from FREE to OCCUPIED, failing if someone else did first.

        Raises:
            ScheduleNotAvailable: If the slot is no longer free
        """
        result = await self.session.execute(
            update(ScheduleSlot)
            .where(
                ScheduleSlot.id == slot.id,
                ScheduleSlot.occupancy == SlotOccupancy.FREE,
                ScheduleSlot.is_deleted == False,  # noqa: E712
            )
            .values(occupancy=SlotOccupancy.OCCUPIED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(f"Slot {slot.id} was reserved concurrently")
            raise ScheduleNotAvailable(f"Doctor is not available on {slot.date}")

        await self.session.refresh(slot)
        return slot

    async def set_occupancy(self, slot: ScheduleSlot, state: SlotOccupancy) -> ScheduleSlot:
        """Write the occupancy state; writing the current state is a no-op."""
        if slot.occupancy != state:
            slot.occupancy = state
            await self.session.flush()
        return slot

    async def release(self, doctor_id: str, day: date) -> ScheduleSlot | None:
        """Free the doctor's slot for ``day`` if one exists."""
        slot = await self.get_doctor_slot(doctor_id, day, for_update=True)
        if slot is None:
            return None
        return await self.set_occupancy(slot, SlotOccupancy.FREE)
