"""Doctor schedule slot endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from clinic_ledger.api.deps import CurrentUser, DbSession
from clinic_ledger.models.scheduling import SlotOccupancy
from clinic_ledger.schemas.schedule import SlotCreate, SlotRead, SlotUpdate
from clinic_ledger.services.schedule import ScheduleAllocator
from clinic_ledger.utils.time import epoch_millis_to_date

router = APIRouter()


@router.post(
    "/slots",
    response_model=SlotRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open a doctor's day",
    description="Doctors open their own days; directors may open any doctor's day",
)
async def create_slot(
    request: SlotCreate,
    session: DbSession,
    user: CurrentUser,
) -> SlotRead:
    slot = await ScheduleAllocator(session).create_slot(
        doctor_id=request.doctor_id,
        day=epoch_millis_to_date(request.date),
        start_time=request.start_time,
        finish_time=request.finish_time,
        break_start=request.break_start,
        break_end=request.break_end,
        actor_id=user.id,
    )
    return SlotRead.model_validate(slot)


@router.get(
    "/slots",
    response_model=list[SlotRead],
    summary="List schedule slots",
)
async def list_slots(
    session: DbSession,
    user: CurrentUser,
    doctor_id: str | None = None,
    day: date | None = None,
    occupancy: SlotOccupancy | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
) -> list[SlotRead]:
    slots = await ScheduleAllocator(session).list_slots(
        doctor_id=doctor_id,
        day=day,
        occupancy=occupancy,
        page=page,
        size=size,
    )
    return [SlotRead.model_validate(slot) for slot in slots]


@router.get(
    "/slots/{slot_id}",
    response_model=SlotRead,
    summary="Get a schedule slot",
)
async def get_slot(
    slot_id: str,
    session: DbSession,
    user: CurrentUser,
) -> SlotRead:
    slot = await ScheduleAllocator(session).get_slot(slot_id)
    return SlotRead.model_validate(slot)


@router.put(
    "/slots/{slot_id}",
    response_model=SlotRead,
    summary="Update a schedule slot",
)
async def update_slot(
    slot_id: str,
    request: SlotUpdate,
    session: DbSession,
    user: CurrentUser,
) -> SlotRead:
    slot = await ScheduleAllocator(session).update_slot(
        slot_id,
        actor_id=user.id,
        day=epoch_millis_to_date(request.date) if request.date is not None else None,
        start_time=request.start_time,
        finish_time=request.finish_time,
        break_start=request.break_start,
        break_end=request.break_end,
    )
    return SlotRead.model_validate(slot)


@router.delete(
    "/slots/{slot_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a free schedule slot",
)
async def delete_slot(
    slot_id: str,
    session: DbSession,
    user: CurrentUser,
) -> None:
    await ScheduleAllocator(session).delete_slot(slot_id, actor_id=user.id)
