"""Schedule slot schemas.

Slot days are sent as epoch milliseconds and read back as calendar dates.
"""

import datetime as dt

from pydantic import BaseModel, Field

from clinic_ledger.models.scheduling import SlotOccupancy


class SlotCreate(BaseModel):
    """Schema for opening a doctor's day."""

    doctor_id: str
    date: int = Field(ge=0, description="Day as epoch milliseconds (UTC)")
    start_time: dt.time
    finish_time: dt.time
    break_start: dt.time
    break_end: dt.time


class SlotUpdate(BaseModel):
    """Schema for moving a slot or changing its hours."""

    date: int | None = Field(None, ge=0, description="Day as epoch milliseconds (UTC)")
    start_time: dt.time | None = None
    finish_time: dt.time | None = None
    break_start: dt.time | None = None
    break_end: dt.time | None = None


class SlotRead(BaseModel):
    id: str
    doctor_id: str
    date: dt.date
    start_time: dt.time
    finish_time: dt.time
    break_start: dt.time
    break_end: dt.time
    occupancy: SlotOccupancy

    model_config = {"from_attributes": True}
