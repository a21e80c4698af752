"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from clinic_ledger.models.user import STAFF_ROLES, UserRole


class PatientRegister(BaseModel):
    """Self-registration of a patient."""

    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=1, max_length=100)


class StaffCreate(PatientRegister):
    """Creation of a staff account by the owner or a director."""

    role: UserRole

    @field_validator("role")
    @classmethod
    def role_is_staff(cls, v: UserRole) -> UserRole:
        if v not in STAFF_ROLES or v == UserRole.OWNER:
            raise ValueError("Role must be a staff role other than owner")
        return v


class UserRead(BaseModel):
    id: str
    username: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
