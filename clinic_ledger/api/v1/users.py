"""User registration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from clinic_ledger.api.deps import CurrentUser, DbSession, require_permissions
from clinic_ledger.models.user import User, UserRole
from clinic_ledger.schemas.user import PatientRegister, StaffCreate, UserRead
from clinic_ledger.services.identity import IdentityService
from clinic_ledger.services.rbac import Permission

router = APIRouter()


@router.post(
    "/patients",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a patient",
)
async def register_patient(
    request: PatientRegister,
    session: DbSession,
) -> UserRead:
    service = IdentityService(session)
    user = await service.register(
        username=request.username,
        password=request.password,
        full_name=request.full_name,
        role=UserRole.PATIENT,
    )
    return UserRead.model_validate(user)


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a staff user",
)
async def create_staff(
    request: StaffCreate,
    session: DbSession,
    user: Annotated[User, Depends(require_permissions(Permission.USERS_WRITE))],
) -> UserRead:
    service = IdentityService(session)
    created = await service.register(
        username=request.username,
        password=request.password,
        full_name=request.full_name,
        role=request.role,
        created_by=user.id,
    )
    return UserRead.model_validate(created)


@router.get(
    "",
    response_model=list[UserRead],
    summary="List users",
)
async def list_users(
    session: DbSession,
    user: CurrentUser,
    role: UserRole | None = None,
    search: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
) -> list[UserRead]:
    """List users, e.g. doctors to pick from when booking."""
    service = IdentityService(session)
    users = await service.list_users(role=role, search=search, page=page, size=size)
    return [UserRead.model_validate(u) for u in users]


@router.get(
    "/me",
    response_model=UserRead,
    summary="Current user",
)
async def read_me(user: CurrentUser) -> UserRead:
    return UserRead.model_validate(user)
