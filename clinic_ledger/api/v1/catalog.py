"""Catalog item endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from clinic_ledger.api.deps import CurrentUser, DbSession, require_permissions
from clinic_ledger.models.user import User
from clinic_ledger.schemas.catalog import CatalogItemCreate, CatalogItemRead, CatalogItemUpdate
from clinic_ledger.services.catalog import CatalogService
from clinic_ledger.services.rbac import Permission

router = APIRouter()

CatalogWriter = Annotated[User, Depends(require_permissions(Permission.CATALOG_WRITE))]


@router.get(
    "/items",
    response_model=list[CatalogItemRead],
    summary="List catalog items",
)
async def list_items(
    session: DbSession,
    user: CurrentUser,
    search: str | None = None,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
) -> list[CatalogItemRead]:
    service = CatalogService(session)
    items = await service.list_items(search=search, page=page, size=size)
    return [CatalogItemRead.model_validate(item) for item in items]


@router.get(
    "/items/{item_id}",
    response_model=CatalogItemRead,
    summary="Get a catalog item",
)
async def get_item(
    item_id: str,
    session: DbSession,
    user: CurrentUser,
) -> CatalogItemRead:
    item = await CatalogService(session).resolve_item(item_id)
    return CatalogItemRead.model_validate(item)


@router.post(
    "/items",
    response_model=CatalogItemRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a catalog item",
)
async def create_item(
    request: CatalogItemCreate,
    session: DbSession,
    user: CatalogWriter,
) -> CatalogItemRead:
    item = await CatalogService(session).create_item(
        name=request.name,
        price=request.price,
        duration_days=request.duration_days,
        description=request.description,
        payment_type=request.payment_type,
        actor_id=user.id,
    )
    return CatalogItemRead.model_validate(item)


@router.put(
    "/items/{item_id}",
    response_model=CatalogItemRead,
    summary="Update a catalog item",
)
async def update_item(
    item_id: str,
    request: CatalogItemUpdate,
    session: DbSession,
    user: CatalogWriter,
) -> CatalogItemRead:
    item = await CatalogService(session).update_item(
        item_id,
        actor_id=user.id,
        **request.model_dump(exclude_unset=True),
    )
    return CatalogItemRead.model_validate(item)


@router.delete(
    "/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a catalog item",
)
async def delete_item(
    item_id: str,
    session: DbSession,
    user: CatalogWriter,
) -> None:
    await CatalogService(session).delete_item(item_id, actor_id=user.id)
