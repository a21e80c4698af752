"""Soft-delete aware lookups shared by the services.

Every helper here excludes rows with ``is_deleted == True``.
"""

from typing import Any, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


async def get_active(
    session: AsyncSession,
    model: type[ModelT],
    entity_id: str,
    for_update: bool = False,
) -> ModelT | None:
    """Find a non-deleted row by id, optionally taking a row lock."""
    query = select(model).where(
        model.id == entity_id,
        model.is_deleted == False,  # noqa: E712
    )
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def exists_active(
    session: AsyncSession,
    model: type[ModelT],
    exclude_id: str | None = None,
    **filters: Any,
) -> bool:
    """Check whether a non-deleted row matching ``filters`` exists.

    ``exclude_id`` skips the row being updated, for uniqueness checks on edit.
    """
    query = select(func.count()).select_from(model).where(
        model.is_deleted == False,  # noqa: E712
        *[getattr(model, name) == value for name, value in filters.items()],
    )
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    result = await session.execute(query)
    return result.scalar_one() > 0


async def list_active(
    session: AsyncSession,
    model: type[ModelT],
    *criteria: Any,
    order_by: Any = None,
    page: int = 0,
    size: int = 20,
) -> Sequence[ModelT]:
    """List non-deleted rows, one page at a time."""
    query = select(model).where(
        model.is_deleted == False,  # noqa: E712
        *criteria,
    )
    query = query.order_by(order_by if order_by is not None else model.created_at)
    query = query.offset(page * size).limit(size)
    result = await session.execute(query)
    return result.scalars().all()


def trash(entity: Any, actor_id: str | None = None) -> Any:
    """Soft delete an entity in the current unit of work."""
    entity.soft_delete(deleted_by_id=actor_id)
    return entity
