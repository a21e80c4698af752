"""Catalog of clinic services (items) consumed by bookings and payments."""

import logging
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import ItemAlreadyExists, ItemNotFound, ValidationFailed
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.db.queries import exists_active, get_active, list_active, trash
from clinic_ledger.models.catalog import CatalogItem

logger = logging.getLogger(__name__)


class CatalogService:
    """Keyed catalog records with soft delete and name search."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def resolve_item(self, item_id: str) -> CatalogItem:
        """Get a non-deleted item or raise ItemNotFound."""
        item = await get_active(self.session, CatalogItem, item_id)
        if not item:
            raise ItemNotFound(f"Item {item_id} not found")
        return item

    async def list_items(
        self,
        search: str | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Sequence[CatalogItem]:
        criteria = []
        if search:
            criteria.append(CatalogItem.name.ilike(f"%{search}%"))
        return await list_active(
            self.session,
            CatalogItem,
            *criteria,
            order_by=CatalogItem.name,
            page=page,
            size=size,
        )

    async def create_item(
        self,
        name: str,
        price: Decimal,
        duration_days: int,
        description: str = "",
        payment_type: str = "",
        actor_id: str | None = None,
    ) -> CatalogItem:
        """Create a catalog item with a unique name."""
        self._validate(price, duration_days)
        if await exists_active(self.session, CatalogItem, name=name):
            raise ItemAlreadyExists(f"Item {name!r} already exists")

        item = CatalogItem(
            name=name,
            description=description,
            price=price,
            duration_days=duration_days,
            payment_type=payment_type,
            created_by=actor_id,
        )
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)

        audit_logger.log("item_created", actor_id, "catalog_item", item.id, {"price": str(price)})
        return item

    async def update_item(
        self,
        item_id: str,
        actor_id: str | None = None,
        name: str | None = None,
        description: str | None = None,
        price: Decimal | None = None,
        duration_days: int | None = None,
        payment_type: str | None = None,
    ) -> CatalogItem:
        """Patch an item; omitted fields are left unchanged."""
        item = await self.resolve_item(item_id)
        self._validate(price, duration_days)

        if name is not None and name != item.name:
            if await exists_active(self.session, CatalogItem, exclude_id=item.id, name=name):
                raise ItemAlreadyExists(f"Item {name!r} already exists")
            item.name = name
        if description is not None:
            item.description = description
        if price is not None:
            item.price = price
        if duration_days is not None:
            item.duration_days = duration_days
        if payment_type is not None:
            item.payment_type = payment_type
        item.updated_by = actor_id

        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def delete_item(self, item_id: str, actor_id: str | None = None) -> None:
        item = await self.resolve_item(item_id)
        trash(item, actor_id)
        await self.session.commit()
        audit_logger.log("item_deleted", actor_id, "catalog_item", item.id)

    @staticmethod
    def _validate(price: Decimal | None, duration_days: int | None) -> None:
        if price is not None and price < 0:
            raise ValidationFailed("Price must not be negative")
        if duration_days is not None and duration_days < 0:
            raise ValidationFailed("Duration must not be negative")
