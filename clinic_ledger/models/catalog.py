"""Catalog of bookable clinic services."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from clinic_ledger.db.base import AuditMixin, Base, SoftDeleteMixin, TimestampMixin


class CatalogItem(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    """A purchasable service with a fixed price and expected duration."""

    __tablename__ = "catalog_items"
    __table_args__ = (
        Index(
            "uq_catalog_items_name_active",
            "name",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint("duration_days >= 0", name="duration_non_negative"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    # Expected number of days between start and completion
    duration_days: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    payment_type: Mapped[str] = mapped_column(
        String(50),
        default="",
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CatalogItem {self.name} price={self.price}>"
