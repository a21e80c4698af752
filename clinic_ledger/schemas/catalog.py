"""Catalog item schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class CatalogItemCreate(BaseModel):
    """Schema for creating a catalog item."""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field("", max_length=5000)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    duration_days: int = Field(ge=0)
    payment_type: str = Field("", max_length=50)


class CatalogItemUpdate(BaseModel):
    """Schema for patching a catalog item."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=5000)
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    duration_days: int | None = Field(None, ge=0)
    payment_type: str | None = Field(None, max_length=50)


class CatalogItemRead(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    duration_days: int
    payment_type: str

    model_config = {"from_attributes": True}
