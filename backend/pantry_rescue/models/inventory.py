"""Inventory Pydantic models."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, field_validator


class IngredientCategory(str, Enum):
    """Inventory categories."""

    DRY = "dry"
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    DAIRY = "dairy"
    MEAT = "meat"
    FROZEN = "frozen"
    BAKERY = "bakery"
    OTHER = "other"


class InventoryRecord(BaseModel):
    """A single inventory row as supplied by the inventory store."""

    id: str
    name: str
    category: str = IngredientCategory.OTHER.value
    quantity: Union[float, str, None] = 1  # Raw value, read with parse_quantity
    unit: Optional[str] = "unit"

    # Expiry
    expiry_date: Optional[date] = None
    about_to_expire: bool = False
    purchase_date: Optional[date] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return value or IngredientCategory.OTHER.value

    @field_validator("about_to_expire", mode="before")
    @classmethod
    def _default_flag(cls, value):
        return bool(value)

    @field_validator("expiry_date", "purchase_date", mode="before")
    @classmethod
    def _coerce_date(cls, value):
        # Rows carry ISO dates, full timestamps, or hand-typed junk
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip()[:10])
            except ValueError:
                return None
        return value
