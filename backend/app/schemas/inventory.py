from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class InventoryUpdate(BaseModel):
    """Absolute stock level ("set to"), not a delta."""
    franchise_id: Optional[int] = None  # defaults to the caller's franchise
    product_id: int
    stock_quantity: int = Field(ge=0)


class InventoryRecord(BaseModel):
    id: int
    franchise_id: int
    product_id: int
    stock_quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LowStockRecord(InventoryRecord):
    product_name: str
    low_stock_threshold: int
