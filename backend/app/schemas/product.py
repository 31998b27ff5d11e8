from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class ProductCreate(BaseModel):
    category: str
    manufacturer: str
    name: str
    packing: str
    mrp: Decimal = Field(ge=0)
    case_pack: int = Field(default=1, gt=0)
    composition: Optional[str] = None
    gst: Decimal = Field(default=Decimal("12"), ge=0, le=100)
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    # Opening stock, booked into the caller's franchise inventory
    stock_quantity: int = Field(default=0, ge=0)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    expiry_date: date
    prescription_required: bool = False
    supplier: str


class ProductUpdate(BaseModel):
    """Stock is not editable here; use the inventory endpoints."""
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    name: Optional[str] = None
    packing: Optional[str] = None
    mrp: Optional[Decimal] = Field(default=None, ge=0)
    case_pack: Optional[int] = Field(default=None, gt=0)
    composition: Optional[str] = None
    gst: Optional[Decimal] = Field(default=None, ge=0, le=100)
    discount: Optional[Decimal] = Field(default=None, ge=0, le=100)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    prescription_required: Optional[bool] = None
    supplier: Optional[str] = None


class ProductResponse(BaseModel):
    pr_code: int
    category: str
    manufacturer: str
    name: str
    packing: str
    mrp: float
    case_pack: int
    composition: Optional[str] = None
    gst: float
    discount: float
    stock_quantity: int
    low_stock_threshold: int
    expiry_date: date
    prescription_required: bool
    supplier: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
