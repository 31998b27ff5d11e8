from pydantic import BaseModel, Field
from typing import Optional, List, Any
from datetime import datetime
from decimal import Decimal

from app.models.order import OrderStatus


class OrderHeaderCreate(BaseModel):
    """Monetary totals are optional; when sent they must match the items."""
    franchise_id: Optional[int] = None  # defaults to the caller's franchise
    customer_id: int
    order_number: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    total_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    final_amount: Optional[Decimal] = None
    notes: Optional[str] = None


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0)  # defaults to product MRP
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)  # defaults to product GST
    tax_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None


class OrderCreateRequest(BaseModel):
    order: OrderHeaderCreate
    items: List[OrderItemCreate] = []


class OrderStatusUpdate(BaseModel):
    status: str


class OrderResponse(BaseModel):
    id: int
    order_number: str
    franchise_id: int
    customer_id: int
    status: str
    total_amount: float
    discount_amount: float
    tax_amount: float
    final_amount: float
    notes: Optional[str] = None
    bill_generated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    id: int
    order_number: str
    status: str
    final_amount: float
    created_at: Optional[datetime] = None
    customer_id: int
    customer_name: str
    customer_email: Optional[str] = None


class OrderItemDetail(BaseModel):
    id: int
    product_id: int
    product_name: str
    packing: str
    quantity: int
    unit_price: float
    discount: float
    tax_rate: float
    tax_amount: float
    total_amount: float


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    contact_number: str


class OrderDetail(OrderResponse):
    customer: CustomerSummary
    items: List[OrderItemDetail]


class BillResponse(BaseModel):
    order_id: int
    bill_generated_at: datetime
    bill: dict[str, Any]
