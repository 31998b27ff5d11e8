"""Order endpoints: the order workflow, status changes and bills."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.permissions import acting_franchise, franchise_scope
from app.models.user import User
from app.schemas.order import (
    BillResponse,
    OrderCreateRequest,
    OrderDetail,
    OrderResponse,
    OrderStatusUpdate,
    OrderSummary,
)
from app.services import billing_service, order_service

router = APIRouter()


@router.get("", response_model=List[OrderSummary])
def list_orders(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Orders newest first with a customer summary."""
    return order_service.list_orders(db, franchise_scope(current_user))


@router.get("/recent", response_model=List[OrderSummary])
def list_recent_orders(
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return order_service.list_orders(db, franchise_scope(current_user), limit=limit)


@router.get("/{order_id}", response_model=OrderDetail)
def get_order(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return order_service.get_order_details(db, order_id, franchise_scope(current_user))


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreateRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=128),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create an order with its items and take the stock, all or nothing.

    Send an Idempotency-Key header to make retries safe: a repeated key
    returns the first order instead of placing a new one.
    """
    payload.order.franchise_id = acting_franchise(current_user, payload.order.franchise_id)
    order, created = order_service.place_order(db, payload.order, payload.items, idempotency_key=idempotency_key)
    if created:
        AuditLog.log_action("create", "order", order.id, current_user, changes={
            "order_number": order.order_number,
            "items": len(payload.items),
            "final_amount": str(order.final_amount),
        })
    return order


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = order_service.update_order_status(db, order_id, data.status, franchise_scope(current_user))
    AuditLog.log_action("status_change", "order", order.id, current_user, changes={"status": order.status})
    return order


@router.post("/{order_id}/bill", response_model=BillResponse)
def generate_bill(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Freeze the order into a bill snapshot (regenerating replaces it)."""
    bill = billing_service.generate_bill(db, order_id, franchise_scope(current_user))
    AuditLog.log_action("bill", "order", order_id, current_user)
    return bill


@router.get("/{order_id}/bill.pdf")
def download_bill(order_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    bill = billing_service.get_or_generate_bill(db, order_id, franchise_scope(current_user))
    buffer = billing_service.render_bill_pdf(bill)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=bill_{bill['order_number']}.pdf"},
    )
