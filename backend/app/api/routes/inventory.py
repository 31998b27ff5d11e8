"""Per-franchise inventory endpoints (the stock ledger)."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.permissions import acting_franchise, franchise_scope
from app.models.user import User
from app.schemas.inventory import InventoryRecord, InventoryUpdate, LowStockRecord
from app.services import inventory_service

router = APIRouter()


@router.get("", response_model=List[InventoryRecord])
def list_inventory(
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return inventory_service.list_inventory(db, franchise_scope(current_user, franchise_id))


@router.get("/low-stock", response_model=List[LowStockRecord])
def list_low_stock(
    limit: int = Query(10, ge=1, le=100),
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return inventory_service.list_low_stock(db, franchise_scope(current_user, franchise_id), limit)


@router.put("", response_model=InventoryRecord)
def update_inventory(
    data: InventoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Set a franchise's stock of a product to an absolute quantity (upsert)."""
    franchise_id = acting_franchise(current_user, data.franchise_id)
    row = inventory_service.update_inventory(db, franchise_id, data.product_id, data.stock_quantity)
    AuditLog.log_action("set_stock", "inventory", row.id, current_user, changes={
        "franchise_id": franchise_id,
        "product_id": data.product_id,
        "stock_quantity": data.stock_quantity,
    })
    return row
