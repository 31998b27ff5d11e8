"""Product catalog endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.audit import AuditLog
from app.core.permissions import franchise_scope
from app.models.user import User
from app.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from app.services import product_service

router = APIRouter()


@router.get("", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return product_service.list_products(db)


# Declared before /{product_id} so "low-stock" is not parsed as an id
@router.get("/low-stock", response_model=List[ProductResponse])
def list_low_stock_products(
    limit: int = Query(10, ge=1, le=100),
    franchise_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Products at or below their own low-stock threshold, lowest stock first."""
    scope = franchise_scope(current_user, franchise_id)
    return product_service.list_low_stock_products(db, scope, limit)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return product_service.get_product(db, product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a medicine. Any opening stock goes to the caller's franchise."""
    product = product_service.create_product(db, data, current_user.franchise_id)
    AuditLog.log_action("create", "product", product.pr_code, current_user,
                        changes={"name": product.name, "opening_stock": data.stock_quantity})
    return product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    updates: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = product_service.update_product(db, product_id, updates)
    AuditLog.log_action("update", "product", product_id, current_user,
                        changes=updates.model_dump(exclude_unset=True, mode="json"))
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    product_service.delete_product(db, product_id)
    AuditLog.log_action("delete", "product", product_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
