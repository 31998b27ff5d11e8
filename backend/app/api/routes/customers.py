"""Customer endpoints. Staff see and edit only their franchise's customers."""
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.core.permissions import acting_franchise, franchise_scope
from app.models.user import User
from app.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from app.services import customer_service

router = APIRouter()


@router.get("", response_model=List[CustomerResponse])
def list_customers(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return customer_service.list_customers(db, franchise_scope(current_user))


@router.get("/recent", response_model=List[CustomerResponse])
def list_recent_customers(
    limit: int = Query(5, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return customer_service.list_recent_customers(db, franchise_scope(current_user), limit)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return customer_service.get_customer(db, customer_id, franchise_scope(current_user))


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data.franchise_id = acting_franchise(current_user, data.franchise_id)
    return customer_service.create_customer(db, data)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    updates: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return customer_service.update_customer(db, customer_id, updates, franchise_scope(current_user))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    customer_service.delete_customer(db, customer_id, franchise_scope(current_user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
