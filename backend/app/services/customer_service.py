"""Customer CRUD, scoped to a franchise."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.customer import Customer
from app.models.franchise import Franchise
from app.models.order import Order
from app.schemas.customer import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)


def list_customers(db: Session, franchise_id: Optional[int] = None) -> List[Customer]:
    q = db.query(Customer)
    if franchise_id is not None:
        q = q.filter(Customer.franchise_id == franchise_id)
    return q.order_by(Customer.first_name, Customer.last_name).all()


def list_recent_customers(db: Session, franchise_id: Optional[int] = None, limit: int = 5) -> List[Customer]:
    q = db.query(Customer)
    if franchise_id is not None:
        q = q.filter(Customer.franchise_id == franchise_id)
    return q.order_by(Customer.created_at.desc(), Customer.id.desc()).limit(limit).all()


def get_customer(db: Session, customer_id: int, franchise_id: Optional[int] = None) -> Customer:
    """Customers of other franchises are reported as missing."""
    q = db.query(Customer).filter(Customer.id == customer_id)
    if franchise_id is not None:
        q = q.filter(Customer.franchise_id == franchise_id)
    customer = q.first()
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


def create_customer(db: Session, data: CustomerCreate) -> Customer:
    """``data.franchise_id`` must already be resolved by the caller."""
    if db.get(Franchise, data.franchise_id) is None:
        raise NotFoundError("Franchise", data.franchise_id)
    customer = Customer(**data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Created customer {customer.id} in franchise {customer.franchise_id}")
    return customer


def update_customer(
    db: Session, customer_id: int, updates: CustomerUpdate, franchise_id: Optional[int] = None
) -> Customer:
    customer = get_customer(db, customer_id, franchise_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        if value is None and key != "email":
            continue
        setattr(customer, key, " ".join(value.split()) if isinstance(value, str) else value)
    db.commit()
    db.refresh(customer)
    return customer


def delete_customer(db: Session, customer_id: int, franchise_id: Optional[int] = None) -> None:
    customer = get_customer(db, customer_id, franchise_id)
    if db.query(Order.id).filter(Order.customer_id == customer_id).first():
        raise ConflictError("Customer has existing orders")
    db.delete(customer)
    db.commit()
    logger.info(f"Deleted customer {customer_id}")
