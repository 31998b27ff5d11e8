"""
Order workflow: create an order with its items and take the stock, as one unit.

TRANSACTION MODEL:
- Header insert, item inserts and every stock decrement share one session
  transaction; any failure rolls all of them back
- Every product is validated (exists, priced consistently, in stock) before
  anything is written; the conditional decrement re-checks stock at write time
- A replayed request carrying the same idempotency key returns the first
  order and never takes stock twice
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.config import settings
from app.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from app.models.customer import Customer
from app.models.franchise import Franchise
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.schemas.order import OrderHeaderCreate, OrderItemCreate
from app.services import inventory_service
from app.services.pricing import amounts_match, calculate_line, order_totals

logger = logging.getLogger(__name__)

INITIAL_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}

TRANSITIONS: Dict[OrderStatus, set] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def generate_order_number() -> str:
    """e.g. ORD-20260118-9F2A61C4"""
    return f"{settings.ORDER_NUMBER_PREFIX}-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def _find_by_idempotency_key(db: Session, key: str) -> Optional[Order]:
    return db.query(Order).filter(Order.idempotency_key == key).first()


def _replay(existing: Order, header: OrderHeaderCreate) -> Order:
    if existing.franchise_id != header.franchise_id or existing.customer_id != header.customer_id:
        raise ConflictError("Idempotency key already used for a different order")
    logger.info(f"Idempotent replay of order {existing.id} ({existing.order_number})")
    return existing


def _price_items(items: List[OrderItemCreate], products: Dict[int, Product]) -> List[dict]:
    lines, errors = [], []
    for idx, item in enumerate(items):
        product = products[item.product_id]
        unit_price = item.unit_price if item.unit_price is not None else product.mrp
        tax_rate = item.tax_rate if item.tax_rate is not None else product.gst
        try:
            line = calculate_line(item.quantity, unit_price, item.discount, tax_rate)
        except ValueError as e:
            errors.append({"field": f"items[{idx}].discount", "message": str(e)})
            continue

        if not amounts_match(item.tax_amount, line["tax_amount"]):
            errors.append({
                "field": f"items[{idx}].tax_amount",
                "message": f"Expected {line['tax_amount']} for this line",
            })
        if not amounts_match(item.total_amount, line["total_amount"]):
            errors.append({
                "field": f"items[{idx}].total_amount",
                "message": f"Expected {line['total_amount']} for this line",
            })
        line.update(product_id=item.product_id, quantity=item.quantity, unit_price=unit_price)
        lines.append(line)

    if errors:
        raise ValidationError("Invalid order data", errors=errors)
    return lines


def _check_header_totals(header: OrderHeaderCreate, totals: dict) -> None:
    errors = [
        {"field": f"order.{name}", "message": f"Expected {totals[name]} from the order items"}
        for name in ("total_amount", "discount_amount", "tax_amount", "final_amount")
        if not amounts_match(getattr(header, name), totals[name])
    ]
    if errors:
        raise ValidationError("Invalid order data", errors=errors)


def place_order(
    db: Session,
    header: OrderHeaderCreate,
    items: List[OrderItemCreate],
    idempotency_key: Optional[str] = None,
) -> Tuple[Order, bool]:
    """
    Create an order, its items, and decrement franchise stock atomically.

    Args:
        header: order header; franchise_id must already be resolved
        items: at least one line item
        idempotency_key: optional client key; a replay returns the first order

    Returns:
        (order, created): the order without items loaded, and False when
        it is a replay of an earlier request with the same key

    Raises:
        ValidationError: bad input, money mismatch, or insufficient stock
        NotFoundError: franchise, customer or product does not exist
        ConflictError: duplicate order number or reused idempotency key
    """
    if idempotency_key:
        existing = _find_by_idempotency_key(db, idempotency_key)
        if existing:
            return _replay(existing, header), False

    if not items:
        raise ValidationError.for_field("items", "Order must contain at least one item", "Invalid order data")
    if header.status not in INITIAL_STATUSES:
        raise ValidationError.for_field(
            "order.status", f"New orders must be pending or processing, not {header.status.value}", "Invalid order data"
        )

    franchise = db.get(Franchise, header.franchise_id)
    if franchise is None:
        raise NotFoundError("Franchise", header.franchise_id)
    if not franchise.is_active:
        raise ValidationError.for_field("order.franchise_id", "Franchise is inactive", "Invalid order data")

    customer = db.get(Customer, header.customer_id)
    if customer is None:
        raise NotFoundError("Customer", header.customer_id)
    if customer.franchise_id != franchise.id:
        raise ValidationError.for_field(
            "order.customer_id", "Customer belongs to another franchise", "Invalid order data"
        )

    product_ids = {item.product_id for item in items}
    products = {p.pr_code: p for p in db.query(Product).filter(Product.pr_code.in_(product_ids)).all()}
    missing = sorted(product_ids - set(products))
    if missing:
        raise NotFoundError("Product", missing[0])

    lines = _price_items(items, products)
    totals = order_totals(lines)
    _check_header_totals(header, totals)

    # Repeated products are taken from stock as one quantity
    requested: Dict[int, int] = {}
    for line in lines:
        requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["quantity"]
    shortages = inventory_service.find_shortages(db, franchise.id, requested)
    if shortages:
        raise InsufficientStockError(shortages)

    order = Order(
        order_number=header.order_number or generate_order_number(),
        franchise_id=franchise.id,
        customer_id=customer.id,
        status=header.status.value,
        notes=header.notes,
        idempotency_key=idempotency_key,
        **totals,
    )
    try:
        db.add(order)
        db.flush()  # Get ID without committing

        for line in lines:
            db.add(OrderItem(
                order_id=order.id,
                product_id=line["product_id"],
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                discount=line["discount"],
                tax_rate=line["tax_rate"],
                tax_amount=line["tax_amount"],
                total_amount=line["total_amount"],
            ))
        db.flush()

        for product_id, quantity in requested.items():
            inventory_service.decrement_stock(db, franchise.id, product_id, quantity)

        db.commit()
    except IntegrityError as e:
        db.rollback()
        if idempotency_key:
            existing = _find_by_idempotency_key(db, idempotency_key)
            if existing:
                return _replay(existing, header), False
        logger.info(f"Order insert conflict: {e.orig}")
        raise ConflictError("Order number already exists") from e
    except Exception:
        db.rollback()
        logger.info(f"Order creation rolled back for customer {customer.id}")
        raise

    db.refresh(order)
    logger.info(
        f"Created order {order.id} ({order.order_number}) for franchise {order.franchise_id}: "
        f"{len(lines)} item(s), final {order.final_amount}"
    )
    return order, True


def create_order(
    db: Session,
    header: OrderHeaderCreate,
    items: List[OrderItemCreate],
    idempotency_key: Optional[str] = None,
) -> Order:
    """Same as place_order, returning only the order."""
    order, _ = place_order(db, header, items, idempotency_key)
    return order


def get_order(
    db: Session, order_id: int, franchise_id: Optional[int] = None, for_update: bool = False
) -> Order:
    """Load an order; orders of other franchises are reported as missing."""
    q = db.query(Order).filter(Order.id == order_id)
    if franchise_id is not None:
        q = q.filter(Order.franchise_id == franchise_id)
    if for_update:
        q = q.with_for_update()
    order = q.first()
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


def update_order_status(
    db: Session,
    order_id: int,
    new_status: str,
    franchise_id: Optional[int] = None,
) -> Order:
    """
    Move an order along the status table.

    Cancelling returns every line's quantity to the franchise stock when
    RESTOCK_ON_CANCEL is on. Asking for the current status changes nothing.

    The status is switched with a conditional UPDATE on the status that was
    read, so of two concurrent requests only one applies the change (and
    the restock); the other sees the new status.

    Raises:
        ValidationError: unknown status or disallowed transition
        NotFoundError: no such order (nothing is written)
    """
    try:
        target = OrderStatus(new_status)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError.for_field("status", f"Status must be one of: {allowed}", "Invalid status")

    order = get_order(db, order_id, franchise_id, for_update=True)
    current = OrderStatus(order.status)
    if target == current:
        return order
    if target not in TRANSITIONS[current]:
        raise ValidationError.for_field(
            "status", f"Cannot change status from {current.value} to {target.value}", "Invalid status"
        )

    try:
        updated = (
            db.query(Order)
            .filter(Order.id == order.id, Order.status == current.value)
            .update({Order.status: target.value}, synchronize_session="fetch")
        )
        if updated != 1:
            db.rollback()
            order = get_order(db, order_id, franchise_id)
            logger.info(f"Order {order.id} moved to {order.status} by another request")
            if order.status == target.value:
                return order
            raise ValidationError.for_field(
                "status", f"Cannot change status from {order.status} to {target.value}", "Invalid status"
            )

        if target == OrderStatus.CANCELLED and settings.RESTOCK_ON_CANCEL:
            for item in order.items:
                inventory_service.increment_stock(db, order.franchise_id, item.product_id, item.quantity)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    logger.info(f"Order {order.id} status {current.value} -> {target.value}")
    return order


def list_orders(db: Session, franchise_id: Optional[int] = None, limit: Optional[int] = None) -> List[dict]:
    """Orders newest first, each with a customer summary."""
    q = db.query(Order, Customer).join(Customer, Order.customer_id == Customer.id)
    if franchise_id is not None:
        q = q.filter(Order.franchise_id == franchise_id)
    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    if limit is not None:
        q = q.limit(limit)

    return [
        {
            "id": o.id,
            "order_number": o.order_number,
            "status": o.status,
            "final_amount": o.final_amount,
            "created_at": o.created_at,
            "customer_id": c.id,
            "customer_name": c.full_name,
            "customer_email": c.email,
        }
        for o, c in q.all()
    ]


def get_order_details(db: Session, order_id: int, franchise_id: Optional[int] = None) -> dict:
    """Order joined with its customer and its items, each joined to its product."""
    q = (
        db.query(Order)
        .options(joinedload(Order.customer), selectinload(Order.items).joinedload(OrderItem.product))
        .filter(Order.id == order_id)
    )
    if franchise_id is not None:
        q = q.filter(Order.franchise_id == franchise_id)
    order = q.first()
    if order is None:
        raise NotFoundError("Order", order_id)

    c = order.customer
    return {
        "id": order.id,
        "order_number": order.order_number,
        "franchise_id": order.franchise_id,
        "customer_id": order.customer_id,
        "status": order.status,
        "total_amount": order.total_amount,
        "discount_amount": order.discount_amount,
        "tax_amount": order.tax_amount,
        "final_amount": order.final_amount,
        "notes": order.notes,
        "bill_generated_at": order.bill_generated_at,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "customer": {
            "id": c.id,
            "name": c.full_name,
            "email": c.email,
            "contact_number": c.contact_number,
        },
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name,
                "packing": item.product.packing,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "discount": item.discount,
                "tax_rate": item.tax_rate,
                "tax_amount": item.tax_amount,
                "total_amount": item.total_amount,
            }
            for item in order.items
        ],
    }
