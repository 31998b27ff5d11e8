"""
Per-franchise stock ledger.

Inventory rows are the authoritative stock figures. Product.stock_quantity
mirrors their total and is moved here, in the same transaction, by exactly
the same delta. Nothing else in the codebase writes either column.

Functions that take part in a larger unit of work (decrement_stock,
increment_stock, set_stock) only flush; the caller commits. update_inventory
is the standalone "set to" operation and commits itself.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from app.models.franchise import Franchise
from app.models.inventory import Inventory
from app.models.product import Product

logger = logging.getLogger(__name__)


def _row_filter(franchise_id: int, product_id: int):
    return (Inventory.franchise_id == franchise_id, Inventory.product_id == product_id)


def _mirror_product_total(db: Session, product_id: int, delta: int) -> None:
    if delta == 0:
        return
    db.query(Product).filter(Product.pr_code == product_id).update(
        {Product.stock_quantity: Product.stock_quantity + delta},
        synchronize_session="fetch",
    )


def get_stock(db: Session, franchise_id: int, product_id: int) -> int:
    """Units of a product held by a franchise (0 when it has no row)."""
    quantity = db.query(Inventory.stock_quantity).filter(*_row_filter(franchise_id, product_id)).scalar()
    return int(quantity or 0)


def find_shortages(db: Session, franchise_id: int, requested: Dict[int, int]) -> List[dict]:
    """Products whose requested quantity exceeds what the franchise holds."""
    if not requested:
        return []
    rows = (
        db.query(Inventory.product_id, Inventory.stock_quantity)
        .filter(Inventory.franchise_id == franchise_id, Inventory.product_id.in_(list(requested)))
        .all()
    )
    available = {product_id: stock for product_id, stock in rows}

    return [
        {
            "field": "items",
            "product_id": product_id,
            "requested": quantity,
            "available": int(available.get(product_id, 0)),
            "message": f"Only {int(available.get(product_id, 0))} unit(s) of product {product_id} in stock",
        }
        for product_id, quantity in requested.items()
        if available.get(product_id, 0) < quantity
    ]


def decrement_stock(db: Session, franchise_id: int, product_id: int, quantity: int) -> None:
    """Atomically take ``quantity`` units out of a franchise's stock.

    A single conditional UPDATE (stock = stock - qty WHERE stock >= qty), so
    concurrent orders can never drive stock below zero.

    Raises:
        InsufficientStockError: if the row is missing or holds too few units
    """
    updated = (
        db.query(Inventory)
        .filter(*_row_filter(franchise_id, product_id), Inventory.stock_quantity >= quantity)
        .update({Inventory.stock_quantity: Inventory.stock_quantity - quantity}, synchronize_session="fetch")
    )
    if updated != 1:
        available = get_stock(db, franchise_id, product_id)
        logger.info(
            f"Stock decrement refused: franchise={franchise_id} product={product_id} "
            f"requested={quantity} available={available}"
        )
        raise InsufficientStockError([{
            "field": "items",
            "product_id": product_id,
            "requested": quantity,
            "available": available,
            "message": f"Only {available} unit(s) of product {product_id} in stock",
        }])
    _mirror_product_total(db, product_id, -quantity)


def increment_stock(db: Session, franchise_id: int, product_id: int, quantity: int) -> None:
    """Atomically return ``quantity`` units to a franchise's stock (restock)."""
    updated = (
        db.query(Inventory)
        .filter(*_row_filter(franchise_id, product_id))
        .update({Inventory.stock_quantity: Inventory.stock_quantity + quantity}, synchronize_session="fetch")
    )
    if not updated:
        db.add(Inventory(franchise_id=franchise_id, product_id=product_id, stock_quantity=quantity))
        db.flush()
    _mirror_product_total(db, product_id, quantity)


def set_stock(db: Session, franchise_id: int, product_id: int, quantity: int) -> Inventory:
    """Upsert a franchise's stock to an absolute ``quantity``. Flushes, does not commit."""
    row = db.query(Inventory).filter(*_row_filter(franchise_id, product_id)).with_for_update().first()
    if row is None:
        try:
            with db.begin_nested():
                row = Inventory(franchise_id=franchise_id, product_id=product_id, stock_quantity=quantity)
                db.add(row)
            delta = quantity
        except IntegrityError:
            # Lost the insert race to another writer: fall back to updating its row
            row = db.query(Inventory).filter(*_row_filter(franchise_id, product_id)).with_for_update().one()
            delta = quantity - row.stock_quantity
            row.stock_quantity = quantity
    else:
        delta = quantity - row.stock_quantity
        row.stock_quantity = quantity

    db.flush()
    _mirror_product_total(db, product_id, delta)
    return row


def update_inventory(db: Session, franchise_id: int, product_id: int, quantity: int) -> Inventory:
    """Set a franchise's stock of a product to ``quantity`` ("set to", not a delta)."""
    if quantity < 0:
        raise ValidationError.for_field("stock_quantity", "Quantity cannot be negative", "Invalid inventory data")
    if db.get(Franchise, franchise_id) is None:
        raise NotFoundError("Franchise", franchise_id)
    if db.get(Product, product_id) is None:
        raise NotFoundError("Product", product_id)

    try:
        row = set_stock(db, franchise_id, product_id, quantity)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    logger.info(f"Inventory set: franchise={franchise_id} product={product_id} quantity={quantity}")
    return row


def list_inventory(db: Session, franchise_id: Optional[int] = None) -> List[Inventory]:
    q = db.query(Inventory)
    if franchise_id is not None:
        q = q.filter(Inventory.franchise_id == franchise_id)
    return q.order_by(Inventory.franchise_id, Inventory.product_id).all()


def list_low_stock(db: Session, franchise_id: Optional[int] = None, limit: int = 10) -> List[dict]:
    """Inventory rows at or below their product's own low-stock threshold, lowest first."""
    q = (
        db.query(Inventory, Product)
        .join(Product, Inventory.product_id == Product.pr_code)
        .filter(Inventory.stock_quantity <= Product.low_stock_threshold)
    )
    if franchise_id is not None:
        q = q.filter(Inventory.franchise_id == franchise_id)
    rows = q.order_by(Inventory.stock_quantity.asc(), Inventory.id).limit(limit).all()

    return [
        {
            "id": inv.id,
            "franchise_id": inv.franchise_id,
            "product_id": inv.product_id,
            "stock_quantity": inv.stock_quantity,
            "created_at": inv.created_at,
            "updated_at": inv.updated_at,
            "product_name": p.name,
            "low_stock_threshold": p.low_stock_threshold,
        }
        for inv, p in rows
    ]
