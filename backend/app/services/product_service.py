"""Medicine catalog CRUD. Stock changes go through inventory_service only."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.inventory import Inventory
from app.models.order import OrderItem
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate
from app.services import inventory_service

logger = logging.getLogger(__name__)


def list_products(db: Session) -> List[Product]:
    return db.query(Product).order_by(Product.name).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def create_product(db: Session, data: ProductCreate, franchise_id: Optional[int] = None) -> Product:
    """Add a product. Opening stock is booked into ``franchise_id``'s inventory."""
    if data.stock_quantity and franchise_id is None:
        raise ValidationError.for_field(
            "stock_quantity", "Opening stock needs a franchise to hold it", "Invalid product data"
        )

    fields = data.model_dump(exclude={"stock_quantity", "low_stock_threshold"})
    for key in ("name", "category", "manufacturer", "packing", "supplier"):
        fields[key] = " ".join(fields[key].split())
        if not fields[key]:
            raise ValidationError.for_field(key, "Field cannot be empty", "Invalid product data")

    product = Product(
        **fields,
        stock_quantity=0,
        low_stock_threshold=(
            data.low_stock_threshold
            if data.low_stock_threshold is not None
            else settings.DEFAULT_LOW_STOCK_THRESHOLD
        ),
    )
    try:
        db.add(product)
        db.flush()
        if data.stock_quantity:
            inventory_service.set_stock(db, franchise_id, product.pr_code, data.stock_quantity)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(product)
    logger.info(f"Created product {product.pr_code} ({product.name})")
    return product


def update_product(db: Session, product_id: int, updates: ProductUpdate) -> Product:
    product = get_product(db, product_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        if value is None and key != "composition":
            continue
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> None:
    """Remove a product and its inventory rows. Products already ordered stay."""
    product = get_product(db, product_id)
    if db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first():
        raise ConflictError("Product is referenced by existing orders")
    db.query(Inventory).filter(Inventory.product_id == product_id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()
    logger.info(f"Deleted product {product_id}")


def list_low_stock_products(db: Session, franchise_id: Optional[int] = None, limit: int = 10) -> List[Product]:
    """
    Products at or below their own low_stock_threshold.

    With a franchise, judged on that franchise's inventory row; without one,
    on the product's total across franchises.
    """
    q = db.query(Product)
    if franchise_id is not None:
        q = (
            q.join(Inventory, Inventory.product_id == Product.pr_code)
            .filter(Inventory.franchise_id == franchise_id, Inventory.stock_quantity <= Product.low_stock_threshold)
            .order_by(Inventory.stock_quantity.asc(), Product.name)
        )
    else:
        q = q.filter(Product.stock_quantity <= Product.low_stock_threshold).order_by(
            Product.stock_quantity.asc(), Product.name
        )
    return q.limit(limit).all()
