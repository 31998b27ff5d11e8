"""Dashboard summary cards. Read-only; every figure is 0 on an empty store."""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.models.inventory import Inventory
from app.models.order import Order
from app.models.product import Product


def get_dashboard_stats(db: Session, franchise_id: Optional[int] = None) -> dict:
    """
    Get overall statistics for the dashboard cards.

    Returns: total orders, revenue (sum of final amounts of every order
    counted in total orders), customer count, and inventory rows at or below their
    product's low_stock_threshold. Scoped to one franchise when given.
    """
    orders_q = db.query(func.count(Order.id))
    revenue_q = db.query(func.coalesce(func.sum(Order.final_amount), 0))
    customers_q = db.query(func.count(Customer.id))
    low_stock_q = (
        db.query(func.count(Inventory.id))
        .join(Product, Inventory.product_id == Product.pr_code)
        .filter(Inventory.stock_quantity <= Product.low_stock_threshold)
    )

    if franchise_id is not None:
        orders_q = orders_q.filter(Order.franchise_id == franchise_id)
        revenue_q = revenue_q.filter(Order.franchise_id == franchise_id)
        customers_q = customers_q.filter(Customer.franchise_id == franchise_id)
        low_stock_q = low_stock_q.filter(Inventory.franchise_id == franchise_id)

    return {
        "total_orders": orders_q.scalar() or 0,
        "revenue": float(revenue_q.scalar() or 0),
        "customers": customers_q.scalar() or 0,
        "low_stock_items": low_stock_q.scalar() or 0,
    }
