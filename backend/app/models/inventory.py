from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from app.db.base import Base


class Inventory(Base):
    """
    Per-franchise stock ledger. The authoritative stock figure.

    One row per (franchise, product). Orders decrement it atomically,
    direct adjustments overwrite it; see app.services.inventory_service.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("franchise_id", "product_id", name="uq_inventory_franchise_product"),
        CheckConstraint("stock_quantity >= 0", name="ck_inventory_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.pr_code", ondelete="CASCADE"), nullable=False, index=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    franchise = relationship("Franchise", backref="inventory_rows")
    product = relationship(
        "Product",
        backref=backref("inventory_rows", cascade="all, delete-orphan", passive_deletes=True),
    )
