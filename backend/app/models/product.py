from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from app.core.config import settings
from app.db.base import Base


class Product(Base):
    """
    Medicine catalog entry.

    STOCK NOTE:
    - stock_quantity is the total of this product's franchise inventory rows
    - It is written only by app.services.inventory_service, in the same
      transaction as the inventory row it mirrors
    - prescription_required is informational; billing prints it on the bill
    """
    __tablename__ = "products"

    pr_code = Column(Integer, primary_key=True, index=True)
    category = Column(String(128), nullable=False)
    manufacturer = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, index=True)
    packing = Column(String(128), nullable=False)
    mrp = Column(Numeric(12, 2), nullable=False)  # ₹ per pack
    case_pack = Column(Integer, nullable=False, default=1)
    composition = Column(Text, nullable=True)
    gst = Column(Numeric(5, 2), nullable=False, default=12)  # percent
    discount = Column(Numeric(5, 2), nullable=False, default=0)  # percent
    stock_quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=settings.DEFAULT_LOW_STOCK_THRESHOLD)
    expiry_date = Column(Date, nullable=False)
    prescription_required = Column(Boolean, nullable=False, default=False)
    supplier = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
