from app.models.franchise import Franchise
from app.models.user import User
from app.models.customer import Customer
from app.models.product import Product
from app.models.inventory import Inventory
from app.models.order import Order, OrderItem, OrderStatus

__all__ = ["Franchise", "User", "Customer", "Product", "Inventory", "Order", "OrderItem", "OrderStatus"]
