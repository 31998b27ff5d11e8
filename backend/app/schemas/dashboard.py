from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_orders: int = 0
    revenue: float = 0.0
    customers: int = 0
    low_stock_items: int = 0
