from pydantic import BaseModel
from typing import List
from routers.orders.schemas import OrderResponse


class VendorStatsResponse(BaseModel):
    total_orders: int
    total_spent: float
    monthly_orders: int
    monthly_spent: float
    trust_score: float
    low_stock_items: int
    active_group_buys: int
    recent_orders: List[OrderResponse] = []


class SupplierStatsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    monthly_orders: int
    monthly_revenue: float
    active_vendors: int
    total_products: int
    active_products: int
    pending_orders: int
    recent_orders: List[OrderResponse] = []
