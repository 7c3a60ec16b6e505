from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum
import uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderCreate(BaseModel):
    product_id: uuid.UUID
    quantity: float = Field(gt=0)
    group_buying_id: Optional[uuid.UUID] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    id: str
    vendor_id: str
    supplier_id: str
    product_id: str
    quantity: float
    unit_price: float
    total_amount: float
    status: OrderStatus
    order_date: datetime
    delivery_date: Optional[datetime] = None
    group_buying_id: Optional[str] = None


class VendorOrderResponse(OrderResponse):
    product_name: str
    product_unit: str = ""
    supplier_name: str


class SupplierOrderResponse(OrderResponse):
    product_name: str
    product_unit: str = ""
    vendor_name: str
