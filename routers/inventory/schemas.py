from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid


class InventoryItemCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    current_stock: float = Field(..., ge=0)
    min_stock_level: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=50)
    supplier_id: Optional[uuid.UUID] = None


class InventoryItemUpdate(BaseModel):
    product_name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    current_stock: Optional[float] = Field(None, ge=0)
    min_stock_level: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    supplier_id: Optional[uuid.UUID] = None


class InventoryItemResponse(BaseModel):
    id: str
    vendor_id: str
    product_name: str
    category: str
    current_stock: float
    min_stock_level: float
    unit: str
    last_restocked: datetime
    supplier_id: Optional[str] = None
    is_low_stock: bool = False
