from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    price: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1, max_length=50)
    quantity: float = Field(..., ge=0)
    min_order_quantity: float = Field(1, gt=0)
    max_order_quantity: Optional[float] = Field(None, gt=0)

    @model_validator(mode='after')
    def validate_order_quantity_range(self):
        if self.max_order_quantity is not None and self.min_order_quantity > self.max_order_quantity:
            raise ValueError('min_order_quantity cannot be greater than max_order_quantity')
        return self


class ProductUpdate(BaseModel):
    """Fields left out (or sent as null) keep their stored value"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=50)
    quantity: Optional[float] = Field(None, ge=0)
    min_order_quantity: Optional[float] = Field(None, gt=0)
    max_order_quantity: Optional[float] = Field(None, gt=0)
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: str
    supplier_id: str
    name: str
    category: str
    description: str = ""
    price: float
    unit: str
    quantity: float
    min_order_quantity: float
    max_order_quantity: Optional[float] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CatalogProductResponse(ProductResponse):
    supplier_name: str
    supplier_city: str = ""


class ProductDeleteResponse(BaseModel):
    message: str
    product_id: str
