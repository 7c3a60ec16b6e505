from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import uuid


class GroupBuyStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class GroupBuyCreate(BaseModel):
    product_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    target_quantity: float = Field(..., gt=0)
    discount_percentage: float = Field(..., ge=0, le=100)
    min_participants: int = Field(..., ge=1)
    max_participants: int = Field(..., ge=1)
    deadline: datetime

    @model_validator(mode='after')
    def validate_participant_range(self):
        if self.min_participants > self.max_participants:
            raise ValueError('min_participants cannot be greater than max_participants')
        return self


class GroupBuyJoin(BaseModel):
    quantity: float = Field(..., gt=0)


class GroupBuyResponse(BaseModel):
    id: str
    product_id: str
    supplier_id: str
    created_by: str
    title: str
    description: str = ""
    target_quantity: float
    current_quantity: float
    discount_percentage: float
    original_price: float
    discounted_price: float
    min_participants: int
    max_participants: int
    current_participants: int
    deadline: datetime
    status: GroupBuyStatus
    created_at: datetime


class GroupBuyWithDetailsResponse(GroupBuyResponse):
    product_name: str
    product_unit: str = ""
    supplier_name: str


class ParticipatingGroupBuyResponse(GroupBuyResponse):
    user_quantity: float


class MyGroupBuysResponse(BaseModel):
    created: List[GroupBuyResponse] = []
    participating: List[ParticipatingGroupBuyResponse] = []


class ParticipantResponse(BaseModel):
    vendor_id: str
    vendor_name: str
    quantity: float
    joined_at: datetime


class GroupBuyDetailResponse(GroupBuyWithDetailsResponse):
    participants: List[ParticipantResponse] = []


class ProcessExpiredResponse(BaseModel):
    message: str
    processed_count: int
    completed_count: int
    expired_count: int
