from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class ProfileRole(str, Enum):
    VENDOR = "vendor"
    SUPPLIER = "supplier"


class ProfileCreate(BaseModel):
    role: ProfileRole
    business_name: str = Field(..., min_length=1, max_length=200)
    contact_phone: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)


class ProfileUpdate(BaseModel):
    """Role is not updatable; only fields that are sent are applied"""
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_phone: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    role: str
    business_name: str
    contact_phone: str
    address: str
    city: str
    trust_score: Optional[float] = None
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CurrentProfileResponse(ProfileResponse):
    email: Optional[str] = None
