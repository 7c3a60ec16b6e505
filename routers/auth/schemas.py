from pydantic import BaseModel, EmailStr, Field
from typing import Optional

# Request schemas
class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

# Response schemas
class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    message: Optional[str] = None

class TokenResponse(BaseModel):
    access_token: str

class IdentityResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    has_profile: bool = False
