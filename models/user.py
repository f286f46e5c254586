from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

ROLE_ADMIN = "admin"
ROLE_RESTAURANT = "restaurant"

class Account(BaseModel):
    username: str
    password_hash: str
    role: str = ROLE_RESTAURANT
    restaurant_id: Optional[int] = None
    token_version: int = 0
    # temporary passwords issued on approval must be changed on first login
    must_change_password: bool = False
    created_at: Optional[datetime] = None

class LoginRequest(BaseModel):
    username: str
    password: str

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    restaurant_id: Optional[int] = None
    must_change_password: bool = False
