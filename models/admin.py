# models/admin.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from models.restaurant import RestaurantStatus

# Human-in-the-loop gate for reject / withdrawal resolution
class ConfirmPayload(BaseModel):
    confirm: bool = False
    reason: Optional[str] = None

class ApprovalResult(BaseModel):
    """Returned once to the approving admin. The password is not retrievable afterwards."""
    restaurant_id: int
    username: str
    temporary_password: str
    status: RestaurantStatus = RestaurantStatus.APPROVED
    message: str = "Restaurant approved successfully"

class StatusChangeResult(BaseModel):
    restaurant_id: int
    status: RestaurantStatus
    changed: bool
    message: str

class WithdrawalRequest(BaseModel):
    restaurant_id: int
    restaurant_name: str
    email: str
    requested_at: Optional[datetime] = None

class EmailRequest(BaseModel):
    to: EmailStr
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)

# Response for audit log item
class AuditItem(BaseModel):
    id: Optional[str] = None
    actor: Optional[str] = None
    action: str
    resource_type: str
    resource_id: str
    before: Optional[dict] = None
    after: Optional[dict] = None
    reason: Optional[str] = None
    timestamp: Optional[datetime] = None
