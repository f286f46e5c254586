# models/restaurant.py
import re
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator, model_validator

from models.menu import MenuItemCreate

DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
PRICE_TIERS = ("$", "$$", "$$$", "$$$$")

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_ZIP_RE = re.compile(r"^\d{5}$")


class RestaurantStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    INACTIVE = "inactive"

    @property
    def is_operational(self) -> bool:
        # a restaurant waiting on its withdrawal stays fully approved until an admin resolves it
        return self in (RestaurantStatus.APPROVED, RestaurantStatus.WITHDRAWAL_REQUESTED)

    @property
    def is_terminal(self) -> bool:
        return self in (RestaurantStatus.REJECTED, RestaurantStatus.INACTIVE)


class DayHours(BaseModel):
    open: Optional[str] = None
    close: Optional[str] = None
    closed: bool = False

    @field_validator("open", "close")
    @classmethod
    def check_time_format(cls, v):
        if v in (None, ""):
            return None
        if not _TIME_RE.match(v):
            raise ValueError("time must be HH:MM (24h)")
        return v

    @model_validator(mode="after")
    def check_range(self):
        if self.closed:
            return self
        if not self.open or not self.close:
            raise ValueError("open and close times are required unless the day is closed")
        # HH:MM strings compare in clock order
        if self.close <= self.open:
            raise ValueError("close time must be after open time")
        return self


def full_week(hours: Dict[str, DayHours]) -> Dict[str, DayHours]:
    hours = {day.lower(): h for day, h in hours.items()}
    missing = [d for d in DAYS_OF_WEEK if d not in hours]
    unknown = [d for d in hours if d not in DAYS_OF_WEEK]
    if missing:
        raise ValueError(f"missing hours for {', '.join(missing)}")
    if unknown:
        raise ValueError(f"unknown day(s) {', '.join(unknown)}")
    return {d: hours[d] for d in DAYS_OF_WEEK}


class RestaurantApplication(BaseModel):
    """
    Registration payload. Construction validates every field; an instance that
    exists is complete and ready to be stored as a pending restaurant.
    """
    # profile
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    cuisines: List[str] = Field(min_length=1)
    established_year: Optional[int] = None

    # location
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str

    # contact
    phone: str
    contact_person: Optional[str] = None
    email: EmailStr
    website: Optional[str] = None

    # pricing
    average_price: str = "$$"
    delivery_fee: float = Field(0, ge=0)
    minimum_order: float = Field(0, ge=0)
    preparation_time: int = Field(30, gt=0)

    operating_hours: Dict[str, DayHours]
    menu_items: List[MenuItemCreate] = Field(default_factory=list)

    @field_validator("name", "description", "address", "city", "state")
    @classmethod
    def strip_required(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("field is required")
        return v

    @field_validator("cuisines", mode="before")
    @classmethod
    def split_cuisines(cls, v):
        if isinstance(v, str):
            v = [c.strip() for c in v.split(",")]
        if isinstance(v, list):
            v = [c for c in v if isinstance(c, str) and c.strip()]
        return v

    @field_validator("established_year")
    @classmethod
    def check_year(cls, v):
        if v is not None and not 1800 <= v <= datetime.utcnow().year:
            raise ValueError("established year is out of range")
        return v

    @field_validator("zip_code")
    @classmethod
    def check_zip(cls, v: str):
        v = v.strip()
        if not _ZIP_RE.match(v):
            raise ValueError("ZIP code must be 5 digits")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str):
        digits = re.sub(r"[\s().-]", "", v)
        if not digits.isdigit() or len(digits) != 10:
            raise ValueError("phone number must have 10 digits")
        return digits

    @field_validator("average_price")
    @classmethod
    def check_price_tier(cls, v: str):
        if v not in PRICE_TIERS:
            raise ValueError(f"average price must be one of {', '.join(PRICE_TIERS)}")
        return v

    @field_validator("operating_hours")
    @classmethod
    def check_week(cls, v: Dict[str, DayHours]):
        return full_week(v)


class Restaurant(BaseModel):
    id: int
    name: str
    description: str
    cuisines: List[str] = Field(default_factory=list)
    established_year: Optional[int] = None
    address: str
    city: str
    state: str
    zip_code: str
    phone: str
    contact_person: Optional[str] = None
    email: str
    website: Optional[str] = None
    average_price: str = "$$"
    delivery_fee: float = 0
    minimum_order: float = 0
    preparation_time: int = 30
    status: RestaurantStatus = RestaurantStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    withdrawal_requested_at: Optional[datetime] = None

    @computed_field
    @property
    def application_id(self) -> str:
        return f"FD-{self.id}"

    @classmethod
    def from_application(cls, restaurant_id: int, application: RestaurantApplication, now: datetime):
        fields = application.model_dump(exclude={"operating_hours", "menu_items"})
        fields["contact_person"] = application.contact_person or application.email
        return cls(id=restaurant_id, status=RestaurantStatus.PENDING, created_at=now, updated_at=now, **fields)


class RestaurantHoursUpdate(BaseModel):
    operating_hours: Dict[str, DayHours]

    @field_validator("operating_hours")
    @classmethod
    def check_week(cls, v: Dict[str, DayHours]):
        return full_week(v)


class RegistrationReceipt(BaseModel):
    restaurant_id: int
    application_id: str
    status: RestaurantStatus
    message: str = "Registration received, pending approval"


class VisibleRestaurant(BaseModel):
    restaurant: Restaurant
    is_open: bool
    order_enabled: bool
    action_label: str


class DashboardView(BaseModel):
    view: str  # "pending_approval" | "dashboard"
    restaurant_id: int
    restaurant_name: str
    status: RestaurantStatus
    message: str
    show_approval_summary: bool = False
    withdrawal_pending: bool = False
    must_change_password: bool = False
