"""
Request bodies accepted by the API.
Every endpoint validates its body with one of these models before touching the table,
pydantic errors are turned into InvalidInput by utils.data.validate_body
"""
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from chalicelib.constants.constants import ROLE_STUDENT, ROLE_VENDOR

TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Literal['student', 'vendor'] = ROLE_STUDENT
    student_id: Optional[str] = None
    phone: Optional[str] = None
    vendor_name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('name must not be blank')
        return value

    @field_validator('vendor_name', 'location')
    @classmethod
    def strip_vendor_fields(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode='after')
    def check_vendor_fields(self):
        if self.role == ROLE_VENDOR and not (self.vendor_name and self.location):
            raise ValueError('vendor_name and location are required for vendor registration')
        return self


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class DayHours(BaseModel):
    open: str = Field(pattern=TIME_PATTERN)
    close: str = Field(pattern=TIME_PATTERN)


class Schedule(BaseModel):
    monday: Optional[DayHours] = None
    tuesday: Optional[DayHours] = None
    wednesday: Optional[DayHours] = None
    thursday: Optional[DayHours] = None
    friday: Optional[DayHours] = None
    saturday: Optional[DayHours] = None
    sunday: Optional[DayHours] = None


class VendorProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1)
    logo: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    schedule: Optional[Schedule] = None


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    image: Optional[str] = None
    category: str = Field(min_length=1)
    is_available: bool = True
    preparation_time: int = Field(default=15, ge=0)
    tags: List[str] = Field(default_factory=list)
    is_veg: bool = False
    is_spicy: bool = False


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    image: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1)
    is_available: Optional[bool] = None
    preparation_time: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    is_veg: Optional[bool] = None
    is_spicy: Optional[bool] = None


class OrderLine(BaseModel):
    menu_item_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class CreateOrderRequest(BaseModel):
    vendor_id: str = Field(min_length=1)
    items: List[OrderLine] = Field(min_length=1)
    special_instructions: Optional[str] = None
    payment_method: Literal['online', 'cash'] = 'online'


class StatusUpdateRequest(BaseModel):
    status: Literal['pending', 'preparing', 'ready', 'completed', 'cancelled']


class PaymentCallback(BaseModel):
    tran_id: str = Field(min_length=1)
    value_a: str = Field(min_length=1)
    val_id: Optional[str] = None


class PaymentSuccessCallback(PaymentCallback):
    val_id: str = Field(min_length=1)
