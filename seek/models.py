# seek/models.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ServiceType(str, Enum):
    consultation = "consultation"
    workshop = "workshop"
    digital_product = "digital_product"
    priority_dm = "priority_dm"
    custom = "custom"


class ServiceStatus(str, Enum):
    draft = "draft"
    active = "active"
    paused = "paused"
    archived = "archived"


class BookingStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    completed = "completed"
    cancelled = "cancelled"


# ──────────────────────────────────────────────────────────────────────────────
# Rows as returned to callers
# ──────────────────────────────────────────────────────────────────────────────
class ApiProfile(BaseModel):
    id: UUID
    username: str
    full_name: Optional[str] = None
    headline: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    twitter_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None


class ApiService(BaseModel):
    id: UUID
    creator_id: UUID
    title: str
    description: Optional[str] = None
    price: float
    currency: str
    duration_minutes: Optional[int] = None
    service_type: ServiceType
    status: ServiceStatus
    total_bookings: int = 0
    total_revenue: float = 0
    created_at: Optional[datetime] = None


class ApiBooking(BaseModel):
    id: UUID
    service_id: UUID
    creator_id: UUID
    customer_name: str
    customer_email: str
    scheduled_at: datetime
    status: BookingStatus
    stripe_payment_intent_id: Optional[str] = None
    amount_cents: Optional[int] = None
    currency: Optional[str] = None
    created_at: Optional[datetime] = None


class PublicProfile(BaseModel):
    profile: ApiProfile
    services: List[ApiService]


class BookingSummary(BaseModel):
    """What the checkout success page may show to an anonymous customer."""
    status: BookingStatus
    service_title: str
    scheduled_at: datetime
    customer_name: str


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard input
# ──────────────────────────────────────────────────────────────────────────────
class ServiceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    service_type: ServiceType = ServiceType.consultation
    status: ServiceStatus = ServiceStatus.draft

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.upper()


class ServiceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    service_type: Optional[ServiceType] = None
    status: Optional[ServiceStatus] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


# ──────────────────────────────────────────────────────────────────────────────
# Checkout (camelCase on the wire, like the storefront sends it)
# ──────────────────────────────────────────────────────────────────────────────
class CheckoutIn(BaseModel):
    # all optional so a missing field is a 400 from the handler, not a 422
    model_config = ConfigDict(populate_by_name=True)

    service_id: Optional[str] = Field(default=None, alias="serviceId")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    scheduled_at: Optional[str] = Field(default=None, alias="scheduledAt")


class BookingRequest(BaseModel):
    """CheckoutIn after the presence check; formats are enforced here."""
    service_id: str
    customer_email: EmailStr
    customer_name: str = Field(..., min_length=1, max_length=200)
    scheduled_at: datetime


class CheckoutOut(BaseModel):
    sessionId: str
    url: Optional[str] = None
