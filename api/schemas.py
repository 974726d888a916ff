"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from enum import Enum
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.enums import BookingStatus, BreakdownItemType, Role


# ============================================================================
# HOLD SCHEMAS
# ============================================================================

class CreateHoldRequest(BaseModel):
    """Create soft hold request DTO"""
    hotel_id: str
    room_type_id: str
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    guest_id: Optional[str] = None
    hold_minutes: Optional[int] = Field(None, description="Hold duration, defaults to the configured value")


class ExtendHoldRequest(BaseModel):
    """Extend hold request DTO"""
    additional_minutes: int = Field(gt=0)


# ============================================================================
# BOOKING ACTION SCHEMAS
# ============================================================================

class StaffAction(str, Enum):
    CONFIRM = "confirm"
    CHECK_IN = "checkIn"
    CHECK_OUT = "checkOut"
    MARK_NO_SHOW = "markNoShow"
    CANCEL = "cancel"
    RELEASE = "release"


class BookingActionRequest(BaseModel):
    """Staff action request DTO"""
    action: StaffAction
    reason: Optional[str] = None


class ReassignRoomRequest(BaseModel):
    """Reassign room request DTO"""
    room_id: str


class PaymentConfirmationRequest(BaseModel):
    """Payment confirmation event DTO"""
    booking_id: UUID
    payment_reference: str
    amount_cents: int = Field(ge=0)
    delivery_id: Optional[str] = None


# ============================================================================
# PRICING SCHEMAS
# ============================================================================

class QuoteRequest(BaseModel):
    """Price quote request DTO"""
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    expected_total_cents: Optional[int] = Field(None, description="Reject the quote if the total differs")


class NightlyRateResponse(BaseModel):
    """Nightly rate response DTO"""
    night: date
    amount_cents: int
    rate_plan_id: Optional[str] = None
    rate_plan_code: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BreakdownItemResponse(BaseModel):
    """Breakdown line response DTO"""
    type: BreakdownItemType
    description: str
    amount_cents: int
    nightly_rate_cents: Optional[int] = None
    nights: Optional[int] = None
    rate_plan_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PriceBreakdownResponse(BaseModel):
    """Price breakdown response DTO"""
    hotel_id: str
    room_type_id: str
    check_in: date
    check_out: date
    nights: int
    currency: str
    nightly: List[NightlyRateResponse]
    subtotal_cents: int
    tax_cents: int
    fee_cents: int
    total_cents: int
    items: List[BreakdownItemResponse]

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class HoldResponse(BaseModel):
    """Soft hold response DTO"""
    booking_id: UUID
    confirmation_code: str
    room_id: str
    hold_deadline: datetime
    price: PriceBreakdownResponse

    model_config = ConfigDict(from_attributes=True)


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    confirmation_code: str
    hotel_id: str
    room_type_id: str
    room_id: str
    guest_id: Optional[str] = None
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    status: BookingStatus
    hold_deadline: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    total_cents: int
    currency: str
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    actual_check_in_at: Optional[datetime] = None
    actual_check_out_at: Optional[datetime] = None
    no_show_at: Optional[datetime] = None
    version: int


class StateLogEntryResponse(BaseModel):
    """State history entry response DTO"""
    entry_id: UUID
    from_state: BookingStatus
    to_state: BookingStatus
    actor_id: Optional[str] = None
    actor_role: Role
    reason: Optional[str] = None
    metadata: Dict[str, Any] = {}
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# AVAILABILITY SCHEMAS
# ============================================================================

class RoomResponse(BaseModel):
    """Room response DTO"""
    room_id: str
    room_number: str
    floor: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class RoomTypeAvailabilityResponse(BaseModel):
    """Room type availability response DTO"""
    room_type_id: str
    name: str
    total_rooms: int
    available_rooms: int
    base_price_cents: Optional[int] = None
    currency: str

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    """Hotel availability response DTO"""
    hotel_id: str
    check_in: date
    check_out: date
    room_types: List[RoomTypeAvailabilityResponse]


class AvailableRoomsResponse(BaseModel):
    """Free rooms of one room type response DTO"""
    hotel_id: str
    room_type_id: str
    check_in: date
    check_out: date
    rooms: List[RoomResponse]


class CalendarDayResponse(BaseModel):
    """Room counts for one night response DTO"""
    night: date
    total: int
    booked: int
    available: int
    closed: bool

    model_config = ConfigDict(from_attributes=True)


class AvailabilityCalendarResponse(BaseModel):
    """Night-by-night availability of one room type response DTO"""
    hotel_id: str
    room_type_id: str
    start: date
    end: date
    minimum_available: int
    days: List[CalendarDayResponse]


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token data DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role
    hotel_ids: List[str] = []
    disabled: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)
