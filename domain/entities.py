"""Domain Entities - Aggregates"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID, uuid4
from datetime import date, datetime, timedelta
from typing import Any, Dict, FrozenSet, List, Optional
import random
import string

from domain.enums import BookingStatus, Role, RoomStatus
from domain.value_objects import DateRange, Occupancy, PriceBreakdown

ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN})

ALL_DAYS: FrozenSet[int] = frozenset(range(7))


def day_of_week(night: date) -> int:
    """0 = Sunday ... 6 = Saturday"""
    return night.isoweekday() % 7


class Hotel(BaseModel):
    hotel_id: str
    name: str
    currency: str = "USD"
    tax_rate_bps: Optional[int] = Field(default=None, ge=0)
    fee_cents: int = Field(default=0, ge=0)

    model_config = ConfigDict(from_attributes=True)


class RoomType(BaseModel):
    room_type_id: str
    hotel_id: str
    name: str
    base_price_cents: Optional[int] = Field(default=None, gt=0)
    currency: str = "USD"
    max_adults: int = Field(default=2, ge=1)
    max_children: int = Field(default=2, ge=0)
    max_occupancy: int = Field(default=4, ge=1)

    model_config = ConfigDict(from_attributes=True)

    def fits(self, occupancy: Occupancy) -> bool:
        return (
            occupancy.adults <= self.max_adults
            and occupancy.children <= self.max_children
            and occupancy.total <= self.max_occupancy
        )


class Room(BaseModel):
    room_id: str
    hotel_id: str
    room_type_id: str
    room_number: str
    floor: Optional[int] = None
    status: RoomStatus = RoomStatus.AVAILABLE

    model_config = ConfigDict(from_attributes=True)


class ClosedDate(BaseModel):
    """Blackout range for a hotel, or for one room type when room_type_id is set"""
    closed_id: UUID = Field(default_factory=uuid4)
    hotel_id: str
    room_type_id: Optional[str] = None
    closed_range: DateRange
    reason: Optional[str] = None
    is_active: bool = True

    def applies_to(self, hotel_id: str, room_type_id: str) -> bool:
        if not self.is_active or self.hotel_id != hotel_id:
            return False
        return self.room_type_id is None or self.room_type_id == room_type_id


class RatePlan(BaseModel):
    """Pricing rule competing with others for a given night"""

    rate_plan_id: str = Field(default_factory=lambda: str(uuid4()))
    hotel_id: str
    room_type_ids: List[str]
    code: str
    name: str
    validity: DateRange
    priority: int = 0
    price_cents: int = Field(gt=0)

    # Restrictions
    min_stay_nights: int = Field(default=1, ge=1)
    max_stay_nights: Optional[int] = Field(default=None, ge=1)
    applicable_days: FrozenSet[int] = ALL_DAYS
    min_advance_days: int = Field(default=0, ge=0)
    max_advance_days: Optional[int] = Field(default=None, ge=0)

    # Refund & cancellation
    is_refundable: bool = True
    cancellation_deadline_hours: Optional[int] = 24

    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode='after')
    def check_restrictions(self) -> "RatePlan":
        if self.max_stay_nights is not None and self.max_stay_nights < self.min_stay_nights:
            raise ValueError('max_stay_nights must be >= min_stay_nights')
        if self.max_advance_days is not None and self.max_advance_days < self.min_advance_days:
            raise ValueError('max_advance_days must be >= min_advance_days')
        if not self.applicable_days or not self.applicable_days <= ALL_DAYS:
            raise ValueError('applicable_days must be a non-empty subset of 0..6')
        if not self.room_type_ids:
            raise ValueError('Rate plan must cover at least one room type')
        return self

    def covers(self, room_type_id: str, night: date) -> bool:
        """Plan is in force for this room type on this night"""
        return (
            self.is_active
            and room_type_id in self.room_type_ids
            and self.validity.contains(night)
            and day_of_week(night) in self.applicable_days
        )

    def restriction_violation(self, nights: int, days_in_advance: int) -> Optional[str]:
        """Describe the first stay-level restriction this plan fails, if any"""
        if nights < self.min_stay_nights:
            return f"minimum stay of {self.min_stay_nights} nights"
        if self.max_stay_nights is not None and nights > self.max_stay_nights:
            return f"maximum stay of {self.max_stay_nights} nights"
        if days_in_advance < self.min_advance_days:
            return f"booking at least {self.min_advance_days} days in advance"
        if self.max_advance_days is not None and days_in_advance > self.max_advance_days:
            return f"booking at most {self.max_advance_days} days in advance"
        return None

    def specificity(self) -> int:
        """Number of restrictions this plan narrows beyond the defaults"""
        return sum((
            self.min_stay_nights > 1,
            self.max_stay_nights is not None,
            self.applicable_days != ALL_DAYS,
            self.min_advance_days > 0,
            self.max_advance_days is not None,
        ))


class Booking(BaseModel):
    """Booking Aggregate Root Entity"""

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)
    confirmation_code: str

    # References
    hotel_id: str
    room_type_id: str
    room_id: str
    guest_id: Optional[str] = None

    # Value Objects
    stay: DateRange
    occupancy: Occupancy
    price: PriceBreakdown

    # Status
    status: BookingStatus = BookingStatus.PENDING
    hold_deadline: Optional[datetime] = None
    hold_extended_minutes: int = 0
    cancellation_reason: Optional[str] = None

    # Timestamps
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None
    actual_check_in_at: Optional[datetime] = None
    actual_check_out_at: Optional[datetime] = None
    no_show_at: Optional[datetime] = None

    version: int = 1

    model_config = ConfigDict(from_attributes=True)

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create_hold(
        hotel_id: str,
        room_type_id: str,
        room_id: str,
        stay: DateRange,
        occupancy: Occupancy,
        price: PriceBreakdown,
        now: datetime,
        hold_duration: timedelta,
        guest_id: Optional[str] = None,
    ) -> "Booking":
        """Create a pending booking holding the room until now + hold_duration"""
        return Booking(
            confirmation_code=Booking.generate_confirmation_code(),
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            room_id=room_id,
            guest_id=guest_id,
            stay=stay,
            occupancy=occupancy,
            price=price,
            status=BookingStatus.PENDING,
            hold_deadline=now + hold_duration,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def generate_confirmation_code() -> str:
        """Generate a confirmation code; uniqueness is enforced on insert"""
        return ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))

    # ==================== QUERY METHODS ====================
    def is_hold_lapsed(self, now: datetime) -> bool:
        """Pending hold whose deadline has passed, whether or not it was reaped yet"""
        return (
            self.status == BookingStatus.PENDING
            and self.hold_deadline is not None
            and self.hold_deadline <= now
        )

    def is_active(self, now: datetime) -> bool:
        """Counts toward the room's no-overlap invariant"""
        if self.status not in ACTIVE_STATUSES:
            return False
        return not self.is_hold_lapsed(now)

    def conflicts_with(self, other: "Booking", now: datetime) -> bool:
        return (
            self.booking_id != other.booking_id
            and self.room_id == other.room_id
            and other.is_active(now)
            and self.stay.overlaps(other.stay)
        )

    # ==================== STATE CHANGES ====================
    def apply_status(self, target: BookingStatus, at: datetime, reason: Optional[str] = None) -> None:
        """Move to target and stamp the state-specific fields.

        Validity is decided by the state machine before this is called.
        """
        if target == BookingStatus.CONFIRMED:
            self.confirmed_at = at
        elif target == BookingStatus.CANCELLED:
            self.cancelled_at = at
            self.cancellation_reason = reason
        elif target == BookingStatus.EXPIRED:
            self.expired_at = at
        elif target == BookingStatus.CHECKED_IN:
            self.actual_check_in_at = at
        elif target == BookingStatus.CHECKED_OUT:
            self.actual_check_out_at = at
        elif target == BookingStatus.NO_SHOW:
            self.no_show_at = at

        if self.status == BookingStatus.PENDING:
            self.hold_deadline = None

        self.status = target
        self.updated_at = at
        self.version += 1

    def extend_deadline(self, additional: timedelta, at: datetime) -> None:
        self.hold_deadline = self.hold_deadline + additional
        self.hold_extended_minutes += int(additional.total_seconds() // 60)
        self.updated_at = at
        self.version += 1

    def reassign_room(self, room_id: str, at: datetime) -> None:
        if self.status != BookingStatus.PENDING:
            raise ValueError(f"Cannot reassign room for booking with status {self.status.value}")
        self.room_id = room_id
        self.updated_at = at
        self.version += 1


class StateLogEntry(BaseModel):
    """Immutable audit record of one realized transition"""
    model_config = ConfigDict(frozen=True)

    entry_id: UUID = Field(default_factory=uuid4)
    booking_id: UUID
    from_state: BookingStatus
    to_state: BookingStatus
    actor_id: Optional[str] = None
    actor_role: Role
    reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    changed_at: datetime
