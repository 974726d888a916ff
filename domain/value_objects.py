"""Domain Value Objects"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator, ValidationInfo
from datetime import date, timedelta
from typing import Iterator, List, Optional, Tuple

from domain.enums import BreakdownItemType, Role


class DateRange(BaseModel):
    """Half-open stay range [check_in, check_out)"""
    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @field_validator('check_out')
    @classmethod
    def check_out_after_check_in(cls, v: date, info: ValidationInfo) -> date:
        check_in = info.data.get('check_in')
        if check_in is not None and v <= check_in:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return (self.check_out - self.check_in).days

    def each_night(self) -> Iterator[date]:
        """Yield the date of every night in the stay"""
        for offset in range(self.nights()):
            yield self.check_in + timedelta(days=offset)

    def overlaps(self, other: "DateRange") -> bool:
        return self.check_in < other.check_out and other.check_in < self.check_out

    def contains(self, night: date) -> bool:
        return self.check_in <= night < self.check_out


class Occupancy(BaseModel):
    """Value Object for guest count"""
    model_config = ConfigDict(frozen=True)

    adults: int = Field(ge=1, le=10)
    children: int = Field(default=0, ge=0, le=10)

    @property
    def total(self) -> int:
        return self.adults + self.children


class Actor(BaseModel):
    """Whoever asks for an action: a guest, hotel staff, an admin or the system"""
    model_config = ConfigDict(frozen=True)

    role: Role
    actor_id: Optional[str] = None
    hotel_ids: Tuple[str, ...] = ()

    @classmethod
    def system(cls, name: str = "system") -> "Actor":
        return cls(role=Role.SYSTEM, actor_id=name)

    def is_scoped_to(self, hotel_id: str) -> bool:
        return hotel_id in self.hotel_ids


class NightlyRate(BaseModel):
    """Price chosen for a single night"""
    model_config = ConfigDict(frozen=True)

    night: date
    amount_cents: int
    rate_plan_id: Optional[str] = None
    rate_plan_code: Optional[str] = None


class PriceBreakdownItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: BreakdownItemType
    description: str
    amount_cents: int
    nightly_rate_cents: Optional[int] = None
    nights: Optional[int] = None
    rate_plan_id: Optional[str] = None


class PriceBreakdown(BaseModel):
    """Full quote for a stay, integer minor units throughout"""
    model_config = ConfigDict(frozen=True)

    hotel_id: str
    room_type_id: str
    check_in: date
    check_out: date
    nights: int
    currency: str
    nightly: List[NightlyRate]
    subtotal_cents: int
    tax_cents: int
    fee_cents: int
    total_cents: int
    items: List[PriceBreakdownItem]

    @model_validator(mode='after')
    def check_totals(self) -> 'PriceBreakdown':
        if len(self.nightly) != self.nights:
            raise ValueError('Expected one nightly rate per night')
        if self.subtotal_cents != sum(n.amount_cents for n in self.nightly):
            raise ValueError('Subtotal must equal the sum of nightly rates')
        if self.total_cents != self.subtotal_cents + self.tax_cents + self.fee_cents:
            raise ValueError('Total must equal subtotal plus tax and fees')
        return self
