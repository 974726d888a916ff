"""Shared fixtures for the booking engine test suite"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from domain.clock import FixedClock
from domain.entities import Booking
from domain.enums import BookingStatus, Role
from domain.value_objects import Actor, DateRange, NightlyRate, Occupancy, PriceBreakdown
from infrastructure.config import Settings
from infrastructure.container import Container
from infrastructure.seed import DEMO_HOTEL_ID, seed_demo_data

# Tuesday
NOW = datetime(2030, 1, 1, 10, 0, tzinfo=timezone.utc)
FRIDAY = date(2030, 1, 4)
MONDAY = date(2030, 1, 7)


def make_price(check_in: date = FRIDAY, check_out: date = MONDAY, total_cents: int = 35840) -> PriceBreakdown:
    nights = (check_out - check_in).days
    per_night, remainder = divmod(total_cents, nights)
    nightly = [
        NightlyRate(night=check_in + timedelta(days=i), amount_cents=per_night + (remainder if i == 0 else 0))
        for i in range(nights)
    ]
    return PriceBreakdown(
        hotel_id=DEMO_HOTEL_ID,
        room_type_id="standard",
        check_in=check_in,
        check_out=check_out,
        nights=nights,
        currency="USD",
        nightly=nightly,
        subtotal_cents=total_cents,
        tax_cents=0,
        fee_cents=0,
        total_cents=total_cents,
        items=[],
    )


def make_booking(
    status: BookingStatus = BookingStatus.PENDING,
    room_id: str = "room-101",
    check_in: date = FRIDAY,
    check_out: date = MONDAY,
    guest_id: Optional[str] = "guest-1",
    now: datetime = NOW,
    hold_minutes: int = 15,
) -> Booking:
    booking = Booking.create_hold(
        hotel_id=DEMO_HOTEL_ID,
        room_type_id="standard",
        room_id=room_id,
        stay=DateRange(check_in=check_in, check_out=check_out),
        occupancy=Occupancy(adults=2),
        price=make_price(check_in, check_out),
        now=now,
        hold_duration=timedelta(minutes=hold_minutes),
        guest_id=guest_id,
    )
    if status != BookingStatus.PENDING:
        booking.status = status
        booking.hold_deadline = None
    return booking


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def settings():
    return Settings(_env_file=None, reaper_enabled=False)


@pytest.fixture
def container(settings, clock):
    """Engine wired around fresh in-memory repositories and the demo hotel"""
    container = Container(settings, clock)
    seed_demo_data(container.inventory_repo, container.rate_plan_repo)
    return container


@pytest.fixture
def system_actor():
    return Actor.system()


@pytest.fixture
def staff_actor():
    return Actor(role=Role.STAFF, actor_id="staff-1", hotel_ids=(DEMO_HOTEL_ID,))


@pytest.fixture
def guest_actor():
    return Actor(role=Role.GUEST, actor_id="guest-1")
