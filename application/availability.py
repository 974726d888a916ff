"""Availability Resolver"""
from datetime import date, datetime
from typing import List, Optional
import logging

from pydantic import BaseModel

from domain.clock import Clock
from domain.entities import Room, RoomType
from domain.enums import RoomStatus
from domain.errors import NotFound, ValidationError
from domain.repositories import BookingRepository, InventoryRepository
from domain.value_objects import DateRange

logger = logging.getLogger(__name__)

MAX_CALENDAR_NIGHTS = 366


class RoomTypeAvailability(BaseModel):
    room_type_id: str
    name: str
    total_rooms: int
    available_rooms: int
    base_price_cents: Optional[int] = None
    currency: str


class CalendarDay(BaseModel):
    night: date
    total: int
    booked: int
    available: int
    closed: bool = False


class AvailabilityResolver:
    """Finds rooms free over a stay range.

    A pending booking whose hold deadline has passed no longer blocks its
    room here, even before the reaper has marked it expired.
    """

    def __init__(self, booking_repo: BookingRepository, inventory_repo: InventoryRepository, clock: Clock):
        self.booking_repo = booking_repo
        self.inventory_repo = inventory_repo
        self.clock = clock

    async def _room_type(self, hotel_id: str, room_type_id: str) -> RoomType:
        if await self.inventory_repo.get_hotel(hotel_id) is None:
            raise NotFound("Hotel", hotel_id)
        room_type = await self.inventory_repo.get_room_type(room_type_id)
        if room_type is None or room_type.hotel_id != hotel_id:
            raise NotFound("Room type", room_type_id)
        return room_type

    async def _is_closed(self, hotel_id: str, room_type_id: str, stay: DateRange) -> bool:
        for closed in await self.inventory_repo.list_closed_dates(hotel_id):
            if closed.applies_to(hotel_id, room_type_id) and closed.closed_range.overlaps(stay):
                return True
        return False

    async def _free_rooms(self, hotel_id: str, room_type_id: str, stay: DateRange, now: datetime) -> List[Room]:
        if await self._is_closed(hotel_id, room_type_id, stay):
            logger.debug("Room type %s closed during %s - %s", room_type_id, stay.check_in, stay.check_out)
            return []

        rooms = [
            r for r in await self.inventory_repo.list_rooms(hotel_id, room_type_id)
            if r.status == RoomStatus.AVAILABLE
        ]
        if not rooms:
            return []

        overlapping = await self.booking_repo.find_overlapping([r.room_id for r in rooms], stay)
        taken = {b.room_id for b in overlapping if b.is_active(now)}
        free = [r for r in rooms if r.room_id not in taken]
        return sorted(free, key=lambda r: r.room_number)

    async def find_available_rooms(self, hotel_id: str, room_type_id: str, stay: DateRange) -> List[Room]:
        """Rooms of the type with no active overlapping booking, ordered by room number"""
        await self._room_type(hotel_id, room_type_id)
        return await self._free_rooms(hotel_id, room_type_id, stay, self.clock.now())

    async def is_room_available(self, room: Room, stay: DateRange) -> bool:
        free = await self._free_rooms(room.hotel_id, room.room_type_id, stay, self.clock.now())
        return any(r.room_id == room.room_id for r in free)

    async def summarize(self, hotel_id: str, stay: DateRange) -> List[RoomTypeAvailability]:
        """Per room type of the hotel: how many rooms exist and how many are free"""
        if await self.inventory_repo.get_hotel(hotel_id) is None:
            raise NotFound("Hotel", hotel_id)

        now = self.clock.now()
        summary = []
        for room_type in await self.inventory_repo.list_room_types(hotel_id):
            total = await self.inventory_repo.list_rooms(hotel_id, room_type.room_type_id)
            free = await self._free_rooms(hotel_id, room_type.room_type_id, stay, now)
            summary.append(RoomTypeAvailability(
                room_type_id=room_type.room_type_id,
                name=room_type.name,
                total_rooms=len(total),
                available_rooms=len(free),
                base_price_cents=room_type.base_price_cents,
                currency=room_type.currency,
            ))
        return summary

    async def calendar(self, hotel_id: str, room_type_id: str, period: DateRange) -> List[CalendarDay]:
        """Night-by-night room counts for one room type over period.

        Counts use the same rules as find_available_rooms: lapsed holds do
        not occupy a room and a closed night has nothing available.
        """
        if period.nights() > MAX_CALENDAR_NIGHTS:
            raise ValidationError(
                f"Calendar covers at most {MAX_CALENDAR_NIGHTS} nights",
                check_in=str(period.check_in), check_out=str(period.check_out),
            )
        await self._room_type(hotel_id, room_type_id)

        now = self.clock.now()
        rooms = await self.inventory_repo.list_rooms(hotel_id, room_type_id)
        bookable = {r.room_id for r in rooms if r.status == RoomStatus.AVAILABLE}
        active = [
            b for b in await self.booking_repo.find_overlapping([r.room_id for r in rooms], period)
            if b.is_active(now)
        ]
        closures = [
            c.closed_range for c in await self.inventory_repo.list_closed_dates(hotel_id)
            if c.applies_to(hotel_id, room_type_id)
        ]

        days = []
        for night in period.each_night():
            taken = {b.room_id for b in active if b.stay.contains(night)}
            closed = any(r.contains(night) for r in closures)
            days.append(CalendarDay(
                night=night,
                total=len(rooms),
                booked=len(taken),
                available=0 if closed else len(bookable - taken),
                closed=closed,
            ))
        return days

    async def minimum_availability(self, hotel_id: str, room_type_id: str, stay: DateRange) -> int:
        """Fewest free rooms on any night of the stay"""
        days = await self.calendar(hotel_id, room_type_id, stay)
        return min(day.available for day in days)
