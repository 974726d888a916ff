"""In-Memory Repository Implementations

Every write runs under one ``threading.Lock`` and never awaits while holding
it, so check-and-write is a single atomic step for concurrent tasks and
worker threads alike. Stored entities are copied on the way in and out.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set
from uuid import UUID
import threading

from domain.entities import Booking, ClosedDate, Hotel, RatePlan, Room, RoomType, StateLogEntry
from domain.enums import BookingStatus
from domain.errors import ConflictRetryable, DuplicateConfirmationCode, NotFound, SoftHoldExpired, ValidationError
from domain.repositories import BookingRepository, DeliveryLedger, InventoryRepository, RatePlanRepository
from domain.value_objects import DateRange


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository"""

    def __init__(self):
        self._lock = threading.Lock()
        self._storage: Dict[UUID, Booking] = {}
        self._codes: Dict[str, UUID] = {}
        self._log: Dict[UUID, List[StateLogEntry]] = {}

    def _check_room_free(self, booking: Booking, room_id: str, now: datetime) -> None:
        for other in self._storage.values():
            if other.room_id == room_id and booking.conflicts_with(other, now):
                raise ConflictRetryable(
                    f"Room {room_id} is already held for overlapping dates",
                    room_id=room_id,
                    booking_id=booking.booking_id,
                )

    async def insert_hold(self, booking: Booking, now: datetime) -> Booking:
        with self._lock:
            if booking.booking_id in self._storage:
                raise ConflictRetryable("Booking already exists", booking_id=booking.booking_id)
            if booking.confirmation_code in self._codes:
                raise DuplicateConfirmationCode(booking.confirmation_code)
            self._check_room_free(booking, booking.room_id, now)

            stored = booking.model_copy(deep=True)
            self._storage[stored.booking_id] = stored
            self._codes[stored.confirmation_code] = stored.booking_id
            self._log[stored.booking_id] = []
            return stored.model_copy(deep=True)

    async def apply_transition(self, booking: Booking, expected_version: int, entry: StateLogEntry) -> Booking:
        with self._lock:
            current = self._storage.get(booking.booking_id)
            if current is None:
                raise NotFound("Booking", booking.booking_id)
            if current.version != expected_version:
                raise ConflictRetryable(
                    "Booking was modified concurrently",
                    booking_id=booking.booking_id,
                    current_state=current.status,
                )
            stored = booking.model_copy(deep=True)
            self._storage[stored.booking_id] = stored
            self._log[stored.booking_id].append(entry)
            return stored.model_copy(deep=True)

    async def extend_hold(self, booking_id: UUID, additional: timedelta, max_extension_minutes: int,
                          now: datetime) -> Booking:
        with self._lock:
            current = self._storage.get(booking_id)
            if current is None:
                raise NotFound("Booking", booking_id)
            if current.status != BookingStatus.PENDING or current.is_hold_lapsed(now):
                raise SoftHoldExpired(booking_id, current.hold_deadline, current.status)

            requested = int(additional.total_seconds() // 60)
            if current.hold_extended_minutes + requested > max_extension_minutes:
                raise ValidationError(
                    f"Hold can be extended by at most {max_extension_minutes} minutes in total",
                    booking_id=booking_id,
                    extended_minutes=current.hold_extended_minutes,
                )

            updated = current.model_copy(deep=True)
            updated.extend_deadline(additional, now)
            self._storage[booking_id] = updated
            return updated.model_copy(deep=True)

    async def reassign_room(self, booking_id: UUID, room_id: str, now: datetime) -> Booking:
        with self._lock:
            current = self._storage.get(booking_id)
            if current is None:
                raise NotFound("Booking", booking_id)
            if current.is_hold_lapsed(now):
                raise SoftHoldExpired(booking_id, current.hold_deadline, current.status)
            updated = current.model_copy(deep=True)
            try:
                updated.reassign_room(room_id, now)
            except ValueError as e:
                raise ValidationError(str(e), booking_id=booking_id, current_state=current.status)
            self._check_room_free(updated, room_id, now)
            self._storage[booking_id] = updated
            return updated.model_copy(deep=True)

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        with self._lock:
            booking = self._storage.get(booking_id)
            return booking.model_copy(deep=True) if booking else None

    async def find_by_confirmation_code(self, code: str) -> Optional[Booking]:
        with self._lock:
            booking_id = self._codes.get(code)
            return self._storage[booking_id].model_copy(deep=True) if booking_id else None

    async def find_by_guest_id(self, guest_id: str) -> List[Booking]:
        with self._lock:
            return [b.model_copy(deep=True) for b in self._storage.values() if b.guest_id == guest_id]

    async def find_by_hotel(self, hotel_id: str) -> List[Booking]:
        with self._lock:
            return [b.model_copy(deep=True) for b in self._storage.values() if b.hotel_id == hotel_id]

    async def find_overlapping(self, room_ids: List[str], stay: DateRange) -> List[Booking]:
        wanted = set(room_ids)
        with self._lock:
            return [
                b.model_copy(deep=True) for b in self._storage.values()
                if b.room_id in wanted and b.stay.overlaps(stay)
            ]

    async def find_lapsed_holds(self, now: datetime, limit: int) -> List[Booking]:
        with self._lock:
            lapsed = [
                b for b in self._storage.values()
                if b.status == BookingStatus.PENDING and b.hold_deadline is not None and b.hold_deadline < now
            ]
            lapsed.sort(key=lambda b: b.hold_deadline)
            return [b.model_copy(deep=True) for b in lapsed[:limit]]

    async def state_log(self, booking_id: UUID) -> List[StateLogEntry]:
        with self._lock:
            return list(self._log.get(booking_id, []))


class InMemoryInventoryRepository(InventoryRepository):
    """In-memory implementation of InventoryRepository"""

    def __init__(self):
        self._hotels: Dict[str, Hotel] = {}
        self._room_types: Dict[str, RoomType] = {}
        self._rooms: Dict[str, Room] = {}
        self._closed: List[ClosedDate] = []

    def add_hotel(self, hotel: Hotel) -> Hotel:
        self._hotels[hotel.hotel_id] = hotel
        return hotel

    def add_room_type(self, room_type: RoomType) -> RoomType:
        if room_type.hotel_id not in self._hotels:
            raise ValueError("Room type must belong to a known hotel")
        self._room_types[room_type.room_type_id] = room_type
        return room_type

    def add_room(self, room: Room) -> Room:
        room_type = self._room_types.get(room.room_type_id)
        if room_type is None or room_type.hotel_id != room.hotel_id:
            raise ValueError("Room must belong to a room type of the same hotel")
        self._rooms[room.room_id] = room
        return room

    def add_closed_date(self, closed: ClosedDate) -> ClosedDate:
        self._closed.append(closed)
        return closed

    def set_room_status(self, room_id: str, status) -> Room:
        room = self._rooms[room_id].model_copy(update={"status": status})
        self._rooms[room_id] = room
        return room

    async def get_hotel(self, hotel_id: str) -> Optional[Hotel]:
        return self._hotels.get(hotel_id)

    async def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self._room_types.get(room_type_id)

    async def list_room_types(self, hotel_id: str) -> List[RoomType]:
        return [rt for rt in self._room_types.values() if rt.hotel_id == hotel_id]

    async def list_rooms(self, hotel_id: str, room_type_id: str) -> List[Room]:
        return [
            r for r in self._rooms.values()
            if r.hotel_id == hotel_id and r.room_type_id == room_type_id
        ]

    async def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    async def list_closed_dates(self, hotel_id: str) -> List[ClosedDate]:
        return [c for c in self._closed if c.hotel_id == hotel_id]


class InMemoryRatePlanRepository(RatePlanRepository):
    """In-memory implementation of RatePlanRepository"""

    def __init__(self):
        self._storage: Dict[str, RatePlan] = {}

    def save(self, rate_plan: RatePlan) -> RatePlan:
        self._storage[rate_plan.rate_plan_id] = rate_plan
        return rate_plan

    async def find_for_room_type(self, hotel_id: str, room_type_id: str) -> List[RatePlan]:
        return [
            p for p in self._storage.values()
            if p.hotel_id == hotel_id and room_type_id in p.room_type_ids
        ]


class InMemoryDeliveryLedger(DeliveryLedger):
    """In-memory implementation of DeliveryLedger"""

    def __init__(self):
        self._lock = threading.Lock()
        self._seen: Set[str] = set()

    async def claim(self, delivery_id: str) -> bool:
        with self._lock:
            if delivery_id in self._seen:
                return False
            self._seen.add(delivery_id)
            return True

    async def release(self, delivery_id: str) -> None:
        with self._lock:
            self._seen.discard(delivery_id)
