"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional, List
from uuid import UUID

from domain.entities import Booking, ClosedDate, Hotel, RatePlan, Room, RoomType, StateLogEntry
from domain.value_objects import DateRange


class BookingRepository(ABC):
    """Repository interface for the Booking aggregate and its state log.

    Implementations own atomicity: every write method below is a single
    critical section with respect to all other writers.
    """

    @abstractmethod
    async def insert_hold(self, booking: Booking, now: datetime) -> Booking:
        """Insert a pending booking unless an active booking on the same room overlaps.

        Overlap is judged at ``now`` inside the same atomic step as the insert.
        Raises ConflictRetryable on overlap.
        """
        pass

    @abstractmethod
    async def apply_transition(self, booking: Booking, expected_version: int, entry: StateLogEntry) -> Booking:
        """Store the updated booking and append its log entry together.

        Raises ConflictRetryable if the stored version is not expected_version.
        """
        pass

    @abstractmethod
    async def extend_hold(self, booking_id: UUID, additional: timedelta, max_extension_minutes: int,
                          now: datetime) -> Booking:
        """Push the hold deadline out, judging expiry against the stored deadline.

        Raises NotFound, SoftHoldExpired or ValidationError.
        """
        pass

    @abstractmethod
    async def reassign_room(self, booking_id: UUID, room_id: str, now: datetime) -> Booking:
        """Move a pending hold to another room under the same overlap rule as insert_hold"""
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_confirmation_code(self, code: str) -> Optional[Booking]:
        """Find booking by confirmation code"""
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_id: str) -> List[Booking]:
        """Find bookings by guest ID"""
        pass

    @abstractmethod
    async def find_by_hotel(self, hotel_id: str) -> List[Booking]:
        """Find every booking of a hotel"""
        pass

    @abstractmethod
    async def find_overlapping(self, room_ids: List[str], stay: DateRange) -> List[Booking]:
        """Bookings on any of room_ids whose stay overlaps, in any status"""
        pass

    @abstractmethod
    async def find_lapsed_holds(self, now: datetime, limit: int) -> List[Booking]:
        """Pending bookings whose hold deadline is before now, oldest deadline first"""
        pass

    @abstractmethod
    async def state_log(self, booking_id: UUID) -> List[StateLogEntry]:
        """State log entries for a booking in the order they were written"""
        pass


class InventoryRepository(ABC):
    """Repository interface for hotels, room types, rooms and closed dates"""

    @abstractmethod
    async def get_hotel(self, hotel_id: str) -> Optional[Hotel]:
        pass

    @abstractmethod
    async def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        pass

    @abstractmethod
    async def list_room_types(self, hotel_id: str) -> List[RoomType]:
        pass

    @abstractmethod
    async def list_rooms(self, hotel_id: str, room_type_id: str) -> List[Room]:
        pass

    @abstractmethod
    async def get_room(self, room_id: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def list_closed_dates(self, hotel_id: str) -> List[ClosedDate]:
        pass


class RatePlanRepository(ABC):
    """Repository interface for rate plans"""

    @abstractmethod
    async def find_for_room_type(self, hotel_id: str, room_type_id: str) -> List[RatePlan]:
        """Active and inactive plans of the hotel covering room_type_id"""
        pass


class DeliveryLedger(ABC):
    """Remembers payment notification delivery ids already applied"""

    @abstractmethod
    async def claim(self, delivery_id: str) -> bool:
        """Atomically record delivery_id; False if it was already claimed"""
        pass

    @abstractmethod
    async def release(self, delivery_id: str) -> None:
        """Forget a claim whose processing failed"""
        pass
