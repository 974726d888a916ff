"""Read side: bookings and their state history"""
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from domain import permissions
from domain.entities import Booking, StateLogEntry
from domain.enums import BookingStatus
from domain.errors import NotFound, PermissionDenied
from domain.repositories import BookingRepository
from domain.value_objects import Actor


class BookingQueries:

    def __init__(self, booking_repo: BookingRepository):
        self.booking_repo = booking_repo

    async def get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repo.find_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    async def get_by_confirmation_code(self, code: str) -> Booking:
        booking = await self.booking_repo.find_by_confirmation_code(code.upper())
        if booking is None:
            raise NotFound("Booking", code)
        return booking

    async def list_guest_bookings(self, guest_id: str, actor: Optional[Actor] = None) -> List[Booking]:
        """A guest's bookings, oldest first; with actor, only those the actor may read"""
        bookings = await self.booking_repo.find_by_guest_id(guest_id)
        if actor is not None:
            bookings = [b for b in bookings if permissions.can_view(actor, b)]
        return sorted(bookings, key=lambda b: b.created_at)

    async def list_hotel_bookings(
        self,
        hotel_id: str,
        actor: Actor,
        statuses: Optional[Iterable[BookingStatus]] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        guest_id: Optional[str] = None,
    ) -> List[Booking]:
        """Front-desk list for one hotel, newest first.

        from_date keeps stays arriving on or after it, to_date keeps stays
        departing on or before it.
        """
        if not permissions.can_manage_hotel(actor, hotel_id):
            raise PermissionDenied("list", hotel_id=hotel_id)

        wanted = set(statuses) if statuses else None
        bookings = [
            b for b in await self.booking_repo.find_by_hotel(hotel_id)
            if (wanted is None or b.status in wanted)
            and (from_date is None or b.stay.check_in >= from_date)
            and (to_date is None or b.stay.check_out <= to_date)
            and (guest_id is None or b.guest_id == guest_id)
        ]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    async def history(self, booking_id: UUID) -> List[StateLogEntry]:
        await self.get_booking(booking_id)
        return await self.booking_repo.state_log(booking_id)
