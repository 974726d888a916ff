"""Soft-Hold Manager - temporary reservations ahead of payment"""
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID
import logging

from pydantic import BaseModel

from application.availability import AvailabilityResolver
from application.inputs import make_occupancy, make_stay
from application.pricing import PricingEngine
from application.transitions import TransitionExecutor
from domain import permissions
from domain.clock import Clock
from domain.entities import Booking
from domain.enums import BookingAction, BookingStatus
from domain.errors import ConflictRetryable, DuplicateConfirmationCode, NoAvailability, NotFound, ValidationError
from domain.repositories import BookingRepository, InventoryRepository
from domain.value_objects import Actor, PriceBreakdown

logger = logging.getLogger(__name__)

RELEASE_REASON = "hold released"
CONFIRMATION_CODE_ATTEMPTS = 5


class HoldResult(BaseModel):
    booking_id: UUID
    confirmation_code: str
    room_id: str
    price: PriceBreakdown
    hold_deadline: datetime


class SoftHoldManager:
    """Service for creating, extending and releasing soft holds"""

    def __init__(
        self,
        booking_repo: BookingRepository,
        inventory_repo: InventoryRepository,
        availability: AvailabilityResolver,
        pricing: PricingEngine,
        executor: TransitionExecutor,
        clock: Clock,
        default_hold_minutes: int = 15,
        max_hold_minutes: int = 60,
        max_extension_minutes: int = 30,
    ):
        self.booking_repo = booking_repo
        self.inventory_repo = inventory_repo
        self.availability = availability
        self.pricing = pricing
        self.executor = executor
        self.clock = clock
        self.default_hold_minutes = default_hold_minutes
        self.max_hold_minutes = max_hold_minutes
        self.max_extension_minutes = max_extension_minutes

    async def create_hold(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        adults: int,
        children: int = 0,
        hold_minutes: Optional[int] = None,
        guest_id: Optional[str] = None,
    ) -> HoldResult:
        """Hold the first free room of the type; raises NoAvailability when none can be held"""
        stay = make_stay(check_in, check_out)
        occupancy = make_occupancy(adults, children)
        hold_minutes = self.default_hold_minutes if hold_minutes is None else hold_minutes
        if not 1 <= hold_minutes <= self.max_hold_minutes:
            raise ValidationError(
                f"Hold duration must be between 1 and {self.max_hold_minutes} minutes",
                hold_minutes=hold_minutes,
            )

        candidates = await self.availability.find_available_rooms(hotel_id, room_type_id, stay)
        if not candidates:
            raise NoAvailability(hotel_id, room_type_id, check_in, check_out)

        price = await self.pricing.price_stay(hotel_id, room_type_id, stay, occupancy)

        for room in candidates:
            booking = await self._insert(hotel_id, room_type_id, room.room_id, stay, occupancy, price,
                                         timedelta(minutes=hold_minutes), guest_id)
            if booking is not None:
                logger.info(
                    "Created hold %s on room %s until %s",
                    booking.booking_id, room.room_number, booking.hold_deadline.isoformat(),
                )
                return HoldResult(
                    booking_id=booking.booking_id,
                    confirmation_code=booking.confirmation_code,
                    room_id=booking.room_id,
                    price=booking.price,
                    hold_deadline=booking.hold_deadline,
                )

        logger.warning("All %s candidate rooms of %s were taken concurrently", len(candidates), room_type_id)
        raise NoAvailability(hotel_id, room_type_id, check_in, check_out)

    async def _insert(self, hotel_id, room_type_id, room_id, stay, occupancy, price, hold_duration,
                      guest_id) -> Optional[Booking]:
        """Insert a hold on room_id; None if another hold took the room first"""
        for _ in range(CONFIRMATION_CODE_ATTEMPTS):
            now = self.clock.now()
            booking = Booking.create_hold(
                hotel_id=hotel_id,
                room_type_id=room_type_id,
                room_id=room_id,
                stay=stay,
                occupancy=occupancy,
                price=price,
                now=now,
                hold_duration=hold_duration,
                guest_id=guest_id,
            )
            try:
                return await self.booking_repo.insert_hold(booking, now)
            except DuplicateConfirmationCode:
                continue
            except ConflictRetryable:
                logger.warning("Room %s taken while holding, trying next candidate", room_id)
                return None
        raise ConflictRetryable("Could not allocate a unique confirmation code", room_id=room_id)

    async def extend_hold(self, booking_id: UUID, additional_minutes: int, actor: Actor) -> Booking:
        """Push the deadline out; SoftHoldExpired if the stored deadline already passed"""
        if additional_minutes <= 0:
            raise ValidationError("additional_minutes must be positive", booking_id=booking_id)
        current = await self.booking_repo.find_by_id(booking_id)
        if current is None:
            raise NotFound("Booking", booking_id)
        permissions.authorize(actor, BookingAction.EXTEND_HOLD, current)

        booking = await self.booking_repo.extend_hold(
            booking_id,
            timedelta(minutes=additional_minutes),
            self.max_extension_minutes,
            self.clock.now(),
        )
        logger.info("Extended hold %s until %s", booking_id, booking.hold_deadline.isoformat())
        return booking

    async def release_hold(self, booking_id: UUID, actor: Actor) -> Booking:
        """Guest abandoned the hold: pending -> cancelled right away, nothing else"""
        return await self.executor.transition(
            booking_id, BookingStatus.CANCELLED, actor, RELEASE_REASON, expected_from=BookingStatus.PENDING)

    async def reassign_room(self, booking_id: UUID, room_id: str, actor: Actor) -> Booking:
        """Move a pending hold to another free room of the same type"""
        booking = await self.booking_repo.find_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        permissions.authorize(actor, BookingAction.REASSIGN_ROOM, booking)
        if room_id == booking.room_id:
            return booking
        room = await self.inventory_repo.get_room(room_id)
        if room is None:
            raise NotFound("Room", room_id)
        if room.hotel_id != booking.hotel_id or room.room_type_id != booking.room_type_id:
            raise ValidationError("Room must be of the booked room type", room_id=room_id, booking_id=booking_id)
        if not await self.availability.is_room_available(room, booking.stay):
            raise NoAvailability(booking.hotel_id, booking.room_type_id,
                                 booking.stay.check_in, booking.stay.check_out)
        try:
            updated = await self.booking_repo.reassign_room(booking_id, room_id, self.clock.now())
        except ConflictRetryable:
            raise NoAvailability(booking.hotel_id, booking.room_type_id,
                                 booking.stay.check_in, booking.stay.check_out)
        logger.info("Reassigned hold %s to room %s", booking_id, room.room_number)
        return updated
