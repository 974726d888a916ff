"""Transition Executor - the only path by which a booking changes status"""
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from domain import permissions, state_machine
from domain.clock import Clock
from domain.entities import Booking, StateLogEntry
from domain.enums import BookingStatus
from domain.errors import ConflictRetryable, InvalidTransition, NotFound, SoftHoldExpired
from domain.events import BookingEvent, EventPublisher
from domain.repositories import BookingRepository
from domain.value_objects import Actor

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "cancelled"


class TransitionExecutor:
    """Validates, authorizes and commits one status change at a time.

    The status update and its state log entry are written by a single
    compare-and-swap on the booking's version. Losing that race means
    someone else changed the booking first; the executor then re-reads it and
    decides again from the new state, so two concurrent cancellations produce
    one log entry and one InvalidTransition.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        clock: Clock,
        publisher: Optional[EventPublisher] = None,
        max_retries: int = 3,
    ):
        self.booking_repo = booking_repo
        self.clock = clock
        self.publisher = publisher
        self.max_retries = max_retries

    async def transition(
        self,
        booking_id: UUID,
        target: BookingStatus,
        actor: Actor,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        expected_from: Optional[BookingStatus] = None,
    ) -> Booking:
        """Move booking_id to target on behalf of actor and return the stored booking.

        With expected_from, the move only happens out of that state; the check
        is repeated on every retry.
        """
        attempt = 0
        while True:
            attempt += 1
            booking = await self.booking_repo.find_by_id(booking_id)
            if booking is None:
                raise NotFound("Booking", booking_id)

            if expected_from is not None and booking.status != expected_from:
                raise self._visible_to(actor, booking, InvalidTransition(
                    booking.status, target, booking_id=booking_id,
                    detail=f"booking is no longer {expected_from.value}",
                ))

            if target == BookingStatus.CONFIRMED and booking.status == BookingStatus.CONFIRMED:
                # Duplicate payment notifications land here
                permissions.authorize(actor, state_machine.action_for(target), booking)
                logger.info("Booking %s already confirmed; nothing to do", booking_id)
                return booking

            try:
                info = state_machine.validate(booking.status, target, booking_id=booking_id)
            except InvalidTransition as e:
                raise self._visible_to(actor, booking, e) from None
            permissions.authorize(actor, info.action, booking)
            self._check_hold(booking, target)

            if info.requires_reason and not reason:
                reason = DEFAULT_CANCELLATION_REASON

            now = self.clock.now()
            expected_version = booking.version
            from_state = booking.status
            updated = booking.model_copy(deep=True)
            updated.apply_status(target, now, reason)
            entry = StateLogEntry(
                booking_id=booking_id,
                from_state=from_state,
                to_state=target,
                actor_id=actor.actor_id,
                actor_role=actor.role,
                reason=reason,
                metadata=dict(metadata or {}),
                changed_at=now,
            )

            try:
                stored = await self.booking_repo.apply_transition(updated, expected_version, entry)
            except ConflictRetryable:
                if attempt >= self.max_retries:
                    raise
                logger.info("Booking %s changed concurrently, re-evaluating (attempt %s)", booking_id, attempt)
                continue

            logger.info(
                "Booking %s: %s -> %s by %s %s",
                booking_id, from_state.value, target.value, actor.role.value, actor.actor_id,
            )
            self._publish(stored, from_state, reason)
            return stored

    @staticmethod
    def _visible_to(actor: Actor, booking: Booking, error: InvalidTransition) -> InvalidTransition:
        """Hide the current state from actors who may not read the booking"""
        return error if permissions.can_view(actor, booking) else error.redacted()

    def _check_hold(self, booking: Booking, target: BookingStatus) -> None:
        now = self.clock.now()
        if target == BookingStatus.EXPIRED:
            if not booking.is_hold_lapsed(now):
                raise InvalidTransition(
                    booking.status, target, booking_id=booking.booking_id,
                    detail="hold deadline has not passed",
                )
        elif booking.is_hold_lapsed(now):
            raise SoftHoldExpired(booking.booking_id, booking.hold_deadline, booking.status)

    def _publish(self, booking: Booking, from_state: BookingStatus, reason: Optional[str]) -> None:
        if self.publisher is None:
            return
        event = BookingEvent(
            event_type=BookingEvent.type_for(booking.status),
            booking_id=booking.booking_id,
            hotel_id=booking.hotel_id,
            guest_id=booking.guest_id,
            confirmation_code=booking.confirmation_code,
            from_state=from_state,
            to_state=booking.status,
            reason=reason,
            occurred_at=booking.updated_at,
        )
        try:
            self.publisher.publish(event)
        except Exception:
            # The transition is committed; a notification failure must not undo it
            logger.exception("Failed to publish %s for booking %s", event.event_type, booking.booking_id)
