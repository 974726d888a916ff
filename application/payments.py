"""Payment confirmation events from the external payment collaborator.

Notifications may arrive more than once. A repeated ``delivery_id`` is
dropped before anything else happens; a repeat without one still reaches
the transition executor, where confirming a confirmed booking is a no-op.
"""
from typing import Optional
from uuid import UUID
import logging

from pydantic import BaseModel, Field

from application.transitions import TransitionExecutor
from domain.entities import Booking
from domain.enums import BookingStatus
from domain.errors import NotFound, ValidationError
from domain.repositories import BookingRepository, DeliveryLedger
from domain.value_objects import Actor

logger = logging.getLogger(__name__)


class PaymentConfirmation(BaseModel):
    booking_id: UUID
    payment_reference: str
    amount_cents: int = Field(ge=0)
    delivery_id: Optional[str] = None


class PaymentConfirmationHandler:

    def __init__(
        self,
        booking_repo: BookingRepository,
        executor: TransitionExecutor,
        ledger: DeliveryLedger,
        actor: Optional[Actor] = None,
    ):
        self.booking_repo = booking_repo
        self.executor = executor
        self.ledger = ledger
        self.actor = actor or Actor.system("payments")

    async def handle(self, event: PaymentConfirmation) -> Booking:
        if event.delivery_id is not None and not await self.ledger.claim(event.delivery_id):
            logger.info("Ignoring duplicate payment delivery %s", event.delivery_id)
            booking = await self.booking_repo.find_by_id(event.booking_id)
            if booking is None:
                raise NotFound("Booking", event.booking_id)
            return booking

        try:
            return await self._confirm(event)
        except Exception:
            if event.delivery_id is not None:
                await self.ledger.release(event.delivery_id)
            raise

    async def _confirm(self, event: PaymentConfirmation) -> Booking:
        booking = await self.booking_repo.find_by_id(event.booking_id)
        if booking is None:
            raise NotFound("Booking", event.booking_id)
        if event.amount_cents != booking.price.total_cents:
            raise ValidationError(
                "Payment amount does not match booking total",
                booking_id=event.booking_id,
                amount_cents=event.amount_cents,
                expected_cents=booking.price.total_cents,
            )
        return await self.executor.transition(
            event.booking_id,
            BookingStatus.CONFIRMED,
            self.actor,
            metadata={"payment_reference": event.payment_reference},
        )
