"""Domain Events - emitted once per realized transition"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from domain.enums import BookingStatus


class BookingEvent(BaseModel):
    """Logical notification trigger, e.g. ``booking.confirmed``"""
    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    event_type: str
    booking_id: UUID
    hotel_id: str
    guest_id: Optional[str] = None
    confirmation_code: str
    from_state: BookingStatus
    to_state: BookingStatus
    reason: Optional[str] = None
    occurred_at: datetime

    @staticmethod
    def type_for(status: BookingStatus) -> str:
        return f"booking.{status.value}"


class EventPublisher(ABC):
    """Port the engine publishes booking events through"""

    @abstractmethod
    def publish(self, event: BookingEvent) -> None:
        pass
