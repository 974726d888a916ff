"""Domain Errors - one class per failure kind"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from domain.enums import BookingStatus, ErrorKind


class BookingEngineError(Exception):
    """Base class for every typed failure the engine surfaces.

    ``kind`` is the tag callers switch on; ``context`` carries the ids and
    states the calling layer needs to render a specific message.
    """

    kind: ErrorKind

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.kind.value, "message": self.message}
        for key, value in self.context.items():
            if isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            payload[key] = value
        return payload


class NotFound(BookingEngineError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=str(entity_id))


class InvalidTransition(BookingEngineError):
    """Requested status change is not in the transition table or its preconditions fail.

    With ``reveal_state=False`` the booking's current state is left out of
    the message and the context.
    """

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        from_state: BookingStatus,
        to_state: BookingStatus,
        booking_id: Optional[UUID] = None,
        detail: Optional[str] = None,
        reveal_state: bool = True,
    ):
        if reveal_state:
            message = f"Invalid transition from {from_state.value} to {to_state.value}"
            if detail:
                message = f"{message}: {detail}"
            super().__init__(
                message,
                booking_id=booking_id,
                from_state=from_state,
                to_state=to_state,
                current_state=from_state,
            )
        else:
            super().__init__(
                f"Booking {booking_id} cannot move to {to_state.value}",
                booking_id=booking_id,
                to_state=to_state,
            )
        self.from_state = from_state
        self.to_state = to_state
        self.booking_id = booking_id

    def redacted(self) -> "InvalidTransition":
        return InvalidTransition(self.from_state, self.to_state, booking_id=self.booking_id, reveal_state=False)


class PermissionDenied(BookingEngineError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, action: Any, booking_id: Optional[UUID] = None, hotel_id: Optional[str] = None):
        action_name = getattr(action, "value", action)
        subject = f"booking {booking_id}" if booking_id is not None else f"hotel {hotel_id}"
        super().__init__(
            f"Not permitted to {action_name} {subject}",
            action=action_name,
            booking_id=booking_id,
            hotel_id=hotel_id,
        )


class NoAvailability(BookingEngineError):
    kind = ErrorKind.NO_AVAILABILITY

    def __init__(self, hotel_id: str, room_type_id: str, check_in: Any = None, check_out: Any = None):
        super().__init__(
            "No available rooms for the selected dates",
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=str(check_in) if check_in else None,
            check_out=str(check_out) if check_out else None,
        )


class PricingUnavailable(BookingEngineError):
    kind = ErrorKind.PRICING_UNAVAILABLE

    def __init__(self, message: str, **context: Any):
        super().__init__(message, **context)


class SoftHoldExpired(BookingEngineError):
    kind = ErrorKind.SOFT_HOLD_EXPIRED

    def __init__(self, booking_id: UUID, hold_deadline: Optional[datetime] = None,
                 current_state: Optional[BookingStatus] = None):
        super().__init__(
            f"Soft hold on booking {booking_id} has expired",
            booking_id=booking_id,
            hold_deadline=hold_deadline,
            current_state=current_state,
        )


class ValidationError(BookingEngineError):
    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, **context: Any):
        super().__init__(message, **context)


class ConflictRetryable(BookingEngineError):
    kind = ErrorKind.CONFLICT_RETRYABLE

    def __init__(self, message: str, **context: Any):
        super().__init__(message, **context)


class DuplicateConfirmationCode(ConflictRetryable):
    """Generated confirmation code collided with an existing booking"""

    def __init__(self, code: str):
        super().__init__(f"Confirmation code {code} already in use", confirmation_code=code)
