"""Booking State Machine

The transition table below is the only place that decides whether a status
change is valid. Everything else asks it.
"""
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple

from domain.enums import BookingAction, BookingStatus
from domain.errors import InvalidTransition

INITIAL_STATE = BookingStatus.PENDING

TERMINAL_STATES: FrozenSet[BookingStatus] = frozenset({
    BookingStatus.CHECKED_OUT,
    BookingStatus.CANCELLED,
    BookingStatus.EXPIRED,
    BookingStatus.NO_SHOW,
})


class TransitionInfo(NamedTuple):
    action: BookingAction
    description: str
    requires_reason: bool = False


TRANSITIONS: Dict[Tuple[BookingStatus, BookingStatus], TransitionInfo] = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): TransitionInfo(
        BookingAction.CONFIRM, "Confirm a pending booking after payment authorization"),
    (BookingStatus.PENDING, BookingStatus.CANCELLED): TransitionInfo(
        BookingAction.CANCEL, "Cancel a pending booking", requires_reason=True),
    (BookingStatus.PENDING, BookingStatus.EXPIRED): TransitionInfo(
        BookingAction.EXPIRE, "Expire a pending booking whose hold timed out"),
    (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN): TransitionInfo(
        BookingAction.CHECK_IN, "Check in a guest for their confirmed booking"),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): TransitionInfo(
        BookingAction.CANCEL, "Cancel a confirmed booking", requires_reason=True),
    (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW): TransitionInfo(
        BookingAction.MARK_NO_SHOW, "Mark booking as no-show when guest does not arrive"),
    (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT): TransitionInfo(
        BookingAction.CHECK_OUT, "Check out a guest"),
}

# Action a caller asks for -> the status it leads to
ACTION_TARGETS: Dict[BookingAction, BookingStatus] = {
    info.action: to_state for (_, to_state), info in TRANSITIONS.items()
}


def is_valid_transition(from_state: BookingStatus, to_state: BookingStatus) -> bool:
    return (from_state, to_state) in TRANSITIONS


def is_terminal(state: BookingStatus) -> bool:
    return state in TERMINAL_STATES


def possible_transitions(state: BookingStatus) -> Tuple[BookingStatus, ...]:
    return tuple(to_state for (from_state, to_state) in TRANSITIONS if from_state == state)


def transition_info(from_state: BookingStatus, to_state: BookingStatus) -> Optional[TransitionInfo]:
    return TRANSITIONS.get((from_state, to_state))


def validate(from_state: BookingStatus, to_state: BookingStatus, booking_id=None) -> TransitionInfo:
    """Return the transition's metadata or raise InvalidTransition"""
    info = TRANSITIONS.get((from_state, to_state))
    if info is None:
        detail = f"{from_state.value} is a terminal state" if is_terminal(from_state) else None
        raise InvalidTransition(from_state, to_state, booking_id=booking_id, detail=detail)
    return info


def action_for(to_state: BookingStatus) -> BookingAction:
    """Action implied by moving a booking into to_state"""
    for (_, target), info in TRANSITIONS.items():
        if target == to_state:
            return info.action
    raise ValueError(f"No action leads to {to_state.value}")


def target_for(action: BookingAction) -> BookingStatus:
    return ACTION_TARGETS[action]
