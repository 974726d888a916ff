"""Permission Guard - who may do what to a booking"""
import logging
from typing import Callable, Dict, FrozenSet

from domain.entities import Booking
from domain.enums import BookingAction, Role
from domain.errors import PermissionDenied
from domain.value_objects import Actor

logger = logging.getLogger(__name__)

HOTEL_ROLES: FrozenSet[Role] = frozenset({Role.STAFF, Role.OWNER})

Rule = Callable[[Actor, Booking], bool]


def _hotel_staff(actor: Actor, booking: Booking) -> bool:
    return can_manage_hotel(actor, booking.hotel_id)


def _system(actor: Actor, booking: Booking) -> bool:
    return actor.role == Role.SYSTEM


def _owning_guest(actor: Actor, booking: Booking) -> bool:
    return (
        actor.role == Role.GUEST
        and actor.actor_id is not None
        and booking.guest_id is not None
        and actor.actor_id == booking.guest_id
    )


AUTHORIZATION_TABLE: Dict[BookingAction, tuple] = {
    BookingAction.CONFIRM: (_hotel_staff, _system),
    BookingAction.CHECK_IN: (_hotel_staff,),
    BookingAction.CHECK_OUT: (_hotel_staff,),
    BookingAction.MARK_NO_SHOW: (_hotel_staff,),
    BookingAction.CANCEL: (_hotel_staff, _system, _owning_guest),
    BookingAction.EXPIRE: (_system,),
    BookingAction.REASSIGN_ROOM: (_hotel_staff,),
    BookingAction.EXTEND_HOLD: (_hotel_staff, _owning_guest),
}


def is_allowed(actor: Actor, action: BookingAction, booking: Booking) -> bool:
    return any(rule(actor, booking) for rule in AUTHORIZATION_TABLE.get(action, ()))


def authorize(actor: Actor, action: BookingAction, booking: Booking) -> None:
    """Raise PermissionDenied unless actor may perform action on booking"""
    if not is_allowed(actor, action, booking):
        logger.warning(
            "Denied %s on booking %s for %s %s",
            action.value, booking.booking_id, actor.role.value, actor.actor_id,
        )
        raise PermissionDenied(action, booking.booking_id)


def can_manage_hotel(actor: Actor, hotel_id: str) -> bool:
    """Admins, and staff or owners scoped to hotel_id"""
    if actor.role == Role.ADMIN:
        return True
    return actor.role in HOTEL_ROLES and actor.is_scoped_to(hotel_id)


def can_view(actor: Actor, booking: Booking) -> bool:
    """Read access: the hotel's own staff, admins, the system, or the owning guest"""
    return (
        can_manage_hotel(actor, booking.hotel_id)
        or _system(actor, booking)
        or _owning_guest(actor, booking)
    )
