"""Domain Enums"""
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    NO_SHOW = "no_show"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    BLOCKED = "blocked"


class Role(str, Enum):
    GUEST = "guest"
    STAFF = "staff"
    OWNER = "owner"
    ADMIN = "admin"
    SYSTEM = "system"


class BookingAction(str, Enum):
    CONFIRM = "confirm"
    CHECK_IN = "checkIn"
    CHECK_OUT = "checkOut"
    MARK_NO_SHOW = "markNoShow"
    CANCEL = "cancel"
    EXPIRE = "expire"
    REASSIGN_ROOM = "reassignRoom"
    EXTEND_HOLD = "extendHold"


class BreakdownItemType(str, Enum):
    BASE = "base"
    RATE_PLAN = "rate_plan"
    TAX = "tax"
    FEE = "fee"


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    INVALID_TRANSITION = "InvalidTransition"
    PERMISSION_DENIED = "PermissionDenied"
    NO_AVAILABILITY = "NoAvailability"
    PRICING_UNAVAILABLE = "PricingUnavailable"
    SOFT_HOLD_EXPIRED = "SoftHoldExpired"
    VALIDATION_ERROR = "ValidationError"
    CONFLICT_RETRYABLE = "ConflictRetryable"
