from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Holds & bookings
    CreateHoldRequest, ExtendHoldRequest, HoldResponse, BookingActionRequest, StaffAction,
    ReassignRoomRequest, PaymentConfirmationRequest, BookingResponse, StateLogEntryResponse,
    # Pricing & availability
    QuoteRequest, PriceBreakdownResponse, AvailabilityResponse, AvailableRoomsResponse,
    RoomTypeAvailabilityResponse, RoomResponse, AvailabilityCalendarResponse, CalendarDayResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import (
    get_container, get_current_active_user, get_current_actor, get_optional_actor, fake_users_db, get_user
)
from api.errors import register_error_handlers
from infrastructure.config import get_settings
from infrastructure.container import Container
from infrastructure.logging_config import configure_logging
from infrastructure.security import verify_password, create_access_token
from infrastructure.seed import seed_demo_data
from application.inputs import make_occupancy, make_stay
from application.payments import PaymentConfirmation
from domain import permissions, state_machine
from domain.auth import User
from domain.entities import Booking
from domain.enums import BookingAction, BookingStatus, BreakdownItemType, ErrorKind, Role
from domain.errors import PermissionDenied
from domain.value_objects import Actor

settings = get_settings()
configure_logging(settings)


def build_container() -> Container:
    container = Container(settings)
    seed_demo_data(container.inventory_repo, container.rate_plan_repo)
    return container


@asynccontextmanager
async def lifespan(app: FastAPI):
    reaper = app.state.container.reaper
    if settings.reaper_enabled:
        reaper.start()
    yield
    if reaper.running:
        await reaper.stop()


app = FastAPI(
    title="Hotel Booking Engine API",
    description="Booking lifecycle: soft holds, pricing, state transitions and hold expiry",
    version="1.0.0",
    lifespan=lifespan,
)
app.state.container = build_container()
register_error_handlers(app)


def _ensure_can_view(actor: Actor, booking: Booking) -> None:
    """Guests see their own bookings, hotel staff those of their hotels"""
    if not permissions.can_view(actor, booking):
        raise PermissionDenied("view", booking.booking_id)


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check(container: Container = Depends(get_container)):
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running", "reaper_running": container.reaper.running}

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus values and the transitions out of each"""
    return {
        "values": [item.value for item in BookingStatus],
        "terminal": sorted(s.value for s in state_machine.TERMINAL_STATES),
        "transitions": {
            item.value: [t.value for t in state_machine.possible_transitions(item)] for item in BookingStatus
        },
    }

@app.get("/api/enums/booking-action", tags=["Enum Reference"])
async def get_booking_actions():
    """Get all BookingAction values"""
    return {
        "values": [item.value for item in BookingAction],
        "description": "Booking actions: confirm, checkIn, checkOut, markNoShow, cancel, expire, "
                       "reassignRoom, extendHold"
    }

@app.get("/api/enums/breakdown-item-type", tags=["Enum Reference"])
async def get_breakdown_item_types():
    """Get all BreakdownItemType values"""
    return {"values": [item.value for item in BreakdownItemType]}

@app.get("/api/enums/error-kind", tags=["Enum Reference"])
async def get_error_kinds():
    """Get all ErrorKind values"""
    return {"values": [item.value for item in ErrorKind]}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# AVAILABILITY & PRICING ENDPOINTS
# ============================================================================

@app.get("/api/hotels/{hotel_id}/availability", response_model=AvailabilityResponse, tags=["Availability"])
async def get_hotel_availability(
    hotel_id: str,
    check_in: date,
    check_out: date,
    container: Container = Depends(get_container)
):
    """Free rooms per room type for a stay"""
    stay = make_stay(check_in, check_out)
    summary = await container.availability.summarize(hotel_id, stay)
    return AvailabilityResponse(
        hotel_id=hotel_id,
        check_in=check_in,
        check_out=check_out,
        room_types=[RoomTypeAvailabilityResponse.model_validate(s) for s in summary],
    )

@app.get("/api/hotels/{hotel_id}/room-types/{room_type_id}/availability",
         response_model=AvailableRoomsResponse, tags=["Availability"])
async def get_available_rooms(
    hotel_id: str,
    room_type_id: str,
    check_in: date,
    check_out: date,
    container: Container = Depends(get_container)
):
    """Rooms of one type that are free for the whole stay"""
    stay = make_stay(check_in, check_out)
    rooms = await container.availability.find_available_rooms(hotel_id, room_type_id, stay)
    return AvailableRoomsResponse(
        hotel_id=hotel_id,
        room_type_id=room_type_id,
        check_in=check_in,
        check_out=check_out,
        rooms=[RoomResponse.model_validate(r) for r in rooms],
    )

@app.get("/api/hotels/{hotel_id}/room-types/{room_type_id}/calendar",
         response_model=AvailabilityCalendarResponse, tags=["Availability"])
async def get_availability_calendar(
    hotel_id: str,
    room_type_id: str,
    start: date,
    end: date,
    container: Container = Depends(get_container)
):
    """Night-by-night room counts for [start, end)"""
    period = make_stay(start, end)
    days = await container.availability.calendar(hotel_id, room_type_id, period)
    return AvailabilityCalendarResponse(
        hotel_id=hotel_id,
        room_type_id=room_type_id,
        start=start,
        end=end,
        minimum_available=min(d.available for d in days),
        days=[CalendarDayResponse.model_validate(d) for d in days],
    )

@app.post("/api/hotels/{hotel_id}/room-types/{room_type_id}/quote",
          response_model=PriceBreakdownResponse, tags=["Pricing"])
async def quote_stay(
    hotel_id: str,
    room_type_id: str,
    request: QuoteRequest,
    container: Container = Depends(get_container)
):
    """Price a stay; with expected_total_cents, also check a client-side total"""
    stay = make_stay(request.check_in, request.check_out)
    occupancy = make_occupancy(request.adults, request.children)
    if request.expected_total_cents is not None:
        price = await container.pricing.verify_quote(
            hotel_id, room_type_id, stay, occupancy, request.expected_total_cents)
    else:
        price = await container.pricing.price_stay(hotel_id, room_type_id, stay, occupancy)
    return PriceBreakdownResponse.model_validate(price)

# ============================================================================
# HOLD ENDPOINTS
# ============================================================================

@app.post("/api/holds", response_model=HoldResponse, status_code=201, tags=["Holds"])
async def create_hold(
    request: CreateHoldRequest,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_optional_actor)
):
    """Hold a room of the requested type ahead of payment"""
    guest_id = request.guest_id
    if actor.role == Role.GUEST and actor.actor_id is not None:
        # Signed-in guests always book for themselves
        guest_id = actor.actor_id
    hold = await container.soft_holds.create_hold(
        hotel_id=request.hotel_id,
        room_type_id=request.room_type_id,
        check_in=request.check_in,
        check_out=request.check_out,
        adults=request.adults,
        children=request.children,
        hold_minutes=request.hold_minutes,
        guest_id=guest_id,
    )
    return HoldResponse.model_validate(hold)

@app.post("/api/holds/{booking_id}/extend", response_model=BookingResponse, tags=["Holds"])
async def extend_hold(
    booking_id: UUID,
    request: ExtendHoldRequest,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_optional_actor)
):
    """Push a live hold's deadline out"""
    booking = await container.soft_holds.extend_hold(booking_id, request.additional_minutes, actor)
    return _booking_to_response(booking)

@app.post("/api/holds/{booking_id}/release", response_model=BookingResponse, tags=["Holds"])
async def release_hold(
    booking_id: UUID,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_optional_actor)
):
    """Give up a hold before it times out"""
    booking = await container.soft_holds.release_hold(booking_id, actor)
    return _booking_to_response(booking)

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings/{booking_id}/actions", response_model=BookingResponse, tags=["Bookings"])
async def perform_booking_action(
    booking_id: UUID,
    request: BookingActionRequest,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Apply a staff or guest action to a booking"""
    if request.action == StaffAction.RELEASE:
        booking = await container.soft_holds.release_hold(booking_id, actor)
    else:
        target = state_machine.target_for(BookingAction(request.action.value))
        booking = await container.executor.transition(booking_id, target, actor, request.reason)
    return _booking_to_response(booking)

@app.post("/api/bookings/{booking_id}/reassign", response_model=BookingResponse, tags=["Bookings"])
async def reassign_room(
    booking_id: UUID,
    request: ReassignRoomRequest,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Move a pending hold to another room of the same type"""
    booking = await container.soft_holds.reassign_room(booking_id, request.room_id, actor)
    return _booking_to_response(booking)

@app.get("/api/bookings/code/{confirmation_code}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking_by_code(
    confirmation_code: str,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Get booking by confirmation code"""
    booking = await container.queries.get_by_confirmation_code(confirmation_code)
    _ensure_can_view(actor, booking)
    return _booking_to_response(booking)

@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Get booking by ID"""
    booking = await container.queries.get_booking(booking_id)
    _ensure_can_view(actor, booking)
    return _booking_to_response(booking)

@app.get("/api/bookings/{booking_id}/history", response_model=List[StateLogEntryResponse], tags=["Bookings"])
async def get_booking_history(
    booking_id: UUID,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """State log of a booking, oldest first"""
    booking = await container.queries.get_booking(booking_id)
    _ensure_can_view(actor, booking)
    entries = await container.queries.history(booking_id)
    return [StateLogEntryResponse.model_validate(e) for e in entries]

@app.get("/api/guests/{guest_id}/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_guest_bookings(
    guest_id: str,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Get all bookings for a guest"""
    if actor.role == Role.GUEST and actor.actor_id != guest_id:
        raise HTTPException(status_code=403, detail="Guests can only list their own bookings")
    bookings = await container.queries.list_guest_bookings(guest_id, actor)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/hotels/{hotel_id}/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def get_hotel_bookings(
    hotel_id: str,
    status: Optional[List[BookingStatus]] = Query(None),
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    guest_id: Optional[str] = None,
    container: Container = Depends(get_container),
    actor: Actor = Depends(get_current_actor)
):
    """Bookings of one hotel for its staff, newest first"""
    bookings = await container.queries.list_hotel_bookings(
        hotel_id, actor, statuses=status, from_date=from_date, to_date=to_date, guest_id=guest_id)
    return [_booking_to_response(b) for b in bookings]

# ============================================================================
# PAYMENT ENDPOINTS
# ============================================================================

@app.post("/api/payments/confirmations", response_model=BookingResponse, tags=["Payments"])
async def confirm_payment(
    request: PaymentConfirmationRequest,
    container: Container = Depends(get_container),
    current_user: User = Depends(get_current_active_user)
):
    """Payment collaborator reports an authorized payment"""
    if current_user.role not in (Role.SYSTEM, Role.ADMIN):
        raise HTTPException(status_code=403, detail="Only the payment service may confirm payments")
    booking = await container.payments.handle(PaymentConfirmation(**request.model_dump()))
    return _booking_to_response(booking)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert booking entity to response DTO"""
    return BookingResponse(
        booking_id=booking.booking_id,
        confirmation_code=booking.confirmation_code,
        hotel_id=booking.hotel_id,
        room_type_id=booking.room_type_id,
        room_id=booking.room_id,
        guest_id=booking.guest_id,
        check_in=booking.stay.check_in,
        check_out=booking.stay.check_out,
        nights=booking.stay.nights(),
        adults=booking.occupancy.adults,
        children=booking.occupancy.children,
        status=booking.status,
        hold_deadline=booking.hold_deadline,
        cancellation_reason=booking.cancellation_reason,
        total_cents=booking.price.total_cents,
        currency=booking.price.currency,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        confirmed_at=booking.confirmed_at,
        cancelled_at=booking.cancelled_at,
        expired_at=booking.expired_at,
        actual_check_in_at=booking.actual_check_in_at,
        actual_check_out_at=booking.actual_check_out_at,
        no_show_at=booking.no_show_at,
        version=booking.version,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
