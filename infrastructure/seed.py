"""Demo inventory so the API has something to book against"""
from datetime import date

from domain.entities import Hotel, RatePlan, Room, RoomType
from domain.value_objects import DateRange
from infrastructure.repositories.in_memory_repositories import InMemoryInventoryRepository, InMemoryRatePlanRepository

DEMO_HOTEL_ID = "grand-hotel"
SATURDAY = 6


def seed_demo_data(inventory: InMemoryInventoryRepository, rate_plans: InMemoryRatePlanRepository) -> None:
    inventory.add_hotel(Hotel(hotel_id=DEMO_HOTEL_ID, name="Grand Hotel", currency="USD"))

    inventory.add_room_type(RoomType(
        room_type_id="standard", hotel_id=DEMO_HOTEL_ID, name="Standard",
        base_price_cents=10000, max_adults=2, max_children=1, max_occupancy=3,
    ))
    inventory.add_room_type(RoomType(
        room_type_id="suite", hotel_id=DEMO_HOTEL_ID, name="Suite",
        base_price_cents=25000, max_adults=4, max_children=2, max_occupancy=5,
    ))

    for number in ("101", "102", "103"):
        inventory.add_room(Room(room_id=f"room-{number}", hotel_id=DEMO_HOTEL_ID,
                                room_type_id="standard", room_number=number, floor=1))
    inventory.add_room(Room(room_id="room-501", hotel_id=DEMO_HOTEL_ID,
                            room_type_id="suite", room_number="501", floor=5))

    rate_plans.save(RatePlan(
        hotel_id=DEMO_HOTEL_ID,
        room_type_ids=["standard"],
        code="WEEKEND",
        name="Weekend",
        validity=DateRange(check_in=date(2020, 1, 1), check_out=date(2100, 1, 1)),
        priority=10,
        price_cents=12000,
        applicable_days=frozenset({SATURDAY}),
    ))
