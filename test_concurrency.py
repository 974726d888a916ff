"""
Concurrency tests: holds raced from worker threads, each with its own event loop,
against one shared engine
"""

import asyncio
import itertools
import random
import threading
from datetime import date, timedelta

import pytest

from conftest import FRIDAY, MONDAY
from domain.enums import BookingStatus, RoomStatus
from domain.errors import NoAvailability
from domain.value_objects import DateRange
from infrastructure.seed import DEMO_HOTEL_ID


def _race(container, requests):
    """Run one create_hold per request on its own thread, all released at once"""
    barrier = threading.Barrier(len(requests))
    results = [None] * len(requests)

    def worker(index, room_type_id, check_in, check_out):
        barrier.wait()
        try:
            results[index] = asyncio.run(container.soft_holds.create_hold(
                DEMO_HOTEL_ID, room_type_id, check_in, check_out, adults=1))
        except Exception as e:
            results[index] = e

    threads = [threading.Thread(target=worker, args=(i, *request)) for i, request in enumerate(requests)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return results


async def _active_bookings(container):
    rooms = await container.inventory_repo.list_rooms(DEMO_HOTEL_ID, "standard")
    everything = DateRange(check_in=date(2030, 1, 1), check_out=date(2030, 3, 1))
    bookings = await container.booking_repo.find_overlapping([r.room_id for r in rooms], everything)
    now = container.clock.now()
    return [b for b in bookings if b.is_active(now)]


class TestConcurrentHolds:
    """No two active bookings ever share a room on the same night"""

    @pytest.mark.integration
    @pytest.mark.concurrency
    @pytest.mark.edge_case
    def test_last_room_goes_to_exactly_one_caller(self, container):
        results = _race(container, [("suite", FRIDAY, MONDAY)] * 2)

        held = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, NoAvailability)]
        assert len(held) == 1
        assert len(refused) == 1
        assert held[0].room_id == "room-501"

    @pytest.mark.integration
    @pytest.mark.concurrency
    def test_two_callers_get_different_rooms(self, container):
        container.inventory_repo.set_room_status("room-103", RoomStatus.MAINTENANCE)
        results = _race(container, [("standard", FRIDAY, MONDAY)] * 2)

        assert not any(isinstance(r, Exception) for r in results)
        assert sorted(r.room_id for r in results) == ["room-101", "room-102"]

    @pytest.mark.integration
    @pytest.mark.concurrency
    def test_more_callers_than_rooms(self, container):
        results = _race(container, [("standard", FRIDAY, MONDAY)] * 8)

        held = [r for r in results if not isinstance(r, Exception)]
        assert len(held) == 3
        assert all(isinstance(r, NoAvailability) for r in results if isinstance(r, Exception))
        assert len({r.room_id for r in held}) == 3

    @pytest.mark.integration
    @pytest.mark.concurrency
    @pytest.mark.parametrize("seed", range(5))
    def test_randomized_windows_never_overlap(self, container, seed):
        rng = random.Random(seed)
        requests = []
        for _ in range(12):
            check_in = date(2030, 1, 1) + timedelta(days=rng.randrange(20))
            requests.append(("standard", check_in, check_in + timedelta(days=rng.randrange(1, 6))))

        results = _race(container, requests)
        assert all(isinstance(r, NoAvailability) for r in results if isinstance(r, Exception))

        active = asyncio.run(_active_bookings(container))
        assert len(active) == sum(1 for r in results if not isinstance(r, Exception))
        for a, b in itertools.combinations(active, 2):
            if a.room_id == b.room_id:
                assert not a.stay.overlaps(b.stay), f"{a.booking_id} and {b.booking_id} share {a.room_id}"

    @pytest.mark.integration
    @pytest.mark.concurrency
    def test_cancelled_hold_frees_room_for_next_race(self, container, system_actor):
        first = _race(container, [("suite", FRIDAY, MONDAY)] * 2)
        winner = next(r for r in first if not isinstance(r, Exception))
        asyncio.run(container.soft_holds.release_hold(winner.booking_id, system_actor))

        second = _race(container, [("suite", FRIDAY, MONDAY)] * 2)
        assert sum(1 for r in second if not isinstance(r, Exception)) == 1
        booking = asyncio.run(container.queries.get_booking(winner.booking_id))
        assert booking.status == BookingStatus.CANCELLED
