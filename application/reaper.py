"""Expiry Reaper - expires soft holds whose deadline has passed"""
from typing import List, Optional
from uuid import UUID
import asyncio
import logging

from pydantic import BaseModel, Field

from application.transitions import TransitionExecutor
from domain.clock import Clock
from domain.enums import BookingStatus
from domain.errors import ConflictRetryable, InvalidTransition, NotFound
from domain.repositories import BookingRepository
from domain.value_objects import Actor

logger = logging.getLogger(__name__)

HOLD_TIMEOUT_REASON = "hold timeout"


class ReapReport(BaseModel):
    expired: List[UUID] = Field(default_factory=list)
    skipped: List[UUID] = Field(default_factory=list)


class ExpiryReaper:
    """Periodic task driving lapsed holds through pending -> expired.

    Several reapers may run at once: each expiration goes through the
    transition executor, so the loser of a race sees a booking that is no
    longer pending and skips it.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        executor: TransitionExecutor,
        clock: Clock,
        interval_seconds: float = 60.0,
        batch_size: int = 100,
        actor: Optional[Actor] = None,
    ):
        self.booking_repo = booking_repo
        self.executor = executor
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.actor = actor or Actor.system("expiry-reaper")
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> ReapReport:
        """Expire every hold that lapsed before now, up to batch_size"""
        report = ReapReport()
        lapsed = await self.booking_repo.find_lapsed_holds(self.clock.now(), self.batch_size)
        for booking in lapsed:
            try:
                await self.executor.transition(
                    booking.booking_id, BookingStatus.EXPIRED, self.actor, HOLD_TIMEOUT_REASON)
            except (InvalidTransition, NotFound, ConflictRetryable) as e:
                # Confirmed, released, extended or reaped elsewhere in the meantime
                logger.debug("Skipping booking %s: %s", booking.booking_id, e)
                report.skipped.append(booking.booking_id)
            else:
                report.expired.append(booking.booking_id)

        if report.expired or report.skipped:
            logger.info("Reaper expired %s holds, skipped %s", len(report.expired), len(report.skipped))
        return report

    async def run_forever(self) -> None:
        """Tick every interval_seconds until stop() is called"""
        logger.info("Expiry reaper started (interval %ss)", self.interval_seconds)
        while not self._stop.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Expiry reaper pass failed")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Expiry reaper stopped")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.get_running_loop().create_task(self.run_forever())
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
