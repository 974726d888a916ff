"""Builds the engine's services around one set of repositories"""
from typing import Optional

from application.availability import AvailabilityResolver
from application.payments import PaymentConfirmationHandler
from application.pricing import PricingEngine
from application.queries import BookingQueries
from application.reaper import ExpiryReaper
from application.soft_hold import SoftHoldManager
from application.transitions import TransitionExecutor
from domain.clock import Clock, SystemClock
from infrastructure.config import Settings
from infrastructure.events import EventBus
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryDeliveryLedger, InMemoryInventoryRepository, InMemoryRatePlanRepository
)


class Container:

    def __init__(self, settings: Settings, clock: Optional[Clock] = None):
        self.settings = settings
        self.clock = clock or SystemClock()

        # Repositories
        self.booking_repo = InMemoryBookingRepository()
        self.inventory_repo = InMemoryInventoryRepository()
        self.rate_plan_repo = InMemoryRatePlanRepository()
        self.delivery_ledger = InMemoryDeliveryLedger()

        self.event_bus = EventBus()

        # Services
        self.availability = AvailabilityResolver(self.booking_repo, self.inventory_repo, self.clock)
        self.pricing = PricingEngine(
            self.inventory_repo,
            self.rate_plan_repo,
            self.clock,
            default_tax_rate_bps=settings.tax_rate_bps,
        )
        self.executor = TransitionExecutor(
            self.booking_repo,
            self.clock,
            publisher=self.event_bus,
            max_retries=settings.transition_max_retries,
        )
        self.soft_holds = SoftHoldManager(
            self.booking_repo,
            self.inventory_repo,
            self.availability,
            self.pricing,
            self.executor,
            self.clock,
            default_hold_minutes=settings.hold_duration_minutes,
            max_hold_minutes=settings.max_hold_minutes,
            max_extension_minutes=settings.max_hold_extension_minutes,
        )
        self.payments = PaymentConfirmationHandler(self.booking_repo, self.executor, self.delivery_ledger)
        self.queries = BookingQueries(self.booking_repo)
        self.reaper = ExpiryReaper(
            self.booking_repo,
            self.executor,
            self.clock,
            interval_seconds=settings.reaper_interval_seconds,
            batch_size=settings.reaper_batch_size,
        )
