"""Pricing Engine - quotes a stay night by night

``price_stay`` reads hotel, room type and rate plans through its
repositories and has no other inputs besides its arguments, so quoting the
same request twice gives the same breakdown. That is what lets the same call
serve live quotes and the server-side check of a client-submitted total.
"""
from datetime import date
from typing import Dict, List, Optional, Tuple
import logging

from application.rate_resolver import RateResolver
from domain.clock import Clock
from domain.entities import Hotel, RatePlan, RoomType
from domain.enums import BreakdownItemType
from domain.errors import NotFound, PricingUnavailable, ValidationError
from domain.repositories import InventoryRepository, RatePlanRepository
from domain.value_objects import DateRange, NightlyRate, Occupancy, PriceBreakdown, PriceBreakdownItem

logger = logging.getLogger(__name__)


def apply_rate_bps(amount_cents: int, rate_bps: int) -> int:
    """amount * rate, rounded half up, in integer arithmetic"""
    return (amount_cents * rate_bps + 5000) // 10000


def _nights_label(nights: int) -> str:
    return f"{nights} {'night' if nights == 1 else 'nights'}"


class PricingEngine:
    """Service for pricing a stay"""

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        rate_plan_repo: RatePlanRepository,
        clock: Clock,
        default_tax_rate_bps: int = 1200,
        rate_resolver: Optional[RateResolver] = None,
    ):
        self.inventory_repo = inventory_repo
        self.rate_plan_repo = rate_plan_repo
        self.clock = clock
        self.default_tax_rate_bps = default_tax_rate_bps
        self.rate_resolver = rate_resolver or RateResolver()

    async def load_room_type(self, hotel_id: str, room_type_id: str) -> Tuple[Hotel, RoomType]:
        hotel = await self.inventory_repo.get_hotel(hotel_id)
        if hotel is None:
            raise NotFound("Hotel", hotel_id)
        room_type = await self.inventory_repo.get_room_type(room_type_id)
        if room_type is None or room_type.hotel_id != hotel_id:
            raise NotFound("Room type", room_type_id)
        return hotel, room_type

    async def price_stay(
        self,
        hotel_id: str,
        room_type_id: str,
        stay: DateRange,
        occupancy: Occupancy,
        booked_on: Optional[date] = None,
    ) -> PriceBreakdown:
        """Quote the stay; raises NotFound, ValidationError or PricingUnavailable"""
        hotel, room_type = await self.load_room_type(hotel_id, room_type_id)
        if not room_type.fits(occupancy):
            raise ValidationError(
                f"Room type {room_type.name} cannot accommodate "
                f"{occupancy.adults} adults and {occupancy.children} children",
                room_type_id=room_type_id,
            )

        booked_on = booked_on or self.clock.today()
        plans = await self.rate_plan_repo.find_for_room_type(hotel_id, room_type_id)
        nightly = self._nightly_rates(room_type, plans, stay, booked_on)

        subtotal = sum(n.amount_cents for n in nightly)
        tax_rate_bps = hotel.tax_rate_bps if hotel.tax_rate_bps is not None else self.default_tax_rate_bps
        tax = apply_rate_bps(subtotal, tax_rate_bps)
        fee = hotel.fee_cents

        items = self._plan_items(room_type, plans, nightly)
        if tax > 0:
            items.append(PriceBreakdownItem(
                type=BreakdownItemType.TAX,
                description=f"Taxes ({tax_rate_bps / 100:g}%)",
                amount_cents=tax,
            ))
        if fee > 0:
            items.append(PriceBreakdownItem(
                type=BreakdownItemType.FEE,
                description="Service fees",
                amount_cents=fee,
            ))

        return PriceBreakdown(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            nights=stay.nights(),
            currency=room_type.currency,
            nightly=nightly,
            subtotal_cents=subtotal,
            tax_cents=tax,
            fee_cents=fee,
            total_cents=subtotal + tax + fee,
            items=items,
        )

    async def verify_quote(
        self,
        hotel_id: str,
        room_type_id: str,
        stay: DateRange,
        occupancy: Occupancy,
        expected_total_cents: int,
        booked_on: Optional[date] = None,
    ) -> PriceBreakdown:
        """Re-price server side and reject a client total that does not match"""
        price = await self.price_stay(hotel_id, room_type_id, stay, occupancy, booked_on)
        if price.total_cents != expected_total_cents:
            logger.warning(
                "Quote mismatch for %s/%s: expected %s, computed %s",
                hotel_id, room_type_id, expected_total_cents, price.total_cents,
            )
            raise ValidationError(
                "Submitted price does not match the current quote",
                expected_total_cents=expected_total_cents,
                calculated_total_cents=price.total_cents,
            )
        return price

    def _nightly_rates(
        self,
        room_type: RoomType,
        plans: List[RatePlan],
        stay: DateRange,
        booked_on: date,
    ) -> List[NightlyRate]:
        nights = stay.nights()
        days_in_advance = (stay.check_in - booked_on).days
        nightly = []
        for night in stay.each_night():
            candidates = self.rate_resolver.candidates(
                plans, room_type.room_type_id, night, nights, days_in_advance)
            winner = next((c.plan for c in candidates if c.violation is None), None)

            if winner is not None:
                nightly.append(NightlyRate(
                    night=night,
                    amount_cents=winner.price_cents,
                    rate_plan_id=winner.rate_plan_id,
                    rate_plan_code=winner.code,
                ))
            elif room_type.base_price_cents is not None:
                nightly.append(NightlyRate(night=night, amount_cents=room_type.base_price_cents))
            else:
                context = {"room_type_id": room_type.room_type_id, "night": night.isoformat()}
                message = f"No rate available for {night.isoformat()}"
                if candidates:
                    top = candidates[0]
                    message = f"{message}: rate plan {top.plan.code} requires {top.violation}"
                    context["rate_plan_code"] = top.plan.code
                raise PricingUnavailable(message, **context)
        return nightly

    def _plan_items(
        self,
        room_type: RoomType,
        plans: List[RatePlan],
        nightly: List[NightlyRate],
    ) -> List[PriceBreakdownItem]:
        base = room_type.base_price_cents
        nights = len(nightly)
        by_id = {p.rate_plan_id: p for p in plans}

        # Nights priced by each plan, in order of first use
        plan_nights: Dict[str, int] = {}
        for rate in nightly:
            if rate.rate_plan_id is not None:
                plan_nights[rate.rate_plan_id] = plan_nights.get(rate.rate_plan_id, 0) + 1

        items: List[PriceBreakdownItem] = []
        if base is not None:
            items.append(PriceBreakdownItem(
                type=BreakdownItemType.BASE,
                description=f"Base rate ({_nights_label(nights)})",
                amount_cents=base * nights,
                nightly_rate_cents=base,
                nights=nights,
            ))

        for plan_id, count in plan_nights.items():
            plan = by_id[plan_id]
            amount = (plan.price_cents - base) * count if base is not None else plan.price_cents * count
            if amount == 0 and base is not None:
                continue
            items.append(PriceBreakdownItem(
                type=BreakdownItemType.RATE_PLAN,
                description=f"{plan.name} rate ({_nights_label(count)})",
                amount_cents=amount,
                nightly_rate_cents=plan.price_cents,
                nights=count,
                rate_plan_id=plan_id,
            ))
        return items
