"""Rate Resolver - picks the one rate plan that prices a night

Among the plans in force for a night, the winner is chosen by:

1. highest ``priority``;
2. most specific: more restrictions set, then the narrower validity window;
3. lowest ``price_cents``;
4. ``code``, then ``rate_plan_id``, so the result never depends on the
   order plans come back from storage.
"""
from datetime import date
from typing import Iterable, List, NamedTuple, Optional, Tuple

from domain.entities import RatePlan


class Candidate(NamedTuple):
    plan: RatePlan
    violation: Optional[str]


def ranking_key(plan: RatePlan) -> Tuple:
    return (
        -plan.priority,
        -plan.specificity(),
        plan.validity.nights(),
        plan.price_cents,
        plan.code,
        plan.rate_plan_id,
    )


class RateResolver:
    """Stateless; every input arrives as an argument"""

    def candidates(
        self,
        plans: Iterable[RatePlan],
        room_type_id: str,
        night: date,
        nights: int,
        days_in_advance: int,
    ) -> List[Candidate]:
        """Plans in force on the night, best first, each with its stay-level violation if any"""
        in_force = sorted(
            (p for p in plans if p.covers(room_type_id, night)),
            key=ranking_key,
        )
        return [Candidate(p, p.restriction_violation(nights, days_in_advance)) for p in in_force]

    def resolve(
        self,
        plans: Iterable[RatePlan],
        room_type_id: str,
        night: date,
        nights: int,
        days_in_advance: int,
    ) -> Optional[RatePlan]:
        """Winning plan for the night, or None when no plan is eligible"""
        for candidate in self.candidates(plans, room_type_id, night, nights, days_in_advance):
            if candidate.violation is None:
                return candidate.plan
        return None
