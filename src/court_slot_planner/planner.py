from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional, Sequence, Union

from . import settings
from .availability import AvailabilityResolver
from .errors import InvariantViolation
from .models import Claim, Occupancy, OperatingHours, Slot, day_of_week, parse_date
from .pricing import PriceTable

if TYPE_CHECKING:
    from .store import DataStore

logger = logging.getLogger(__name__)


def default_operating_hours() -> OperatingHours:
    return OperatingHours(start=settings.DEFAULT_OPEN_HOUR, end=settings.DEFAULT_CLOSE_HOUR)


def claims_by_hour(availability: Occupancy, hours: Sequence[int]) -> dict[int, tuple[Claim, ...]]:
    """Map each hour to every reservation and recurring booking covering it."""

    claims: dict[int, tuple[Claim, ...]] = {}
    for hour in hours:
        covering: list[Claim] = [r for r in availability.reservations if r.covers(hour)]
        covering.extend(b for b in availability.recurring if b.covers(hour))
        if covering:
            claims[hour] = tuple(covering)
    return claims


def find_conflicts(availability: Occupancy) -> dict[int, tuple[Claim, ...]]:
    """Hours of the day claimed more than once."""

    return {
        hour: covering
        for hour, covering in claims_by_hour(availability, range(24)).items()
        if len(covering) > 1
    }


def build_grid(
    target: Union[date, str],
    operating_hours: OperatingHours,
    price_table: PriceTable,
    availability: Occupancy,
    *,
    strict: bool = True,
) -> list[Slot]:
    """Build one slot per hour of ``operating_hours`` with price and occupancy.

    An hour claimed by more than one booking is never resolved here. With
    ``strict`` the whole grid is rejected with ``InvariantViolation``;
    otherwise the slot carries every claim in ``conflicts``.
    """

    target_date = parse_date(target)
    if availability.date != target_date:
        raise ValueError(
            f"Availability is for {availability.date}, not {target_date}"
        )
    dow = day_of_week(target_date)
    hours = operating_hours.hours()
    claims = claims_by_hour(availability, hours)

    conflicts = {hour: covering for hour, covering in claims.items() if len(covering) > 1}
    if conflicts and strict:
        raise InvariantViolation(
            f"Overlapping bookings on {target_date.isoformat()} at hours "
            + ", ".join(str(hour) for hour in sorted(conflicts)),
            conflicts=conflicts,
        )

    slots: list[Slot] = []
    for hour in hours:
        quote = price_table.price_for(hour, dow)
        covering = claims.get(hour, ())
        if len(covering) > 1:
            logger.warning(
                "Hour %s on %s is claimed %d times", hour, target_date, len(covering)
            )
            slots.append(
                Slot(
                    date=target_date,
                    hour=hour,
                    price=quote.price,
                    tier=quote.tier,
                    label=quote.label,
                    conflicts=covering,
                )
            )
            continue

        slots.append(
            Slot(
                date=target_date,
                hour=hour,
                price=quote.price,
                tier=quote.tier,
                label=quote.label,
                occupied_by=covering[0] if covering else None,
            )
        )
    return slots


def free_slots(grid: Sequence[Slot]) -> list[Slot]:
    return [slot for slot in grid if not slot.occupied]


def occupied_hours(grid: Sequence[Slot]) -> list[int]:
    return [slot.hour for slot in grid if slot.occupied]


class SlotPlanner:
    """Wires a store to the resolver and price table and builds grids.

    Operating hours come from, in order: the ``operating_hours`` argument of
    ``plan``, the one given to the constructor, the store's schedule for the
    weekday, and finally the configured defaults.
    """

    build_grid = staticmethod(build_grid)

    def __init__(
        self,
        store: "DataStore",
        *,
        operating_hours: Optional[OperatingHours] = None,
    ) -> None:
        self.store = store
        self.resolver = AvailabilityResolver(store)
        self.operating_hours = operating_hours

    def hours_for(self, target: Union[date, str]) -> OperatingHours:
        dow = day_of_week(parse_date(target))
        hours = self.store.fetch_operating_hours(day_of_week=dow)
        if hours is None:
            logger.debug("No stored operating hours for day %s, using defaults", dow)
            return default_operating_hours()
        return hours

    def plan(
        self,
        target: Union[date, str],
        *,
        operating_hours: Optional[OperatingHours] = None,
        price_table: Optional[PriceTable] = None,
        strict: bool = True,
    ) -> list[Slot]:
        target_date = parse_date(target)
        hours = operating_hours or self.operating_hours or self.hours_for(target_date)
        table = price_table if price_table is not None else PriceTable.from_store(self.store)
        availability = self.resolver.occupied_slots(target_date)
        return build_grid(
            target_date,
            hours,
            table,
            availability,
            strict=strict,
        )

    def find_conflicts(self, target: Union[date, str]) -> dict[int, tuple[Claim, ...]]:
        return find_conflicts(self.resolver.occupied_slots(target))
