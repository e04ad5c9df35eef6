from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from .errors import InvariantViolation
from .models import TIER_HIGH, TIER_LOW, TIER_MID, PriceQuote, TimeBand

if TYPE_CHECKING:
    from .store import DataStore

logger = logging.getLogger(__name__)

UNKNOWN_QUOTE = PriceQuote(price=0, tier=TIER_MID, label="—")

DAY_WEEKDAY = "weekday"
DAY_FRIDAY = "friday"
DAY_WEEKEND = "weekend"


def day_type(day_of_week: int) -> str:
    """Classify a day (0=Sunday) as weekend/holiday, Friday or weekday."""

    if day_of_week in (0, 6):
        return DAY_WEEKEND
    if day_of_week == 5:
        return DAY_FRIDAY
    return DAY_WEEKDAY


def tier_for(start_hour: int) -> str:
    """Display tier of a band, from its start hour alone."""

    if start_hour < 12:
        return TIER_LOW
    if start_hour < 18:
        return TIER_MID
    return TIER_HIGH


class PriceTable:
    """Active time bands with per-day-type prices.

    Lookups never fail: an hour that falls in a gap between bands gets
    ``UNKNOWN_QUOTE`` (price 0, tier "mid") and callers decide what a
    missing price means for them.
    """

    def __init__(self, bands: Iterable[TimeBand]) -> None:
        active = sorted(
            (band for band in bands if band.active),
            key=lambda band: band.start_hour,
        )
        for previous, current in zip(active, active[1:]):
            if previous.overlaps(current):
                overlap = range(current.start_hour, min(previous.end_hour, current.end_hour))
                raise InvariantViolation(
                    f"Active price bands overlap: {previous.start_hour}-{previous.end_hour} "
                    f"and {current.start_hour}-{current.end_hour}",
                    conflicts={hour: (previous, current) for hour in overlap},
                )
        self.bands: tuple[TimeBand, ...] = tuple(active)

    @classmethod
    def from_store(cls, store: "DataStore") -> "PriceTable":
        bands = store.fetch_active_time_bands()
        logger.debug("Loaded %d active price bands", len(bands))
        return cls(bands)

    def band_for(self, hour: int) -> Optional[TimeBand]:
        return next((band for band in self.bands if band.contains(hour)), None)

    def price_for(self, hour: int, day_of_week: int) -> PriceQuote:
        band = self.band_for(hour)
        if band is None:
            return UNKNOWN_QUOTE

        kind = day_type(day_of_week)
        if kind == DAY_WEEKEND:
            price = band.price_weekend_holiday
        elif kind == DAY_FRIDAY:
            price = band.price_friday
        else:
            price = band.price_weekday
        return PriceQuote(price=price, tier=tier_for(band.start_hour), label=band.label)

    def gaps(self, start: int = 0, end: int = 24) -> list[int]:
        """Hours in ``[start, end)`` not covered by any band."""

        return [hour for hour in range(start, end) if self.band_for(hour) is None]

    def __len__(self) -> int:
        return len(self.bands)
