from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import TYPE_CHECKING, Union

from .models import RECURRING_ACTIVE, Occupancy, day_of_week, parse_date

if TYPE_CHECKING:
    from .store import DataStore

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Collects what occupies the court on a given date.

    Reservations and active recurring bookings are read in parallel and
    returned side by side; merging them into hours is left to the planner.
    The view is a snapshot for display only. Double bookings must be
    rejected by the store at write time.
    """

    def __init__(self, store: "DataStore") -> None:
        self.store = store

    def occupied_slots(self, target: Union[date, str]) -> Occupancy:
        target_date = parse_date(target)
        dow = day_of_week(target_date)

        with ThreadPoolExecutor(max_workers=2) as executor:
            reservations_future = executor.submit(
                self.store.fetch_reservations,
                on_date=target_date,
                exclude_cancelled=True,
            )
            recurring_future = executor.submit(
                self.store.fetch_recurring_bookings,
                day_of_week=dow,
                status=RECURRING_ACTIVE,
            )
            reservations = reservations_future.result()
            recurring = recurring_future.result()

        kept_reservations = tuple(
            reservation
            for reservation in reservations
            if not reservation.is_cancelled and reservation.date == target_date
        )
        kept_recurring = tuple(
            booking
            for booking in recurring
            if booking.is_active and booking.day_of_week == dow
        )
        dropped = (len(reservations) - len(kept_reservations)) + (len(recurring) - len(kept_recurring))
        if dropped:
            logger.debug("Dropped %d records outside the requested filter for %s", dropped, target_date)

        logger.debug(
            "Occupancy for %s: %d reservations, %d recurring bookings",
            target_date,
            len(kept_reservations),
            len(kept_recurring),
        )
        return Occupancy(
            date=target_date,
            reservations=kept_reservations,
            recurring=kept_recurring,
        )
