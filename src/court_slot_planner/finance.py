from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, Union

from zoneinfo import ZoneInfo

from . import settings
from .formatting import add_days
from .models import Amount, MonthTotal, parse_date

if TYPE_CHECKING:
    from .store import DataStore

logger = logging.getLogger(__name__)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def today_in(timezone: Optional[ZoneInfo] = None) -> date:
    tz = timezone or ZoneInfo(settings.DEFAULT_TIMEZONE)
    return datetime.now(tz).date()


class FinanceAggregator:
    """Revenue totals over confirmed reservations and shop sales."""

    def __init__(self, store: "DataStore", *, timezone: Optional[ZoneInfo] = None) -> None:
        self.store = store
        self.timezone = timezone

    def revenue_by_date(self, since: Union[date, str]) -> dict[date, Amount]:
        """Sum confirmed reservation prices per date from ``since`` onwards."""

        since_date = parse_date(since)
        totals: dict[date, Amount] = {}
        for reservation in self.store.fetch_confirmed_reservations(since_date):
            if not reservation.is_confirmed or reservation.date < since_date:
                continue
            totals[reservation.date] = totals.get(reservation.date, 0) + reservation.price
        return dict(sorted(totals.items()))

    def revenue_last_days(
        self,
        days: int = 7,
        *,
        today: Optional[Union[date, str]] = None,
    ) -> dict[date, Amount]:
        """Revenue for each of the last ``days`` days, including days with none."""

        if days < 1:
            raise ValueError("days must be at least 1")
        end = parse_date(today) if today is not None else today_in(self.timezone)
        start = add_days(end, 1 - days)
        by_date = self.revenue_by_date(start)
        window = [add_days(start, offset) for offset in range(days)]
        return {day: by_date.get(day, 0) for day in window}

    def month_total(self, reference: Optional[Union[date, str]] = None) -> MonthTotal:
        """Court and shop revenue from the 1st of the month up to ``reference``."""

        end = parse_date(reference) if reference is not None else today_in(self.timezone)
        start = first_of_month(end)

        with ThreadPoolExecutor(max_workers=2) as executor:
            reservations_future = executor.submit(
                self.store.fetch_confirmed_reservations, start, end
            )
            sales_future = executor.submit(self.store.fetch_product_sales, start, end)
            reservations = reservations_future.result()
            sales = sales_future.result()

        court: Amount = sum(
            (
                reservation.price
                for reservation in reservations
                if reservation.is_confirmed and start <= reservation.date <= end
            ),
            0,
        )
        shop: Amount = sum((sale.total for sale in sales), 0)
        logger.debug("Month total %s..%s: court=%s shop=%s", start, end, court, shop)
        return MonthTotal(court_revenue=court, shop_revenue=shop)
