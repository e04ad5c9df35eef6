from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional

from zoneinfo import ZoneInfo

from .. import settings
from ..models import (
    OperatingHours,
    ProductSale,
    RecurringBooking,
    Reservation,
    TimeBand,
    local_day_window,
)


class InMemoryStore:
    """Store backed by plain lists, applying the same filters as the REST store."""

    def __init__(
        self,
        *,
        time_bands: Iterable[TimeBand] = (),
        reservations: Iterable[Reservation] = (),
        recurring: Iterable[RecurringBooking] = (),
        product_sales: Iterable[ProductSale] = (),
        operating_hours: Optional[Mapping[int, OperatingHours]] = None,
        timezone: Optional[ZoneInfo] = None,
    ) -> None:
        self.time_bands = list(time_bands)
        self.reservations = list(reservations)
        self.recurring = list(recurring)
        self.product_sales = list(product_sales)
        self.operating_hours = dict(operating_hours or {})
        self.timezone = timezone or ZoneInfo(settings.DEFAULT_TIMEZONE)

    def fetch_reservations(
        self,
        *,
        on_date: Optional[date] = None,
        exclude_cancelled: bool = True,
    ) -> list[Reservation]:
        rows = [
            reservation
            for reservation in self.reservations
            if (on_date is None or reservation.date == on_date)
            and not (exclude_cancelled and reservation.is_cancelled)
        ]
        return sorted(rows, key=lambda reservation: reservation.start_hour)

    def fetch_recurring_bookings(
        self,
        *,
        day_of_week: int,
        status: str = "active",
    ) -> list[RecurringBooking]:
        rows = [
            booking
            for booking in self.recurring
            if booking.day_of_week == day_of_week and booking.status == status
        ]
        return sorted(rows, key=lambda booking: booking.start_hour)

    def fetch_active_time_bands(self) -> list[TimeBand]:
        return sorted(
            (band for band in self.time_bands if band.active),
            key=lambda band: band.start_hour,
        )

    def fetch_confirmed_reservations(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> list[Reservation]:
        rows = [
            reservation
            for reservation in self.reservations
            if reservation.is_confirmed
            and reservation.date >= start
            and (end is None or reservation.date <= end)
        ]
        return sorted(rows, key=lambda reservation: (reservation.date, reservation.start_hour))

    def fetch_product_sales(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> list[ProductSale]:
        window_start, window_end = local_day_window(start, end or start, self.timezone)
        sales: list[ProductSale] = []
        for sale in self.product_sales:
            if sale.created_at is None:
                sales.append(sale)
                continue
            created_at = sale.created_at
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=self.timezone)
            if created_at >= window_start and (end is None or created_at < window_end):
                sales.append(sale)
        return sales

    def fetch_operating_hours(self, *, day_of_week: int) -> Optional[OperatingHours]:
        return self.operating_hours.get(day_of_week)
