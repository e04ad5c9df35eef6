from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

import requests
from zoneinfo import ZoneInfo

from .. import settings
from ..errors import CourtPlannerError
from ..models import OperatingHours, ProductSale, RecurringBooking, Reservation, TimeBand
from .memory import InMemoryStore
from .supabase import SupabaseStore


class DataStore(Protocol):
    """Read-only view of the booking database used by the planner."""

    def fetch_reservations(
        self,
        *,
        on_date: Optional[date] = None,
        exclude_cancelled: bool = True,
    ) -> Sequence[Reservation]: ...

    def fetch_recurring_bookings(
        self,
        *,
        day_of_week: int,
        status: str = "active",
    ) -> Sequence[RecurringBooking]: ...

    def fetch_active_time_bands(self) -> Sequence[TimeBand]: ...

    def fetch_confirmed_reservations(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> Sequence[Reservation]: ...

    def fetch_product_sales(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> Sequence[ProductSale]: ...

    def fetch_operating_hours(self, *, day_of_week: int) -> Optional[OperatingHours]: ...


def load_store(
    *,
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[int] = None,
    session: Optional[requests.Session] = None,
    timezone: Optional[ZoneInfo] = None,
) -> SupabaseStore:
    """Build a ``SupabaseStore`` from explicit values or the environment."""

    url = url or settings.SUPABASE_URL
    api_key = api_key or settings.SUPABASE_ANON_KEY
    if not url or not api_key:
        raise CourtPlannerError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

    if session is None:
        session = requests.Session()
        session.headers.update({"User-Agent": settings.USER_AGENT})

    return SupabaseStore(
        url,
        api_key,
        session=session,
        timeout=timeout if timeout is not None else settings.DEFAULT_TIMEOUT,
        timezone=timezone,
    )


__all__ = ["DataStore", "InMemoryStore", "SupabaseStore", "load_store"]
