from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Optional, Sequence, TypeVar

import requests
from zoneinfo import ZoneInfo

from .. import settings
from ..errors import DataFetchError
from ..models import (
    RECURRING_STATUS_STORE,
    RESERVATION_CANCELLED,
    RESERVATION_CONFIRMED,
    RESERVATION_STATUS_STORE,
    OperatingHours,
    ProductSale,
    RecurringBooking,
    Reservation,
    TimeBand,
    local_day_window,
)

logger = logging.getLogger(__name__)

RESERVATIONS_TABLE = "reservas"
RECURRING_TABLE = "clientes_fijos"
TIME_BANDS_TABLE = "franjas_precio"
PRODUCT_SALES_TABLE = "ventas_productos"
OPERATING_HOURS_TABLE = "horarios_operativos"

T = TypeVar("T")
Params = list[tuple[str, str]]


class SupabaseStore:
    """Read-only client for the booking tables exposed over PostgREST."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        timezone: Optional[ZoneInfo] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Day boundaries for timestamp columns are taken in the court's timezone.
        self.timezone = timezone or ZoneInfo(settings.DEFAULT_TIMEZONE)
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    def fetch_reservations(
        self,
        *,
        on_date: Optional[date] = None,
        exclude_cancelled: bool = True,
    ) -> list[Reservation]:
        params: Params = [
            ("select", "id,fecha,hora_inicio,hora_fin,tipo,estado,precio,cliente_nombre"),
        ]
        if on_date is not None:
            params.append(("fecha", f"eq.{on_date.isoformat()}"))
        if exclude_cancelled:
            params.append(("estado", f"neq.{RESERVATION_STATUS_STORE[RESERVATION_CANCELLED]}"))
        params.append(("order", "hora_inicio.asc"))
        return self._fetch(RESERVATIONS_TABLE, params, Reservation.from_record)

    def fetch_recurring_bookings(
        self,
        *,
        day_of_week: int,
        status: str = "active",
    ) -> list[RecurringBooking]:
        store_status = RECURRING_STATUS_STORE.get(status, status)
        params: Params = [
            ("select", "id,nombre,dia_semana,hora_inicio,hora_fin,estado"),
            ("dia_semana", f"eq.{day_of_week}"),
            ("estado", f"eq.{store_status}"),
            ("order", "hora_inicio.asc"),
        ]
        return self._fetch(RECURRING_TABLE, params, RecurringBooking.from_record)

    def fetch_active_time_bands(self) -> list[TimeBand]:
        params: Params = [
            ("select", "*"),
            ("activo", "eq.true"),
            ("order", "hora_inicio.asc"),
        ]
        return self._fetch(TIME_BANDS_TABLE, params, TimeBand.from_record)

    def fetch_confirmed_reservations(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> list[Reservation]:
        params: Params = [
            ("select", "id,fecha,hora_inicio,hora_fin,tipo,estado,precio"),
            ("fecha", f"gte.{start.isoformat()}"),
        ]
        if end is not None:
            params.append(("fecha", f"lte.{end.isoformat()}"))
        params.append(("estado", f"eq.{RESERVATION_STATUS_STORE[RESERVATION_CONFIRMED]}"))
        params.append(("order", "fecha.asc"))
        return self._fetch(RESERVATIONS_TABLE, params, Reservation.from_record)

    def fetch_product_sales(
        self,
        start: date,
        end: Optional[date] = None,
    ) -> list[ProductSale]:
        window_start, window_end = local_day_window(start, end or start, self.timezone)
        params: Params = [
            ("select", "total,created_at"),
            ("created_at", f"gte.{window_start.isoformat()}"),
        ]
        if end is not None:
            params.append(("created_at", f"lt.{window_end.isoformat()}"))
        return self._fetch(PRODUCT_SALES_TABLE, params, ProductSale.from_record)

    def fetch_operating_hours(self, *, day_of_week: int) -> Optional[OperatingHours]:
        params: Params = [
            ("select", "dia_semana,hora_apertura,hora_cierre,abierto"),
            ("dia_semana", f"eq.{day_of_week}"),
            ("limit", "1"),
        ]
        rows = self._fetch(OPERATING_HOURS_TABLE, params, OperatingHours.from_record)
        return rows[0] if rows else None

    def _fetch(
        self,
        table: str,
        params: Params,
        build: Callable[[dict[str, Any]], T],
    ) -> list[T]:
        rows = self._get_rows(table, params)
        return [build(row) for row in rows]

    def _get_rows(self, table: str, params: Sequence[tuple[str, str]]) -> list[dict[str, Any]]:
        url = f"{self.base_url}/rest/v1/{table}"
        logger.debug("Fetching %s params=%s", url, params)
        try:
            response = self.session.get(url, params=list(params), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise DataFetchError(f"Failed to read {table}: {exc}", source=table) from exc
        except ValueError as exc:
            raise DataFetchError(f"Invalid JSON from {table}: {exc}", source=table) from exc

        if not isinstance(payload, list):
            raise DataFetchError(
                f"Expected a list of rows from {table}, got {type(payload).__name__}",
                source=table,
            )
        logger.debug("Fetched %d rows from %s", len(payload), table)
        return payload
