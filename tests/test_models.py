from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from court_slot_planner.errors import DataFetchError, RecordValidationError
from court_slot_planner.models import (
    ROUND_DOWN,
    ROUND_UP,
    MonthTotal,
    OperatingHours,
    ProductSale,
    RecurringBooking,
    Reservation,
    TimeBand,
    day_of_week,
    parse_date,
    parse_hour,
)

from .conftest import MONDAY, SATURDAY, SUNDAY


def test_day_of_week_starts_on_sunday():
    assert day_of_week(SUNDAY) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(SATURDAY) == 6


def test_parse_date_ignores_time_and_offset():
    assert parse_date("2025-09-06") == SATURDAY
    assert parse_date("2025-09-06T23:30:00-05:00") == SATURDAY
    assert parse_date(datetime(2025, 9, 6, 23, 59)) == SATURDAY


@pytest.mark.parametrize("value", ["06/09/2025", "", None, 20250906])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(RecordValidationError):
        parse_date(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(8, 8), ("8", 8), ("08:00", 8), ("18:00:00", 18)],
)
def test_parse_hour_accepts_store_formats(value, expected):
    assert parse_hour(value) == expected


def test_parse_hour_bounds():
    assert parse_hour("24:00", allow_24=True) == 24
    with pytest.raises(RecordValidationError):
        parse_hour("24:00")
    with pytest.raises(RecordValidationError):
        parse_hour(-1)
    with pytest.raises(RecordValidationError):
        parse_hour(True)


@pytest.mark.parametrize("value", ["09:30", "09:30:00", "09:00:01"])
def test_parse_hour_rejects_times_past_the_hour(value):
    with pytest.raises(RecordValidationError):
        parse_hour(value)


def test_parse_hour_rounds_when_asked():
    assert parse_hour("09:30", rounding=ROUND_DOWN) == 9
    assert parse_hour("09:30:00", rounding=ROUND_UP) == 10
    assert parse_hour("23:15", allow_24=True, rounding=ROUND_UP) == 24
    assert parse_hour("09:00:00", rounding=ROUND_UP) == 9


@pytest.mark.parametrize("value", ["09:60", "09:00:75", "9h"])
def test_parse_hour_rejects_malformed_minutes(value):
    with pytest.raises(RecordValidationError):
        parse_hour(value, rounding=ROUND_DOWN)


def test_time_band_from_record():
    band = TimeBand.from_record(
        {
            "id": 3,
            "nombre": "Noche",
            "hora_inicio": "18:00:00",
            "hora_fin": "23:00:00",
            "precio_lv": 80000,
            "precio_vie": "90000",
            "precio_fsd": 100000.0,
            "activo": True,
        }
    )

    assert band.start_hour == 18
    assert band.end_hour == 23
    assert band.price_friday == 90000
    assert band.price_weekend_holiday == 100000
    assert isinstance(band.price_weekend_holiday, int)
    assert band.label == "Noche"
    assert band.id == 3


def test_time_band_rejects_non_positive_price():
    with pytest.raises(RecordValidationError):
        TimeBand(start_hour=8, end_hour=12, price_weekday=0, price_friday=1, price_weekend_holiday=1)


def test_time_band_rejects_inverted_range():
    with pytest.raises(RecordValidationError):
        TimeBand.from_record(
            {"hora_inicio": 12, "hora_fin": 8, "precio_lv": 1, "precio_vie": 1, "precio_fsd": 1}
        )


def test_reservation_from_record_maps_spanish_status():
    reservation = Reservation.from_record(
        {
            "id": "abc",
            "fecha": "2025-09-06",
            "hora_inicio": "08:00",
            "hora_fin": "09:00",
            "estado": "confirmado",
            "tipo": "normal",
            "precio": 40000,
            "cliente_nombre": "Ana",
        }
    )

    assert reservation.date == SATURDAY
    assert reservation.status == "confirmed"
    assert reservation.is_confirmed
    assert reservation.covers(8)
    assert not reservation.covers(9)
    assert reservation.client_name == "Ana"


def test_reservation_partial_hours_cover_every_touched_hour():
    reservation = Reservation.from_record(
        {"fecha": "2025-09-08", "hora_inicio": "08:30", "hora_fin": "09:30:00", "estado": "confirmado"}
    )

    assert (reservation.start_hour, reservation.end_hour) == (8, 10)
    assert reservation.covers(8)
    assert reservation.covers(9)


def test_time_band_rejects_partial_hours():
    with pytest.raises(RecordValidationError):
        TimeBand.from_record(
            {"hora_inicio": "08:00", "hora_fin": "09:30", "precio_lv": 1, "precio_vie": 1, "precio_fsd": 1}
        )


def test_reservation_missing_field_is_a_fetch_error():
    with pytest.raises(DataFetchError):
        Reservation.from_record({"fecha": "2025-09-06", "hora_inicio": 8})


def test_reservation_unknown_status():
    with pytest.raises(RecordValidationError):
        Reservation.from_record(
            {"fecha": "2025-09-06", "hora_inicio": 8, "hora_fin": 9, "estado": "perdido"}
        )


def test_recurring_booking_from_record():
    booking = RecurringBooking.from_record(
        {"dia_semana": "1", "hora_inicio": "17:00", "hora_fin": "18:00", "estado": "activo", "nombre": "Los Pibes"}
    )

    assert booking.day_of_week == 1
    assert booking.is_active
    assert booking.name == "Los Pibes"


def test_recurring_booking_keeps_unknown_status_inactive():
    booking = RecurringBooking.from_record(
        {"dia_semana": 2, "hora_inicio": 9, "hora_fin": 10, "estado": "vencido"}
    )

    assert booking.status == "vencido"
    assert not booking.is_active


def test_recurring_booking_partial_end_rounds_up():
    booking = RecurringBooking.from_record(
        {"dia_semana": 1, "hora_inicio": "17:00", "hora_fin": "18:30", "estado": "activo"}
    )

    assert booking.end_hour == 19


def test_recurring_booking_day_out_of_range():
    with pytest.raises(RecordValidationError):
        RecurringBooking(day_of_week=7, start_hour=9, end_hour=10)


def test_product_sale_parses_timestamp_and_decimal_total():
    sale = ProductSale.from_record({"total": "2500.50", "created_at": "2025-09-06T14:03:00Z"})

    assert sale.total == Decimal("2500.50")
    assert sale.created_at is not None
    assert sale.created_at.date() == date(2025, 9, 6)


def test_month_total_sums_both_sources():
    month = MonthTotal(court_revenue=120000, shop_revenue=8000)

    assert month.total == 128000
    assert month.to_dict() == {"court_revenue": 120000, "shop_revenue": 8000, "total": 128000}


def test_operating_hours_from_record():
    hours = OperatingHours.from_record(
        {"dia_semana": 1, "hora_apertura": "06:30:00", "hora_cierre": "22:45:00", "abierto": True}
    )

    assert hours == OperatingHours(start=7, end=22)
    assert list(hours.hours()) == list(range(7, 22))


def test_operating_hours_closed_day_has_no_hours():
    hours = OperatingHours.from_record(
        {"dia_semana": 0, "hora_apertura": "00:00", "hora_cierre": "00:00", "abierto": False}
    )

    assert hours.closed
    assert list(hours.hours()) == []


def test_operating_hours_rejects_inverted_window():
    with pytest.raises(RecordValidationError):
        OperatingHours.from_record({"dia_semana": 2, "hora_apertura": "22:00", "hora_cierre": "08:00"})
