from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Union

from .models import day_of_week, parse_date

# Indexed by day of week, 0=Sunday.
DAYS_SHORT = ("Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb")
DAYS_FULL = ("Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado")
MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

Number = Union[int, float, Decimal]


def hour_label(hour: int) -> str:
    return f"{hour:02d}:00"


def hour_end_label(hour: int) -> str:
    return f"{hour + 1:02d}:00"


def format_cop(amount: Number) -> str:
    """Colombian peso with es-CO grouping: ``40000`` -> ``$40.000``."""

    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    value = abs(value).quantize(Decimal("0.001")).normalize()
    integer, _, fraction = f"{value:f}".partition(".")
    grouped = f"{int(integer):,}".replace(",", ".")
    if fraction:
        return f"{sign}${grouped},{fraction}"
    return f"{sign}${grouped}"


def format_cop_short(amount: Number) -> str:
    value = float(amount)
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}k"
    return format_cop(amount)


def format_date(value: Union[date, str]) -> str:
    """Short Spanish label, e.g. ``Sáb 6 de septiembre``."""

    day = parse_date(value)
    return f"{DAYS_SHORT[day_of_week(day)]} {day.day} de {MONTHS[day.month - 1]}"


def format_date_long(value: Union[date, str]) -> str:
    day = parse_date(value)
    return f"{DAYS_FULL[day_of_week(day)]} {day.day} de {MONTHS[day.month - 1]} {day.year}"


def add_days(value: Union[date, str], days: int) -> date:
    return parse_date(value) + timedelta(days=days)
