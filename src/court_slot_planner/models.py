from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from .errors import RecordValidationError

Amount = Union[int, Decimal]
Record = Mapping[str, Any]

RESERVATION_PENDING = "pending"
RESERVATION_CONFIRMED = "confirmed"
RESERVATION_CANCELLED = "cancelled"

RECURRING_REQUESTED = "requested"
RECURRING_ACTIVE = "active"
RECURRING_PAUSED = "paused"
RECURRING_CANCELLED = "cancelled"

# Store values are in Spanish; both spellings are accepted when reading.
RESERVATION_STATUS_ALIASES: dict[str, str] = {
    "pendiente": RESERVATION_PENDING,
    "confirmado": RESERVATION_CONFIRMED,
    "cancelado": RESERVATION_CANCELLED,
    RESERVATION_PENDING: RESERVATION_PENDING,
    RESERVATION_CONFIRMED: RESERVATION_CONFIRMED,
    RESERVATION_CANCELLED: RESERVATION_CANCELLED,
}

RECURRING_STATUS_ALIASES: dict[str, str] = {
    "solicitud": RECURRING_REQUESTED,
    "activo": RECURRING_ACTIVE,
    "pausado": RECURRING_PAUSED,
    "cancelado": RECURRING_CANCELLED,
    RECURRING_REQUESTED: RECURRING_REQUESTED,
    RECURRING_ACTIVE: RECURRING_ACTIVE,
    RECURRING_PAUSED: RECURRING_PAUSED,
    RECURRING_CANCELLED: RECURRING_CANCELLED,
}

# Reverse maps used when building store filters.
RESERVATION_STATUS_STORE = {
    RESERVATION_PENDING: "pendiente",
    RESERVATION_CONFIRMED: "confirmado",
    RESERVATION_CANCELLED: "cancelado",
}
RECURRING_STATUS_STORE = {
    RECURRING_REQUESTED: "solicitud",
    RECURRING_ACTIVE: "activo",
    RECURRING_PAUSED: "pausado",
    RECURRING_CANCELLED: "cancelado",
}

TIER_LOW = "low"
TIER_MID = "mid"
TIER_HIGH = "high"


def day_of_week(value: date) -> int:
    """Return the day of week with 0=Sunday..6=Saturday."""

    return (value.weekday() + 1) % 7


def parse_date(value: Any) -> date:
    """Parse a calendar date from a ``date`` or an ISO ``YYYY-MM-DD`` string.

    Only the date part of a string is read, so a trailing time or offset can
    never shift the day.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
        except ValueError:
            pass
    raise RecordValidationError(f"Invalid date value: {value!r}")


ROUND_DOWN = "down"
ROUND_UP = "up"


def parse_hour(value: Any, *, allow_24: bool = False, rounding: Optional[str] = None) -> int:
    """Parse an hour from ``8``, ``"8"``, ``"08:00"`` or ``"08:00:00"``.

    Times past the full hour (``"09:30"``) are rejected unless ``rounding``
    is ``ROUND_DOWN`` or ``ROUND_UP``, which move them to the enclosing hour.
    """

    hour: Optional[int] = None
    partial = False
    if isinstance(value, bool):
        hour = None
    elif isinstance(value, int):
        hour = value
    elif isinstance(value, str):
        parts = value.strip().split(":")
        try:
            if len(parts) <= 3 and parts[0].isdigit():
                hour = int(parts[0])
                minutes = int(parts[1]) if len(parts) > 1 else 0
                seconds = float(parts[2]) if len(parts) > 2 else 0.0
                if not (0 <= minutes <= 59 and 0 <= seconds < 60):
                    hour = None
                partial = bool(minutes or seconds)
        except ValueError:
            hour = None

    if hour is not None and partial:
        if rounding == ROUND_UP:
            hour += 1
        elif rounding != ROUND_DOWN:
            raise RecordValidationError(f"Hour value is not on the hour: {value!r}")

    upper = 24 if allow_24 else 23
    if hour is None or not 0 <= hour <= upper:
        raise RecordValidationError(f"Invalid hour value: {value!r}")
    return hour


def parse_amount(value: Any, *, field_name: str = "amount") -> Amount:
    if isinstance(value, bool) or value is None:
        raise RecordValidationError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, int):
        return value
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise RecordValidationError(f"Invalid {field_name}: {value!r}") from None
    if not amount.is_finite():
        raise RecordValidationError(f"Invalid {field_name}: {value!r}")
    if amount == amount.to_integral_value():
        return int(amount)
    return amount


def _require(record: Record, key: str, entity: str) -> Any:
    if key not in record or record[key] is None:
        raise RecordValidationError(f"{entity} record is missing '{key}': {dict(record)!r}")
    return record[key]


def _hour_range(
    record: Record,
    entity: str,
    *,
    start_key: str = "hora_inicio",
    end_key: str = "hora_fin",
    start_rounding: Optional[str] = None,
    end_rounding: Optional[str] = None,
) -> tuple[int, int]:
    start = parse_hour(_require(record, start_key, entity), rounding=start_rounding)
    end = parse_hour(_require(record, end_key, entity), allow_24=True, rounding=end_rounding)
    if end <= start:
        raise RecordValidationError(
            f"{entity} ends at {end} before or at its start {start}"
        )
    return start, end


@dataclass(frozen=True)
class TimeBand:
    """An hour range with its own weekday, Friday and weekend prices."""

    start_hour: int
    end_hour: int
    price_weekday: Amount
    price_friday: Amount
    price_weekend_holiday: Amount
    label: str = ""
    active: bool = True
    id: Optional[Any] = None

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour <= 23:
            raise RecordValidationError(f"Band start hour out of range: {self.start_hour}")
        if not 0 < self.end_hour <= 24 or self.end_hour <= self.start_hour:
            raise RecordValidationError(
                f"Band end hour out of range: {self.start_hour}-{self.end_hour}"
            )
        for name in ("price_weekday", "price_friday", "price_weekend_holiday"):
            if getattr(self, name) <= 0:
                raise RecordValidationError(f"Band {name} must be positive")

    def contains(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour

    def overlaps(self, other: "TimeBand") -> bool:
        return self.start_hour < other.end_hour and other.start_hour < self.end_hour

    @classmethod
    def from_record(cls, record: Record) -> "TimeBand":
        start, end = _hour_range(record, "Time band")
        return cls(
            start_hour=start,
            end_hour=end,
            price_weekday=parse_amount(_require(record, "precio_lv", "Time band"), field_name="precio_lv"),
            price_friday=parse_amount(_require(record, "precio_vie", "Time band"), field_name="precio_vie"),
            price_weekend_holiday=parse_amount(
                _require(record, "precio_fsd", "Time band"), field_name="precio_fsd"
            ),
            label=str(record.get("nombre") or ""),
            active=bool(record.get("activo", True)),
            id=record.get("id"),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "price_weekday": _json_amount(self.price_weekday),
            "price_friday": _json_amount(self.price_friday),
            "price_weekend_holiday": _json_amount(self.price_weekend_holiday),
            "label": self.label,
            "active": self.active,
        }


@dataclass(frozen=True)
class Reservation:
    """A one-off booking of the court on a specific date."""

    date: date
    start_hour: int
    end_hour: int
    status: str = RESERVATION_PENDING
    type: Optional[str] = None
    price: Amount = 0
    id: Optional[Any] = None
    client_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status not in RESERVATION_STATUS_STORE:
            raise RecordValidationError(f"Unknown reservation status: {self.status!r}")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise RecordValidationError(
                f"Reservation hours out of range: {self.start_hour}-{self.end_hour}"
            )

    def covers(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour

    @property
    def is_cancelled(self) -> bool:
        return self.status == RESERVATION_CANCELLED

    @property
    def is_confirmed(self) -> bool:
        return self.status == RESERVATION_CONFIRMED

    @classmethod
    def from_record(cls, record: Record) -> "Reservation":
        start, end = _hour_range(
            record, "Reservation", start_rounding=ROUND_DOWN, end_rounding=ROUND_UP
        )
        raw_status = str(record.get("estado") or "pendiente").strip().lower()
        status = RESERVATION_STATUS_ALIASES.get(raw_status)
        if status is None:
            raise RecordValidationError(f"Unknown reservation status: {raw_status!r}")
        price = record.get("precio")
        return cls(
            date=parse_date(_require(record, "fecha", "Reservation")),
            start_hour=start,
            end_hour=end,
            status=status,
            type=record.get("tipo"),
            price=parse_amount(price, field_name="precio") if price is not None else 0,
            id=record.get("id"),
            client_name=record.get("cliente_nombre"),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "status": self.status,
            "type": self.type,
            "price": _json_amount(self.price),
            "client_name": self.client_name,
        }


@dataclass(frozen=True)
class RecurringBooking:
    """A weekly booking ("fixed client") keyed by day of week."""

    day_of_week: int
    start_hour: int
    end_hour: int
    status: str = RECURRING_REQUESTED
    id: Optional[Any] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise RecordValidationError(f"Day of week out of range: {self.day_of_week}")
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise RecordValidationError(
                f"Recurring booking hours out of range: {self.start_hour}-{self.end_hour}"
            )

    def covers(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour

    @property
    def is_active(self) -> bool:
        return self.status == RECURRING_ACTIVE

    @classmethod
    def from_record(cls, record: Record) -> "RecurringBooking":
        start, end = _hour_range(
            record, "Recurring booking", start_rounding=ROUND_DOWN, end_rounding=ROUND_UP
        )
        raw_dow = _require(record, "dia_semana", "Recurring booking")
        try:
            dow = int(raw_dow)
        except (TypeError, ValueError):
            raise RecordValidationError(f"Invalid dia_semana: {raw_dow!r}") from None
        raw_status = str(record.get("estado") or "solicitud").strip().lower()
        return cls(
            day_of_week=dow,
            start_hour=start,
            end_hour=end,
            status=RECURRING_STATUS_ALIASES.get(raw_status, raw_status),
            id=record.get("id"),
            name=record.get("nombre"),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "start_hour": self.start_hour,
            "end_hour": self.end_hour,
            "status": self.status,
            "name": self.name,
        }


@dataclass(frozen=True)
class ProductSale:
    total: Amount
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Record) -> "ProductSale":
        created_raw = record.get("created_at")
        created_at: Optional[datetime] = None
        if isinstance(created_raw, datetime):
            created_at = created_raw
        elif isinstance(created_raw, str) and created_raw:
            try:
                created_at = datetime.fromisoformat(created_raw.replace("Z", "+00:00"))
            except ValueError:
                raise RecordValidationError(f"Invalid created_at: {created_raw!r}") from None
        return cls(
            total=parse_amount(_require(record, "total", "Product sale"), field_name="total"),
            created_at=created_at,
        )


@dataclass(frozen=True)
class PriceQuote:
    price: Amount
    tier: str
    label: str


@dataclass(frozen=True)
class OperatingHours:
    """Bookable window; slots start at every hour in ``[start, end)``."""

    start: int
    end: int
    closed: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.start < self.end <= 24:
            raise ValueError(f"Invalid operating hours: {self.start}-{self.end}")

    def hours(self) -> range:
        if self.closed:
            return range(0)
        return range(self.start, self.end)

    @classmethod
    def from_record(cls, record: Record) -> "OperatingHours":
        """Read a ``horarios_operativos`` row.

        Opening times past the hour start at the next full hour and closing
        times past the hour end at the previous one, so every slot fits
        inside the window.
        """

        try:
            start, end = _hour_range(
                record,
                "Operating hours",
                start_key="hora_apertura",
                end_key="hora_cierre",
                start_rounding=ROUND_UP,
                end_rounding=ROUND_DOWN,
            )
        except RecordValidationError:
            if record.get("abierto", True):
                raise
            # Closed days may carry placeholder times.
            return cls(start=0, end=24, closed=True)
        return cls(start=start, end=end, closed=not record.get("abierto", True))


@dataclass(frozen=True)
class Occupancy:
    """Reservations and active recurring bookings for one date, unmerged."""

    date: date
    reservations: tuple[Reservation, ...] = ()
    recurring: tuple[RecurringBooking, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "reservations": [reservation.to_dict() for reservation in self.reservations],
            "recurring": [booking.to_dict() for booking in self.recurring],
        }


Claim = Union[Reservation, RecurringBooking]


@dataclass(frozen=True)
class Slot:
    """One bookable hour on a date, with its price and occupancy."""

    date: date
    hour: int
    price: Amount
    tier: str
    label: str
    occupied_by: Optional[Claim] = None
    conflicts: tuple[Claim, ...] = field(default=())

    @property
    def occupied(self) -> bool:
        return self.occupied_by is not None or bool(self.conflicts)

    @property
    def source(self) -> Optional[str]:
        if isinstance(self.occupied_by, Reservation):
            return "reservation"
        if isinstance(self.occupied_by, RecurringBooking):
            return "recurring"
        if self.conflicts:
            return "conflict"
        return None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation of the slot."""

        data: dict[str, object] = {
            "date": self.date.isoformat(),
            "hour": self.hour,
            "price": _json_amount(self.price),
            "tier": self.tier,
            "label": self.label,
            "occupied": self.occupied,
            "source": self.source,
        }
        if self.occupied_by is not None:
            data["occupied_by"] = self.occupied_by.to_dict()
        if self.conflicts:
            data["conflicts"] = [claim.to_dict() for claim in self.conflicts]
        return data


@dataclass(frozen=True)
class MonthTotal:
    court_revenue: Amount
    shop_revenue: Amount

    @property
    def total(self) -> Amount:
        return self.court_revenue + self.shop_revenue

    def to_dict(self) -> dict[str, object]:
        return {
            "court_revenue": _json_amount(self.court_revenue),
            "shop_revenue": _json_amount(self.shop_revenue),
            "total": _json_amount(self.total),
        }


def local_day_window(start: date, end: date, timezone: tzinfo) -> tuple[datetime, datetime]:
    """Half-open ``[start 00:00, end + 1 day 00:00)`` in ``timezone``."""

    return (
        datetime.combine(start, time(), tzinfo=timezone),
        datetime.combine(end + timedelta(days=1), time(), tzinfo=timezone),
    )


def _json_amount(value: Amount) -> object:
    if isinstance(value, Decimal):
        return float(value)
    return value
