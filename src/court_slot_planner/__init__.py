"""Slot availability and pricing for a single bookable court."""

from .availability import AvailabilityResolver
from .errors import CourtPlannerError, DataFetchError, InvariantViolation, RecordValidationError
from .finance import FinanceAggregator
from .models import (
    MonthTotal,
    Occupancy,
    OperatingHours,
    PriceQuote,
    ProductSale,
    RecurringBooking,
    Reservation,
    Slot,
    TimeBand,
    day_of_week,
)
from .planner import SlotPlanner, build_grid
from .pricing import PriceTable

__all__ = [
    "AvailabilityResolver",
    "CourtPlannerError",
    "DataFetchError",
    "FinanceAggregator",
    "InvariantViolation",
    "MonthTotal",
    "Occupancy",
    "OperatingHours",
    "PriceQuote",
    "PriceTable",
    "ProductSale",
    "RecordValidationError",
    "RecurringBooking",
    "Reservation",
    "Slot",
    "SlotPlanner",
    "TimeBand",
    "build_grid",
    "day_of_week",
]
