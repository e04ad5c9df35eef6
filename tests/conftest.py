from __future__ import annotations

from datetime import date

import pytest

from court_slot_planner.models import TimeBand

SATURDAY = date(2025, 9, 6)
SUNDAY = date(2025, 9, 7)
MONDAY = date(2025, 9, 8)
TUESDAY = date(2025, 9, 9)
FRIDAY = date(2025, 9, 5)


@pytest.fixture
def bands() -> list[TimeBand]:
    return [
        TimeBand(
            start_hour=8,
            end_hour=12,
            price_weekday=30000,
            price_friday=35000,
            price_weekend_holiday=40000,
            label="Mañana",
        ),
        TimeBand(
            start_hour=12,
            end_hour=18,
            price_weekday=50000,
            price_friday=55000,
            price_weekend_holiday=60000,
            label="Tarde",
        ),
        TimeBand(
            start_hour=18,
            end_hour=23,
            price_weekday=80000,
            price_friday=90000,
            price_weekend_holiday=100000,
            label="Noche",
        ),
    ]
