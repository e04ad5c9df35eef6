from __future__ import annotations

import pytest

from court_slot_planner.errors import InvariantViolation
from court_slot_planner.models import TimeBand
from court_slot_planner.pricing import UNKNOWN_QUOTE, PriceTable, day_type, tier_for
from court_slot_planner.store import InMemoryStore


@pytest.mark.parametrize(
    ("dow", "expected"),
    [(0, "weekend"), (6, "weekend"), (5, "friday"), (1, "weekday"), (2, "weekday"), (3, "weekday"), (4, "weekday")],
)
def test_day_type(dow, expected):
    assert day_type(dow) == expected


@pytest.mark.parametrize(("start", "tier"), [(0, "low"), (11, "low"), (12, "mid"), (17, "mid"), (18, "high")])
def test_tier_for(start, tier):
    assert tier_for(start) == tier


def test_hours_outside_every_band_have_no_price(bands):
    table = PriceTable(bands)

    for hour in (0, 5, 7, 23):
        for dow in range(7):
            quote = table.price_for(hour, dow)
            assert quote == UNKNOWN_QUOTE
            assert quote.price == 0
            assert quote.tier == "mid"
            assert quote.label == "—"


def test_price_depends_on_day_type(bands):
    table = PriceTable(bands)

    assert table.price_for(19, 1).price == 80000
    assert table.price_for(19, 4).price == 80000
    assert table.price_for(19, 5).price == 90000
    assert table.price_for(19, 6).price == 100000
    assert table.price_for(19, 0).price == 100000


def test_tier_comes_from_band_start_not_hour(bands):
    table = PriceTable(bands)

    # 11:00 sits in the 8-12 band, 17:00 in the 12-18 band.
    assert table.price_for(11, 1).tier == "low"
    assert table.price_for(17, 1).tier == "mid"
    assert table.price_for(22, 1).tier == "high"


def test_saturday_morning_scenario():
    table = PriceTable(
        [TimeBand(start_hour=8, end_hour=12, price_weekday=30000, price_friday=30000, price_weekend_holiday=40000)]
    )

    quote = table.price_for(9, 6)

    assert quote.price == 40000
    assert quote.tier == "low"


def test_band_end_is_exclusive(bands):
    table = PriceTable(bands[:1])

    assert table.price_for(11, 1).price == 30000
    assert table.price_for(12, 1) == UNKNOWN_QUOTE


def test_inactive_bands_are_ignored(bands):
    inactive = TimeBand(
        start_hour=6,
        end_hour=8,
        price_weekday=1,
        price_friday=1,
        price_weekend_holiday=1,
        active=False,
    )
    table = PriceTable([inactive, *bands])

    assert len(table) == 3
    assert table.price_for(7, 1) == UNKNOWN_QUOTE


def test_overlapping_active_bands_are_rejected(bands):
    overlapping = TimeBand(
        start_hour=10,
        end_hour=14,
        price_weekday=1,
        price_friday=1,
        price_weekend_holiday=1,
    )

    with pytest.raises(InvariantViolation) as excinfo:
        PriceTable([*bands, overlapping])

    assert set(excinfo.value.conflicts) == {10, 11}


def test_gaps(bands):
    table = PriceTable(bands)

    assert table.gaps(6, 24) == [6, 7, 23]


def test_from_store_reads_active_bands(bands):
    store = InMemoryStore(time_bands=list(reversed(bands)))

    table = PriceTable.from_store(store)

    assert [band.start_hour for band in table.bands] == [8, 12, 18]
