from __future__ import annotations

import json
from datetime import datetime

import pytest

from court_slot_planner import cli
from court_slot_planner.errors import DataFetchError
from court_slot_planner.models import OperatingHours, ProductSale, RecurringBooking, Reservation
from court_slot_planner.store import InMemoryStore

from .conftest import MONDAY, SATURDAY


@pytest.fixture
def store(bands) -> InMemoryStore:
    return InMemoryStore(
        time_bands=bands,
        reservations=[
            Reservation(
                date=SATURDAY,
                start_hour=8,
                end_hour=9,
                status="confirmed",
                price=40000,
                client_name="Ana",
            ),
        ],
        recurring=[RecurringBooking(day_of_week=1, start_hour=17, end_hour=18, status="active", name="Los Pibes")],
        product_sales=[ProductSale(total=5000, created_at=datetime(2025, 9, 2, 10, 0))],
    )


def test_grid_text(store, capsys):
    code = cli.main(["grid", "--date", "2025-09-06", "--open", "8", "--close", "10"], store=store)

    out = capsys.readouterr().out
    assert code == 0
    assert "Sábado 6 de septiembre 2025" in out
    assert "08:00-09:00 | $40.000 (low) | Mañana | reserved (Ana)" in out
    assert "09:00-10:00 | $40.000 (low) | Mañana | free" in out


def test_grid_json_shows_recurring(store, capsys):
    code = cli.main(["--format", "json", "grid", "--date", MONDAY.isoformat()], store=store)

    slots = json.loads(capsys.readouterr().out)
    assert code == 0
    assert [slot["hour"] for slot in slots] == list(range(7, 22))
    by_hour = {slot["hour"]: slot for slot in slots}
    assert by_hour[17]["source"] == "recurring"
    assert by_hour[17]["occupied_by"]["name"] == "Los Pibes"


def test_grid_structured(store, capsys):
    code = cli.main(["-f", "structured", "grid", "--date", "2025-09-06", "--open", "8", "--close", "9"], store=store)

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert lines[0].split(" | ")[0].strip() == "date"
    assert "reservation" in lines[2]


def test_grid_conflict_exit_code(store, capsys):
    store.reservations.append(Reservation(date=MONDAY, start_hour=17, end_hour=18, status="pending"))

    code = cli.main(["grid", "--date", MONDAY.isoformat()], store=store)

    assert code == 3
    assert "17" in capsys.readouterr().err


def test_grid_lenient_marks_conflict(store, capsys):
    store.reservations.append(Reservation(date=MONDAY, start_hour=17, end_hour=18, status="pending"))

    code = cli.main(["grid", "--date", MONDAY.isoformat(), "--lenient"], store=store)

    assert code == 0
    assert "CONFLICT (2 claims)" in capsys.readouterr().out


def test_grid_rejects_bad_hours(store, capsys):
    assert cli.main(["grid", "--open", "20", "--close", "10"], store=store) == 2


def test_grid_uses_stored_weekday_hours(store, capsys):
    store.operating_hours[6] = OperatingHours(start=8, end=10)

    code = cli.main(["-f", "json", "grid", "--date", "2025-09-06"], store=store)

    assert code == 0
    assert [slot["hour"] for slot in json.loads(capsys.readouterr().out)] == [8, 9]


def test_grid_open_only_keeps_configured_close(store, capsys, monkeypatch):
    monkeypatch.setattr("court_slot_planner.settings.DEFAULT_CLOSE_HOUR", 12)
    store.operating_hours[6] = OperatingHours(start=8, end=10)

    code = cli.main(["-f", "json", "grid", "--date", "2025-09-06", "--open", "10"], store=store)

    assert code == 0
    assert [slot["hour"] for slot in json.loads(capsys.readouterr().out)] == [10, 11]


def test_grid_rejects_open_after_configured_close(store, capsys):
    assert cli.main(["grid", "--open", "23"], store=store) == 2
    assert "--open and --close" in capsys.readouterr().err


def test_unknown_timezone(store, capsys):
    assert cli.main(["--timezone", "Mars/Olympus", "prices"], store=store) == 2
    assert "Unknown timezone" in capsys.readouterr().err


def test_prices_table_lists_gaps(store, capsys):
    code = cli.main(["prices"], store=store)

    out = capsys.readouterr().out
    assert code == 0
    assert "Noche" in out
    assert "$100.000" in out
    assert "No price defined for hours: 00:00" in out


def test_prices_for_friday(store, capsys):
    code = cli.main(["prices", "--day-of-week", "5"], store=store)

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("Fri (friday)")
    assert "19:00 $90.000 (high) Noche" in out


def test_finance_json(store, capsys):
    code = cli.main(["-f", "json", "finance", "--days", "1", "--month-of", "2025-09-10"], store=store)

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert len(payload["by_date"]) == 1
    assert payload["month"] == {"court_revenue": 40000, "shop_revenue": 5000, "total": 45000}


def test_finance_text_labels_each_day(store, capsys, monkeypatch):
    monkeypatch.setattr(cli, "today_in", lambda timezone=None: SATURDAY)

    code = cli.main(["finance", "--days", "2"], store=store)

    out = capsys.readouterr().out
    assert code == 0
    assert "Vie 5 de septiembre" in out
    assert "2025-09-06 | Sáb 6 de septiembre | $40.000" in out


def test_format_table_aligns_columns():
    table = cli.format_table(("hour", "price"), [("8", "$30.000"), ("18", "$80.000")])

    assert table.splitlines() == [
        "hour | price  ",
        "-----+--------",
        "8    | $30.000",
        "18   | $80.000",
    ]


def test_finance_rejects_empty_window(store):
    assert cli.main(["finance", "--days", "0"], store=store) == 2


class BrokenStore(InMemoryStore):
    def fetch_active_time_bands(self):
        raise DataFetchError("Failed to read franjas_precio: 503", source="franjas_precio")


def test_fetch_error_exit_code(capsys):
    code = cli.main(["prices"], store=BrokenStore())

    assert code == 1
    assert "franjas_precio" in capsys.readouterr().err


def test_missing_credentials(monkeypatch, capsys):
    monkeypatch.setattr("court_slot_planner.settings.SUPABASE_URL", "")

    assert cli.main(["prices"]) == 2
    assert "SUPABASE_URL" in capsys.readouterr().err
