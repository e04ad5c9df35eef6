from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import streamlit as st
from zoneinfo import ZoneInfo

sys.path.append(str(Path(__file__).resolve().parent.joinpath("src")))

from court_slot_planner import settings
from court_slot_planner.errors import CourtPlannerError, DataFetchError, InvariantViolation
from court_slot_planner.finance import FinanceAggregator
from court_slot_planner.formatting import format_cop, format_cop_short, format_date_long, hour_label
from court_slot_planner.models import OperatingHours
from court_slot_planner.planner import SlotPlanner, free_slots
from court_slot_planner.store import load_store

# Configure logging to show warnings and errors
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)

STATUS_LABELS: dict[str | None, str] = {
    None: "free",
    "reservation": "reserved",
    "recurring": "reserved - fixed client",
    "conflict": "conflict",
}


st.set_page_config(page_title="Court Slots", layout="wide")


@st.cache_data(ttl=60)
def load_grid(
    target_iso: str,
    hours: Optional[tuple[int, int]],
    timeout: int,
    lenient: bool,
) -> dict[str, Any]:
    """Build the slot grid for a date and prepare rows for display."""

    store = load_store(timeout=timeout, timezone=ZoneInfo(settings.DEFAULT_TIMEZONE))
    operating_hours = OperatingHours(start=hours[0], end=hours[1]) if hours else None
    planner = SlotPlanner(store, operating_hours=operating_hours)
    slots = planner.plan(target_iso, strict=not lenient)

    rows: list[dict[str, Any]] = []
    for slot in slots:
        rows.append(
            {
                "hour": f"{hour_label(slot.hour)}",
                "price": float(slot.price),
                "tier": slot.tier,
                "band": slot.label,
                "status": STATUS_LABELS.get(slot.source, slot.source or "free"),
            }
        )

    tz = ZoneInfo(settings.DEFAULT_TIMEZONE)
    return {
        "rows": rows,
        "free": len(free_slots(slots)),
        "generated_at": datetime.now(tz).strftime("%Y-%m-%d %H:%M:%S %Z"),
    }


@st.cache_data(ttl=300)
def load_finance(reference_iso: str, timeout: int) -> dict[str, Any]:
    tz = ZoneInfo(settings.DEFAULT_TIMEZONE)
    store = load_store(timeout=timeout, timezone=tz)
    aggregator = FinanceAggregator(store, timezone=tz)
    month = aggregator.month_total(reference_iso)
    by_date = aggregator.revenue_last_days(7, today=reference_iso)
    return {
        "month": month.to_dict(),
        "by_date": [
            {"date": day.isoformat(), "revenue": float(total)}
            for day, total in by_date.items()
        ],
    }


def main() -> None:
    st.title("Court Slots")
    st.caption("Availability and prices read directly from the booking database.")

    with st.sidebar:
        target = st.date_input(
            "Date",
            value=date.today(),
            help="Pick the day to show.",
        )
        use_schedule = st.checkbox(
            "Use the court's schedule",
            value=True,
            help="Take opening hours for the weekday from the booking database.",
        )
        open_hour, close_hour = st.slider(
            "Operating hours",
            min_value=0,
            max_value=24,
            value=(settings.DEFAULT_OPEN_HOUR, settings.DEFAULT_CLOSE_HOUR),
            disabled=use_schedule,
        )
        lenient = st.checkbox(
            "Show overlapping bookings",
            value=False,
            help="Mark double-booked hours as conflicts instead of failing.",
        )
        refresh = st.button("Refresh data", type="primary")
        timeout = st.slider("HTTP timeout (seconds)", min_value=5, max_value=60, value=settings.DEFAULT_TIMEOUT)

    if refresh:
        load_grid.clear()
        load_finance.clear()
        st.toast("Cache cleared. Updating…", icon="🔄")

    if not isinstance(target, date) or (not use_schedule and open_hour >= close_hour):
        st.info("Select a date and a non-empty range of operating hours.")
        return

    try:
        hours = None if use_schedule else (open_hour, close_hour)
        data = load_grid(target.isoformat(), hours, timeout, lenient)
        finance = load_finance(target.isoformat(), timeout)
    except InvariantViolation as exc:
        st.error(f"Booking data is inconsistent: {exc}")
        return
    except DataFetchError as exc:
        st.error(f"Failed to fetch reservation data: {exc}")
        return
    except CourtPlannerError as exc:
        st.error(str(exc))
        return

    st.subheader(format_date_long(target))
    st.caption(f"Last updated {data['generated_at']} (cache refreshes every minute).")

    month = finance["month"]
    free_col, court_col, shop_col, total_col = st.columns(4)
    free_col.metric("Free slots", data["free"])
    court_col.metric("Court (month)", format_cop_short(month["court_revenue"]))
    shop_col.metric("Shop (month)", format_cop_short(month["shop_revenue"]))
    total_col.metric("Total (month)", format_cop(month["total"]))

    if data["rows"]:
        st.dataframe(
            data["rows"],
            use_container_width=True,
            column_config={
                "price": st.column_config.NumberColumn("price", format="$%d"),
                "status": st.column_config.TextColumn("status"),
            },
        )
    else:
        st.info("No slots in the selected operating hours.")

    st.subheader("Confirmed revenue, last 7 days")
    st.bar_chart(finance["by_date"], x="date", y="revenue")


if __name__ == "__main__":
    main()
