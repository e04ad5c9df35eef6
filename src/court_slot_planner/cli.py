from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Optional, Sequence

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import settings
from .errors import CourtPlannerError, DataFetchError, InvariantViolation
from .finance import FinanceAggregator, today_in
from .formatting import format_cop, format_date, format_date_long, hour_end_label, hour_label
from .models import MonthTotal, OperatingHours, Slot
from .pricing import PriceTable, day_type
from .planner import SlotPlanner
from .store import DataStore, load_store

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _occupant_text(slot: Slot) -> str:
    if slot.source == "reservation":
        name = getattr(slot.occupied_by, "client_name", None)
        return f"reserved{f' ({name})' if name else ''}"
    if slot.source == "recurring":
        name = getattr(slot.occupied_by, "name", None)
        return f"reserved - fixed client{f' ({name})' if name else ''}"
    if slot.source == "conflict":
        return f"CONFLICT ({len(slot.conflicts)} claims)"
    return "free"


def format_grid_text(slots: Sequence[Slot]) -> str:
    """Render a day's grid as one line per hour under a date heading."""

    if not slots:
        return "No slots in the selected operating hours."

    lines = [format_date_long(slots[0].date)]
    for slot in slots:
        price_text = format_cop(slot.price) if slot.price else "n/a"
        parts = [
            f"{hour_label(slot.hour)}-{hour_end_label(slot.hour)}",
            f"{price_text} ({slot.tier})",
            slot.label,
            _occupant_text(slot),
        ]
        lines.append("  " + " | ".join(parts))
    return "\n".join(lines)


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Column-aligned listing shared by the structured grid, the band table and revenue."""

    table = [tuple(headers), *(tuple(row) for row in rows)]
    widths = [max(len(cell) for cell in column) for column in zip(*table)]
    lines = [" | ".join(cell.ljust(width) for cell, width in zip(row, widths)) for row in table]
    lines.insert(1, "-+-".join("-" * width for width in widths))
    return "\n".join(lines)


def format_grid_structured(slots: Sequence[Slot]) -> str:
    if not slots:
        return "No slots in the selected operating hours."

    headers = ("date", "start", "end", "price", "tier", "band", "status")
    rows = [
        (
            slot.date.isoformat(),
            hour_label(slot.hour),
            hour_end_label(slot.hour),
            str(slot.price),
            slot.tier,
            slot.label,
            slot.source or "free",
        )
        for slot in slots
    ]
    return format_table(headers, rows)


def format_prices(table: PriceTable, output: str) -> str:
    if output == "json":
        return json.dumps([band.to_dict() for band in table.bands], indent=2)
    if not table.bands:
        return "No active price bands."

    headers = ("band", "hours", "weekday", "friday", "weekend/holiday")
    rows = [
        (
            band.label,
            f"{hour_label(band.start_hour)}-{hour_label(band.end_hour)}",
            format_cop(band.price_weekday),
            format_cop(band.price_friday),
            format_cop(band.price_weekend_holiday),
        )
        for band in table.bands
    ]
    text = format_table(headers, rows)
    gaps = table.gaps()
    if gaps:
        text += "\n\nNo price defined for hours: " + ", ".join(hour_label(hour) for hour in gaps)
    return text


def format_day_prices(table: PriceTable, day_of_week: int, output: str) -> str:
    quotes = [(hour, table.price_for(hour, day_of_week)) for hour in range(24)]
    quotes = [(hour, quote) for hour, quote in quotes if quote.price]
    if output == "json":
        return json.dumps(
            [
                {"hour": hour, "price": float(quote.price), "tier": quote.tier, "label": quote.label}
                for hour, quote in quotes
            ],
            indent=2,
        )
    header = f"{DAY_NAMES[day_of_week]} ({day_type(day_of_week)})"
    if not quotes:
        return f"{header}: no prices defined."
    lines = [header]
    lines.extend(
        f"  {hour_label(hour)} {format_cop(quote.price)} ({quote.tier}) {quote.label}"
        for hour, quote in quotes
    )
    return "\n".join(lines)


def format_finance(by_date: dict[date, object], month: MonthTotal, output: str) -> str:
    if output == "json":
        return json.dumps(
            {
                "by_date": {day.isoformat(): float(total) for day, total in by_date.items()},
                "month": month.to_dict(),
            },
            indent=2,
        )

    rows = [(day.isoformat(), format_date(day), format_cop(total)) for day, total in by_date.items()]
    lines = [format_table(("date", "day", "court revenue"), rows), ""]
    lines.append(f"Month court revenue: {format_cop(month.court_revenue)}")
    lines.append(f"Month shop revenue:  {format_cop(month.shop_revenue)}")
    lines.append(f"Month total:         {format_cop(month.total)}")
    return "\n".join(lines)


def _parse_date_arg(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError("dates must follow YYYY-MM-DD") from None


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Construct the CLI argument parser and parse inputs."""

    parser = argparse.ArgumentParser(
        description="Court slot availability, prices and revenue.",
    )
    parser.add_argument(
        "--format",
        "-f",
        choices=("text", "json", "structured"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "--timezone",
        "-t",
        default=settings.DEFAULT_TIMEZONE,
        help=f"Timezone used to resolve today's date (default: {settings.DEFAULT_TIMEZONE}).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=settings.DEFAULT_TIMEOUT,
        help=f"HTTP timeout in seconds (default: {settings.DEFAULT_TIMEOUT}).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose logging for troubleshooting.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    grid = subparsers.add_parser("grid", help="Show the slot grid for a date.")
    grid.add_argument("--date", type=_parse_date_arg, help="Date to show (YYYY-MM-DD, default: today).")
    grid.add_argument(
        "--open",
        type=int,
        help="First bookable hour (default: the stored schedule for that weekday, else "
        f"{settings.DEFAULT_OPEN_HOUR}).",
    )
    grid.add_argument(
        "--close",
        type=int,
        help="Hour the court closes (default: the stored schedule for that weekday, else "
        f"{settings.DEFAULT_CLOSE_HOUR}).",
    )
    grid.add_argument(
        "--lenient",
        action="store_true",
        help="Show overlapping bookings as conflicts instead of failing.",
    )

    prices = subparsers.add_parser("prices", help="Show the active price bands.")
    prices.add_argument(
        "--day-of-week",
        type=int,
        choices=range(7),
        metavar="N",
        help="Show hourly prices for a day (0=Sunday .. 6=Saturday).",
    )

    finance = subparsers.add_parser("finance", help="Show confirmed revenue.")
    finance.add_argument(
        "--days",
        type=int,
        default=7,
        help="Number of days of daily revenue to show (default: 7).",
    )
    finance.add_argument(
        "--month-of",
        type=_parse_date_arg,
        help="Reference date for the month total (default: today).",
    )
    return parser.parse_args(argv)


def _explicit_hours(args: argparse.Namespace) -> Optional[OperatingHours]:
    if args.open is None and args.close is None:
        return None
    return OperatingHours(
        start=args.open if args.open is not None else settings.DEFAULT_OPEN_HOUR,
        end=args.close if args.close is not None else settings.DEFAULT_CLOSE_HOUR,
    )


def run(args: argparse.Namespace, store: DataStore, timezone: ZoneInfo) -> str:
    if args.command == "grid":
        target = args.date or today_in(timezone)
        hours = _explicit_hours(args)
        slots = SlotPlanner(store, operating_hours=hours).plan(target, strict=not args.lenient)
        if args.format == "json":
            return json.dumps([slot.to_dict() for slot in slots], indent=2)
        if args.format == "structured":
            return format_grid_structured(slots)
        return format_grid_text(slots)

    if args.command == "prices":
        table = PriceTable.from_store(store)
        if args.day_of_week is not None:
            return format_day_prices(table, args.day_of_week, args.format)
        return format_prices(table, args.format)

    aggregator = FinanceAggregator(store, timezone=timezone)
    today = today_in(timezone)
    by_date = aggregator.revenue_last_days(args.days, today=today)
    month = aggregator.month_total(args.month_of or today)
    return format_finance(by_date, month, args.format)


def main(argv: Optional[list[str]] = None, *, store: Optional[DataStore] = None) -> int:
    """Entry point for the CLI application."""

    args = parse_args(argv)

    log_level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(level=log_level, format="[%(levelname)s] %(message)s")

    try:
        timezone = ZoneInfo(args.timezone)
    except ZoneInfoNotFoundError:
        print(f"Unknown timezone: {args.timezone}", file=sys.stderr)
        return 2

    if args.command == "grid":
        try:
            _explicit_hours(args)
        except ValueError:
            print("--open and --close must satisfy 0 <= open < close <= 24", file=sys.stderr)
            return 2
    if args.command == "finance" and args.days < 1:
        print("--days must be at least 1", file=sys.stderr)
        return 2

    try:
        if store is None:
            store = load_store(timeout=args.timeout, timezone=timezone)
        output = run(args, store, timezone)
    except DataFetchError as exc:
        print(f"Failed to fetch reservation data: {exc}", file=sys.stderr)
        return 1
    except InvariantViolation as exc:
        print(f"Booking data is inconsistent: {exc}", file=sys.stderr)
        return 3
    except CourtPlannerError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
