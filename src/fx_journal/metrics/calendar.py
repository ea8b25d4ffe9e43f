from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from fx_journal.models import DIRECTION_LONG, DIRECTION_SHORT, Trade

WEEK_START_SUNDAY = "sunday"
WEEK_START_MONDAY = "monday"
WEEK_STARTS = (WEEK_START_SUNDAY, WEEK_START_MONDAY)


@dataclass(frozen=True)
class DayBucket:
    day: date
    trade_count: int
    profit: float | None
    long_trades: int
    short_trades: int

    @property
    def has_trades(self) -> bool:
        return self.profit is not None


def compute_daily_calendar(
    trades: Iterable[Trade],
    month_start: date,
    month_end: date,
) -> list[DayBucket]:
    """One bucket per day in [month_start, month_end], ascending.

    Days without trades carry ``profit=None``; a day whose trades net out to
    exactly zero carries ``profit=0.0``.
    """
    by_day: dict[date, list[Trade]] = {}
    for trade in trades:
        by_day.setdefault(trade_day(trade), []).append(trade)

    buckets: list[DayBucket] = []
    cursor = month_start
    while cursor <= month_end:
        items = by_day.get(cursor, [])
        profit = None
        if items:
            profit = sum((trade.net_profit for trade in items), 0.0)
        buckets.append(
            DayBucket(
                day=cursor,
                trade_count=len(items),
                profit=profit,
                long_trades=sum(1 for trade in items if trade.direction == DIRECTION_LONG),
                short_trades=sum(1 for trade in items if trade.direction == DIRECTION_SHORT),
            )
        )
        cursor += timedelta(days=1)
    return buckets


def calendar_grid(
    buckets: Sequence[DayBucket],
    week_start: str = WEEK_START_SUNDAY,
) -> list[DayBucket | None]:
    if not buckets:
        return []
    padding = weekday_index(buckets[0].day, week_start)
    return [None] * padding + list(buckets)


def weekday_index(value: date, week_start: str = WEEK_START_SUNDAY) -> int:
    # date.weekday() is Monday=0.
    if week_start == WEEK_START_MONDAY:
        return value.weekday()
    return (value.weekday() + 1) % 7


def weekday_labels(week_start: str = WEEK_START_SUNDAY) -> list[str]:
    labels = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
    if week_start == WEEK_START_MONDAY:
        return labels[1:] + labels[:1]
    return labels


def trade_day(trade: Trade) -> date:
    return trade.open_time.astimezone().date()


def month_window(month: date) -> tuple[date, date]:
    month_start = date(month.year, month.month, 1)
    next_month = month_start.replace(day=28) + timedelta(days=4)
    month_end = next_month.replace(day=1) - timedelta(days=1)
    return month_start, month_end


def parse_month(value: str | None) -> date | None:
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        return None
    return date(parsed.year, parsed.month, 1)


def current_month() -> date:
    today = datetime.now().astimezone().date()
    return date(today.year, today.month, 1)


def shift_month(value: date, delta: int) -> date:
    year = value.year + (value.month - 1 + delta) // 12
    month = (value.month - 1 + delta) % 12 + 1
    return date(year, month, 1)
