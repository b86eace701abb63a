"""
Active vs. total kid counts per time bucket for the admin dashboard charts.

For each bucket [start, end]:
- total   = kids created on or before ``end``
- active  = kids whose last login falls inside the bucket
- offline = max(0, total - active)

Monthly buckets cover Jan..Dec of the current UTC year. The month that
contains ``now`` is still open, so its active count has no upper bound.
Months (and weeks) that start after ``now`` report zeros.

Weekly buckets split the current local month into weeks of 7 days, the
fourth week running to the last calendar day. Daily buckets are today and
the six days before it, in local time.

All counts are taken from one snapshot of (created_at, last_login) pairs.
"""

import calendar
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo

from app.core.clock import as_utc

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
DAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]  # date.weekday() order
WEEKS_PER_MONTH = 4
DAYS_IN_CHART = 7


@dataclass(frozen=True)
class ActivityBucket:
    label: str
    total: int
    active: int
    offline: int


class _Snapshot:
    """UTC-normalised creation and last-login timestamps."""

    def __init__(self, rows: Iterable):
        self.created: list[datetime] = []
        self.logins: list[datetime] = []
        for row in rows:
            self.created.append(as_utc(row.created_at))
            if row.last_login is not None:
                self.logins.append(as_utc(row.last_login))

    def total_at(self, end: datetime) -> int:
        return sum(1 for c in self.created if c <= end)

    def active_between(self, start: datetime, end: datetime | None) -> int:
        if end is None:
            return sum(1 for t in self.logins if t >= start)
        return sum(1 for t in self.logins if start <= t <= end)

    def bucket(self, label: str, start: datetime, end: datetime, open_ended: bool = False) -> ActivityBucket:
        total = self.total_at(end)
        active = self.active_between(start, None if open_ended else end)
        return ActivityBucket(label=label, total=total, active=active, offline=max(0, total - active))


def _empty(label: str) -> ActivityBucket:
    return ActivityBucket(label=label, total=0, active=0, offline=0)


def _end_of_day(day, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def monthly_buckets(rows: Iterable, now: datetime) -> list[ActivityBucket]:
    snap = rows if isinstance(rows, _Snapshot) else _Snapshot(rows)
    now = as_utc(now)
    year = now.year

    buckets: list[ActivityBucket] = []
    for month in range(1, 13):
        label = MONTH_LABELS[month - 1]
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        last_day = calendar.monthrange(year, month)[1]
        end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)

        if start > now:
            buckets.append(_empty(label))
            continue

        buckets.append(snap.bucket(label, start, end, open_ended=start <= now <= end))
    return buckets


def weekly_buckets(rows: Iterable, now: datetime, tz: tzinfo) -> list[ActivityBucket]:
    snap = rows if isinstance(rows, _Snapshot) else _Snapshot(rows)
    local_now = as_utc(now).astimezone(tz)
    year, month = local_now.year, local_now.month
    last_day = calendar.monthrange(year, month)[1]

    buckets: list[ActivityBucket] = []
    for week in range(1, WEEKS_PER_MONTH + 1):
        label = f"Week {week}"
        start_day = (week - 1) * 7 + 1
        end_day = last_day if week == WEEKS_PER_MONTH else start_day + 6

        start = datetime(year, month, start_day, tzinfo=tz)
        end = datetime(year, month, end_day, 23, 59, 59, 999999, tzinfo=tz)

        if start > local_now:
            buckets.append(_empty(label))
            continue

        buckets.append(snap.bucket(label, start, end))
    return buckets


def daily_buckets(rows: Iterable, now: datetime, tz: tzinfo) -> list[ActivityBucket]:
    snap = rows if isinstance(rows, _Snapshot) else _Snapshot(rows)
    today = as_utc(now).astimezone(tz).date()

    buckets: list[ActivityBucket] = []
    for offset in range(DAYS_IN_CHART - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = datetime.combine(day, time.min, tzinfo=tz)
        buckets.append(snap.bucket(DAY_LABELS[day.weekday()], start, _end_of_day(day, tz)))
    return buckets


def activity_chart(rows: Iterable, now: datetime, tz: tzinfo) -> dict[str, list[dict]]:
    """All three chart series from a single snapshot."""
    snap = _Snapshot(rows)
    return {
        "monthly": [asdict(b) for b in monthly_buckets(snap, now)],
        "weekly": [asdict(b) for b in weekly_buckets(snap, now, tz)],
        "daily": [asdict(b) for b in daily_buckets(snap, now, tz)],
    }
