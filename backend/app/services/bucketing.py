# backend/app/services/bucketing.py
"""
Calendar bucketing for the dashboard trend endpoints.

Raw data arrives as sparse per-day rows; the dashboard wants a gap-free series
of day / week / month buckets. Planning and folding are kept separate so both
metrics share one pipeline.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import datetime as dt, re

from app.repos.aggregates_repo import MetricKind, METRIC_KEYS

ONE_DAY = dt.timedelta(days=1)
DEFAULT_WINDOW_DAYS = 29  # start = end - 29 -> 30 days inclusive

GRANULARITIES = ("day", "week", "month")

# YYYY-MM-DD, optionally followed by a time part (ignored)
_DATE_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?(?:Z|[+-]\d{2}:?\d{2})?)?$",
    re.ASCII,
)

# Raw value key -> wire field, per metric
METRIC_FIELDS: Dict[MetricKind, Dict[str, str]] = {
    MetricKind.PRODUCTS: {"count": "views"},
    MetricKind.VISITORS: {"hits": "hits", "uniqueVisitors": "uniqueVisitors"},
}


# ---------- date helpers ----------
def month_floor(d: dt.date) -> dt.date:
    return d.replace(day=1)

def month_end(d: dt.date) -> dt.date:
    if d.month == 12:
        return d.replace(day=31)
    return d.replace(month=d.month + 1, day=1) - ONE_DAY

def week_floor(d: dt.date) -> dt.date:
    """Monday of the ISO week containing `d`."""
    return d - dt.timedelta(days=d.weekday())

def floor_to_bucket(d: dt.date, granularity: str) -> dt.date:
    if granularity == "day":
        return d
    if granularity == "week":
        return week_floor(d)
    if granularity == "month":
        return month_floor(d)
    raise ValueError(f"unknown granularity: {granularity!r}")

def bucket_end(start: dt.date, granularity: str) -> dt.date:
    """Last calendar day of the bucket beginning at `start` (already aligned)."""
    if granularity == "day":
        return start
    if granularity == "week":
        # the week holding date.max is cut short
        return start + dt.timedelta(days=min(6, (dt.date.max - start).days))
    if granularity == "month":
        return month_end(start)
    raise ValueError(f"unknown granularity: {granularity!r}")

def iso(d: dt.date) -> str:
    # isoformat pads the year to 4 digits, strftime does not everywhere
    return d.isoformat()


# ---------- planner ----------
def plan_buckets(
    start: dt.date,
    end: dt.date,
    granularity: str,
    keys: Iterable[str] = (),
) -> List[Dict[str, Any]]:
    """
    Ordered, contiguous buckets covering [start, end].

    The first bucket starts at the aligned floor of `start`; the last one keeps
    its full calendar end even when that lies past `end` (folding clips it).
    A reversed range gives an empty plan.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"unknown granularity: {granularity!r}")
    keys = tuple(keys)
    buckets: List[Dict[str, Any]] = []
    if start > end:
        return buckets

    cur = floor_to_bucket(start, granularity)
    while cur <= end:
        e = bucket_end(cur, granularity)
        buckets.append({"start": cur, "end": e, "aggregates": {k: 0 for k in keys}})
        if e >= end:
            break
        cur = e + ONE_DAY
    return buckets


# ---------- folder ----------
def fold_aggregates(
    rows: Iterable[Dict[str, Any]],
    buckets: List[Dict[str, Any]],
    clip_end: dt.date,
) -> List[Dict[str, Any]]:
    """
    Add each day's values into the bucket holding it, never past `clip_end`.

    Values are summed per key. For visitors this means uniqueVisitors of a
    week/month bucket is the sum of the daily distinct counts, not a distinct
    count over the whole bucket.
    """
    by_day: Dict[dt.date, Dict[str, float]] = {r["day"]: r["values"] for r in rows}

    for b in buckets:
        totals = b["aggregates"]
        last = min(b["end"], clip_end)
        for i in range((last - b["start"]).days + 1):
            values = by_day.get(b["start"] + dt.timedelta(days=i))
            if values:
                for k, v in values.items():
                    totals[k] = totals.get(k, 0) + v
    return buckets


# ---------- range defaulting ----------
def parse_date(value: str, name: str) -> dt.date:
    """
    Accept `YYYY-MM-DD`, optionally followed by a time part such as
    `T10:15:00Z` which is dropped. Only the date is handed to
    `date.fromisoformat`, so the accepted forms don't depend on the
    interpreter version (3.11 also takes `20240101` or `2024-W01-1`).
    """
    m = _DATE_RE.match(value.strip())
    if m:
        try:
            return dt.date.fromisoformat(m.group(1))
        except ValueError:
            pass
    raise ValueError(f"Invalid {name}: {value!r} (expected YYYY-MM-DD)")

def resolve_range(
    start_date: Optional[str],
    end_date: Optional[str],
    today: dt.date,
) -> Tuple[dt.date, dt.date]:
    end = parse_date(end_date, "endDate") if end_date else today
    if start_date:
        return parse_date(start_date, "startDate"), end
    try:
        start = end - dt.timedelta(days=DEFAULT_WINDOW_DAYS)
    except OverflowError:
        raise ValueError(
            f"Invalid startDate: default of endDate - {DEFAULT_WINDOW_DAYS} days "
            f"falls before {dt.date.min.isoformat()}"
        )
    return start, end


# ---------- pipeline ----------
def shape_bucket(b: Dict[str, Any], metric: MetricKind) -> Dict[str, Any]:
    out: Dict[str, Any] = {"startDate": iso(b["start"]), "endDate": iso(b["end"])}
    for field, key in METRIC_FIELDS[metric].items():
        out[field] = b["aggregates"].get(key, 0)
    return out

def build_series(
    source,
    metric: MetricKind,
    start: dt.date,
    end: dt.date,
    granularity: str = "day",
) -> List[Dict[str, Any]]:
    """Fetch -> plan -> fold -> shape. Errors from the source propagate untouched."""
    buckets = plan_buckets(start, end, granularity, METRIC_KEYS[metric])
    if not buckets:
        return []
    rows = source.fetch_daily_aggregates(metric, start, end)
    fold_aggregates(rows, buckets, clip_end=end)
    return [shape_bucket(b, metric) for b in buckets]
