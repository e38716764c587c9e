# backend/app/repos/aggregates_repo.py

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List
import datetime as dt

from sqlalchemy import text


class MetricKind(str, Enum):
    PRODUCTS = "products"   # product_trends.views
    VISITORS = "visitors"   # visitor_logs hits / distinct ip per day


METRIC_KEYS: Dict[MetricKind, tuple] = {
    MetricKind.PRODUCTS: ("views",),
    MetricKind.VISITORS: ("hits", "uniqueVisitors"),
}

_QUERIES: Dict[MetricKind, str] = {
    MetricKind.PRODUCTS: """
        SELECT DATE(date) AS day,
               COALESCE(SUM(views), 0) AS views
        FROM product_trends
        WHERE DATE(date) BETWEEN :start AND :end
        GROUP BY DATE(date)
        ORDER BY day
    """,
    MetricKind.VISITORS: """
        SELECT DATE(date) AS day,
               COUNT(*) AS hits,
               COUNT(DISTINCT ip_address) AS unique_visitors
        FROM visitor_logs
        WHERE DATE(date) BETWEEN :start AND :end
        GROUP BY DATE(date)
        ORDER BY day
    """,
}

# result column -> value key
_COLUMNS: Dict[MetricKind, Dict[str, str]] = {
    MetricKind.PRODUCTS: {"views": "views"},
    MetricKind.VISITORS: {"hits": "hits", "unique_visitors": "uniqueVisitors"},
}


def _as_day(v: Any) -> dt.date:
    # sqlite hands DATE() back as text, postgres as a date
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    return dt.date.fromisoformat(str(v)[:10])


def _as_number(v: Any):
    if v is None:
        return 0
    f = float(v)
    return int(f) if f.is_integer() else f


class DailyAggregateSource:
    """
    Per-day raw aggregates read from the log tables.

    Wraps an SQLAlchemy engine handed in by the caller; the API builds one per
    request through a dependency, tests swap in a fake with the same method.
    """

    def __init__(self, engine):
        self.engine = engine

    def fetch_daily_aggregates(
        self, metric: MetricKind, start: dt.date, end: dt.date
    ) -> List[Dict[str, Any]]:
        """
        Returns sparse rows `{day: date, values: {key: number}}`, one per day
        with at least one record, ordered by day.
        """
        metric = MetricKind(metric)
        columns = _COLUMNS[metric]
        with self.engine.connect() as conn:
            rows = conn.execute(
                text(_QUERIES[metric]),
                {"start": start.isoformat(), "end": end.isoformat()},
            ).mappings().all()

        return [
            {
                "day": _as_day(r["day"]),
                "values": {key: _as_number(r[col]) for col, key in columns.items()},
            }
            for r in rows
        ]
