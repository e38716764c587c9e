# backend/app/api/dashboard.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
import datetime as dt, logging

from app.db.session import engine
from app.repos.aggregates_repo import DailyAggregateSource, MetricKind
from app.schemas.dashboard import Granularity, ProductTrendPoint, VisitorTrendPoint
from app.services.bucketing import build_series, resolve_range

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

# Opaque messages returned on fetch failure; details go to the log only
FETCH_ERRORS = {
    MetricKind.PRODUCTS: "Error fetching product trends",
    MetricKind.VISITORS: "Error fetching visitor logs",
}

# ---------- dependencies (overridable in tests) ----------
def get_aggregate_source() -> DailyAggregateSource:
    return DailyAggregateSource(engine)

def get_today() -> dt.date:
    return dt.date.today()

# ---------- shared pipeline ----------
def _series(
    metric: MetricKind,
    source: DailyAggregateSource,
    today: dt.date,
    start_date: Optional[str],
    end_date: Optional[str],
    bucket: str,
) -> List[dict]:
    try:
        start, end = resolve_range(start_date, end_date, today)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return build_series(source, metric, start, end, bucket)
    except Exception:
        logging.exception("%s trend series failed (%s..%s, bucket=%s)", metric.value, start, end, bucket)
        raise HTTPException(status_code=500, detail=FETCH_ERRORS[metric])

# =====================================================
# Endpoints
# =====================================================
@router.get("/products", response_model=List[ProductTrendPoint])
def product_trends(
    startDate: Optional[str] = Query(None, description="YYYY-MM-DD, default endDate - 29 days"),
    endDate: Optional[str] = Query(None, description="YYYY-MM-DD, default today"),
    bucket: Granularity = Query("day"),
    source: DailyAggregateSource = Depends(get_aggregate_source),
    today: dt.date = Depends(get_today),
):
    """Product views summed per day / week / month bucket."""
    return _series(MetricKind.PRODUCTS, source, today, startDate, endDate, bucket)

@router.get("/visitors", response_model=List[VisitorTrendPoint])
def visitor_trends(
    startDate: Optional[str] = Query(None, description="YYYY-MM-DD, default endDate - 29 days"),
    endDate: Optional[str] = Query(None, description="YYYY-MM-DD, default today"),
    bucket: Granularity = Query("day"),
    source: DailyAggregateSource = Depends(get_aggregate_source),
    today: dt.date = Depends(get_today),
):
    """Visitor hits and (per-day summed) unique visitors per bucket."""
    return _series(MetricKind.VISITORS, source, today, startDate, endDate, bucket)
