from pydantic import BaseModel, Field
from typing import Literal

Granularity = Literal["day", "week", "month"]

class ProductTrendPoint(BaseModel):
    startDate: str = Field(description="YYYY-MM-DD, first day of the bucket")
    endDate: str = Field(description="YYYY-MM-DD, last calendar day of the bucket")
    count: int

class VisitorTrendPoint(BaseModel):
    startDate: str
    endDate: str
    hits: int
    # Sum of per-day distinct IPs, not distinct over the whole bucket
    uniqueVisitors: int
