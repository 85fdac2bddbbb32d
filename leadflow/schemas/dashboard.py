from datetime import date
from typing import Dict, List

from pydantic import BaseModel


class DailyLeadCount(BaseModel):
    day: date
    count: int


class DashboardOut(BaseModel):
    """Dashboard metrics, scoped to the leads visible to the caller."""

    total_leads: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    won_leads: int
    conversion_rate: float
    overdue_count: int
    due_today_count: int
    total_urgent: int
    created_per_day: List[DailyLeadCount]
