from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
import uuid

from .activity import Activity
from .project import ProjectSummary


class DashboardFilters(BaseModel): # Query parameters
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class DashboardCounts(BaseModel):
    clients: int
    projects: int
    active_projects: int
    completed_projects: int
    invoices: int
    pending_invoices: int
    paid_invoices: int
    expenses: int
    tasks: int
    open_tasks: int
    files: int


class DashboardStats(BaseModel):
    counts: DashboardCounts
    total_revenue: float
    total_expenses: float
    profit: float
    pending_amount: float
    currency: str
    recent_activities: List[Activity] = []
    upcoming_deadlines: List[ProjectSummary] = []
