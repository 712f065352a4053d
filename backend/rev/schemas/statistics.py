from pydantic import BaseModel
from typing import List, Dict
import uuid


class MonthlyStat(BaseModel):
    month: str # YYYY-MM
    revenue: float
    expenses: float
    profit: float
    invoices_count: int


class ProjectProfitability(BaseModel):
    project_id: uuid.UUID
    name: str
    budget: float
    revenue: float
    expenses: float
    profit: float


class StatisticsTotals(BaseModel):
    revenue: float
    expenses: float
    profit: float
    profit_margin: float # percent


class StatisticsReport(BaseModel):
    months: int
    currency: str
    monthly: List[MonthlyStat]
    totals: StatisticsTotals
    projects: List[ProjectProfitability]
    expenses_by_category: Dict[str, float]
