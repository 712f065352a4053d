from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional
import uuid

from rev.models.project import Project as ProjectModel
from rev.models.invoice import Invoice as InvoiceModel
from rev.models.expense import Expense as ExpenseModel
from rev.schemas.invoice import InvoiceStatusEnum
from rev.crud.crud_expense import as_utc

UNCATEGORIZED = "Other"


def month_keys(months: int, now: datetime) -> list[str]:
    """The last ``months`` calendar months as YYYY-MM, oldest first."""
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


async def get_statistics(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    months: int = 12,
    currency: str = "XOF",
    now: Optional[datetime] = None,
) -> dict:
    """
    Monthly revenue (paid invoices by payment date), expenses and profit for
    the trailing window, plus per-project profitability and the expense
    breakdown by category.
    """
    now = now or datetime.now(timezone.utc)
    keys = month_keys(months, now)
    window_start = datetime(int(keys[0][:4]), int(keys[0][5:]), 1, tzinfo=timezone.utc)

    invoices_result = await db.execute(
        select(InvoiceModel.amount, InvoiceModel.paid_date).filter(
            InvoiceModel.user_id == user_id,
            InvoiceModel.status == InvoiceStatusEnum.PAID,
            InvoiceModel.paid_date >= window_start,
        )
    )
    expenses_result = await db.execute(
        select(ExpenseModel.amount, ExpenseModel.date, ExpenseModel.category).filter(
            ExpenseModel.user_id == user_id,
            ExpenseModel.date >= window_start,
        )
    )

    revenue = defaultdict(float)
    invoice_counts = defaultdict(int)
    for amount, paid_date in invoices_result.all():
        key = f"{as_utc(paid_date):%Y-%m}"
        revenue[key] += amount or 0.0
        invoice_counts[key] += 1

    spent = defaultdict(float)
    by_category = defaultdict(float)
    for amount, date, category in expenses_result.all():
        spent[f"{as_utc(date):%Y-%m}"] += amount or 0.0
        by_category[category or UNCATEGORIZED] += amount or 0.0

    monthly = [
        {
            "month": key,
            "revenue": round(revenue[key], 2),
            "expenses": round(spent[key], 2),
            "profit": round(revenue[key] - spent[key], 2),
            "invoices_count": invoice_counts[key],
        }
        for key in keys
    ]
    total_revenue = sum(row["revenue"] for row in monthly)
    total_expenses = sum(row["expenses"] for row in monthly)
    profit = total_revenue - total_expenses
    margin = round(profit / total_revenue * 100, 2) if total_revenue > 0 else 0.0

    return {
        "months": months,
        "currency": currency,
        "monthly": monthly,
        "totals": {
            "revenue": round(total_revenue, 2),
            "expenses": round(total_expenses, 2),
            "profit": round(profit, 2),
            "profit_margin": margin,
        },
        "projects": await get_project_profitability(db, user_id=user_id),
        "expenses_by_category": {k: round(v, 2) for k, v in sorted(by_category.items())},
    }


async def get_project_profitability(db: AsyncSession, *, user_id: uuid.UUID) -> list[dict]:
    projects_result = await db.execute(
        select(ProjectModel.id, ProjectModel.name, ProjectModel.amount)
        .filter(ProjectModel.user_id == user_id)
        .order_by(ProjectModel.name)
    )
    revenue_result = await db.execute(
        select(InvoiceModel.project_id, func.sum(InvoiceModel.amount))
        .filter(
            InvoiceModel.user_id == user_id,
            InvoiceModel.status == InvoiceStatusEnum.PAID,
            InvoiceModel.project_id.is_not(None),
        )
        .group_by(InvoiceModel.project_id)
    )
    expense_result = await db.execute(
        select(ExpenseModel.project_id, func.sum(ExpenseModel.amount))
        .filter(ExpenseModel.user_id == user_id, ExpenseModel.project_id.is_not(None))
        .group_by(ExpenseModel.project_id)
    )
    revenue = dict(revenue_result.all())
    expenses = dict(expense_result.all())

    rows = []
    for project_id, name, budget in projects_result.all():
        project_revenue = revenue.get(project_id) or 0.0
        project_expenses = expenses.get(project_id) or 0.0
        rows.append({
            "project_id": project_id,
            "name": name,
            "budget": round(budget or 0.0, 2),
            "revenue": round(project_revenue, 2),
            "expenses": round(project_expenses, 2),
            "profit": round(project_revenue - project_expenses, 2),
        })
    return rows
