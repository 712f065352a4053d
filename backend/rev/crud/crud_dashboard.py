from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, and_
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from rev.models.client import Client as ClientModel
from rev.models.project import Project as ProjectModel
from rev.models.invoice import Invoice as InvoiceModel
from rev.models.expense import Expense as ExpenseModel
from rev.models.task import Task as TaskModel
from rev.models.file import File as FileModel
from rev.models.activity import Activity as ActivityModel
from rev.schemas.invoice import InvoiceStatusEnum, InvoiceTypeEnum
from rev.schemas.project import ProjectStatusEnum
from rev.schemas.task import TaskStatusEnum

UPCOMING_DEADLINE_DAYS = 7
RECENT_ACTIVITY_LIMIT = 10


async def _count(db: AsyncSession, model, *filters) -> int:
    result = await db.execute(select(func.count(model.id)).filter(and_(*filters)))
    return result.scalar_one() or 0


async def _sum(db: AsyncSession, column, *filters) -> float:
    result = await db.execute(select(func.sum(column)).filter(and_(*filters)))
    return result.scalar_one_or_none() or 0.0


async def get_dashboard_stats(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    currency: str = "XOF",
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict: # Returns a dictionary that can be validated by DashboardStats schema
    """
    Headline figures for the dashboard. Revenue only counts paid invoices and
    is filtered on the payment date; expenses are filtered on their own date.
    """
    revenue_filters = [InvoiceModel.user_id == user_id, InvoiceModel.status == InvoiceStatusEnum.PAID]
    expense_filters = [ExpenseModel.user_id == user_id]
    if start_date:
        revenue_filters.append(InvoiceModel.paid_date >= start_date)
        expense_filters.append(ExpenseModel.date >= start_date)
    if end_date:
        revenue_filters.append(InvoiceModel.paid_date <= end_date)
        expense_filters.append(ExpenseModel.date <= end_date)

    total_revenue = await _sum(db, InvoiceModel.amount, *revenue_filters)
    total_expenses = await _sum(db, ExpenseModel.amount, *expense_filters)
    pending_amount = await _sum(
        db,
        InvoiceModel.amount,
        InvoiceModel.user_id == user_id,
        InvoiceModel.type == InvoiceTypeEnum.INVOICE,
        InvoiceModel.status.in_([InvoiceStatusEnum.PENDING, InvoiceStatusEnum.OVERDUE]),
    )

    counts = {
        "clients": await _count(db, ClientModel, ClientModel.user_id == user_id),
        "projects": await _count(db, ProjectModel, ProjectModel.user_id == user_id),
        "active_projects": await _count(
            db, ProjectModel, ProjectModel.user_id == user_id, ProjectModel.status == ProjectStatusEnum.IN_PROGRESS
        ),
        "completed_projects": await _count(
            db, ProjectModel, ProjectModel.user_id == user_id, ProjectModel.status == ProjectStatusEnum.COMPLETED
        ),
        "invoices": await _count(db, InvoiceModel, InvoiceModel.user_id == user_id),
        "pending_invoices": await _count(
            db, InvoiceModel, InvoiceModel.user_id == user_id, InvoiceModel.status == InvoiceStatusEnum.PENDING
        ),
        "paid_invoices": await _count(
            db, InvoiceModel, InvoiceModel.user_id == user_id, InvoiceModel.status == InvoiceStatusEnum.PAID
        ),
        "expenses": await _count(db, ExpenseModel, *expense_filters),
        "tasks": await _count(db, TaskModel, TaskModel.user_id == user_id),
        "open_tasks": await _count(
            db, TaskModel, TaskModel.user_id == user_id,
            TaskModel.status.not_in([TaskStatusEnum.DONE, TaskStatusEnum.CANCELLED]),
        ),
        "files": await _count(db, FileModel, FileModel.user_id == user_id),
    }

    activities_result = await db.execute(
        select(ActivityModel)
        .filter(ActivityModel.user_id == user_id)
        .order_by(ActivityModel.created_at.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
    )

    now = datetime.now(timezone.utc)
    deadlines_result = await db.execute(
        select(ProjectModel)
        .filter(
            ProjectModel.user_id == user_id,
            ProjectModel.status == ProjectStatusEnum.IN_PROGRESS,
            ProjectModel.end_date.is_not(None),
            ProjectModel.end_date >= now,
            ProjectModel.end_date <= now + timedelta(days=UPCOMING_DEADLINE_DAYS),
        )
        .order_by(ProjectModel.end_date)
    )

    return {
        "counts": counts,
        "total_revenue": round(total_revenue, 2),
        "total_expenses": round(total_expenses, 2),
        "profit": round(total_revenue - total_expenses, 2),
        "pending_amount": round(pending_amount, 2),
        "currency": currency,
        "recent_activities": list(activities_result.scalars().all()),
        "upcoming_deadlines": list(deadlines_result.scalars().all()),
    }
