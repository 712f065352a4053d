from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from typing import List, Optional
import uuid

from rev.models.project import Project as ProjectModel
from rev.models.invoice import Invoice as InvoiceModel
from rev.models.expense import Expense as ExpenseModel
from rev.schemas.project import ProjectCreate, ProjectUpdate, ProjectStatusEnum
from rev.schemas.invoice import InvoiceStatusEnum, InvoiceTypeEnum
from rev.crud.crud_tag import get_tags_by_ids


async def get_project(db: AsyncSession, *, project_id: uuid.UUID, user_id: uuid.UUID) -> Optional[ProjectModel]:
    result = await db.execute(
        select(ProjectModel).filter(ProjectModel.id == project_id, ProjectModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_projects(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    status: Optional[ProjectStatusEnum] = None,
    client_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[ProjectModel]:
    query = select(ProjectModel).filter(ProjectModel.user_id == user_id)
    if status:
        query = query.filter(ProjectModel.status == status)
    if client_id:
        query = query.filter(ProjectModel.client_id == client_id)
    query = query.order_by(ProjectModel.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_project(db: AsyncSession, *, project_in: ProjectCreate, user_id: uuid.UUID) -> ProjectModel:
    db_obj = ProjectModel(**project_in.model_dump(exclude={"tag_ids"}), user_id=user_id)
    db_obj.tags = await get_tags_by_ids(db, tag_ids=project_in.tag_ids, user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_project(db: AsyncSession, *, db_obj: ProjectModel, obj_in: ProjectUpdate) -> ProjectModel:
    update_data = obj_in.model_dump(exclude_unset=True, exclude={"tag_ids"})
    for required in ("name", "type", "status", "amount"):
        if required in update_data and update_data[required] is None:
            del update_data[required]

    for field, value in update_data.items():
        setattr(db_obj, field, value)
    if obj_in.tag_ids is not None:
        db_obj.tags = await get_tags_by_ids(db, tag_ids=obj_in.tag_ids, user_id=db_obj.user_id)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_project(db: AsyncSession, *, db_obj: ProjectModel) -> ProjectModel:
    await db.delete(db_obj)
    await db.commit()
    return db_obj


async def get_project_budget(db: AsyncSession, *, project: ProjectModel) -> dict:
    """
    Budget position of a project: what was invoiced, what was actually paid
    and what it cost.
    """
    invoiced_result = await db.execute(
        select(func.sum(InvoiceModel.amount)).filter(
            InvoiceModel.project_id == project.id,
            InvoiceModel.type == InvoiceTypeEnum.INVOICE,
            InvoiceModel.status != InvoiceStatusEnum.CANCELLED,
        )
    )
    invoiced = invoiced_result.scalar_one_or_none() or 0.0

    paid_result = await db.execute(
        select(func.sum(InvoiceModel.amount)).filter(
            InvoiceModel.project_id == project.id,
            InvoiceModel.status == InvoiceStatusEnum.PAID,
        )
    )
    paid = paid_result.scalar_one_or_none() or 0.0

    expenses_result = await db.execute(
        select(func.sum(ExpenseModel.amount)).filter(ExpenseModel.project_id == project.id)
    )
    expenses = expenses_result.scalar_one_or_none() or 0.0

    budget = project.amount or 0.0
    used = round(paid / budget * 100, 2) if budget > 0 else 0.0
    return {
        "project_id": project.id,
        "budget": round(budget, 2),
        "invoiced": round(invoiced, 2),
        "paid": round(paid, 2),
        "expenses": round(expenses, 2),
        "remaining": round(budget - paid, 2),
        "profit": round(paid - expenses, 2),
        "budget_used_percentage": used,
    }
