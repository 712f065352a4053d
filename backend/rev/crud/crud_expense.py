from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from datetime import datetime, timedelta, timezone
from typing import List, Optional
import calendar
import uuid

from rev.models.expense import Expense as ExpenseModel
from rev.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseTypeEnum, SubscriptionPeriodEnum


class SubscriptionNotRenewableError(ValueError):
    pass


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Some backends hand back naive datetimes; they are stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def add_period(value: datetime, period: SubscriptionPeriodEnum) -> datetime:
    """
    Advance by one month or one year, clamping the day to the length of the
    target month (31 Jan + 1 month = 28/29 Feb).
    """
    if period == SubscriptionPeriodEnum.YEARLY:
        year, month = value.year + 1, value.month
    else:
        year = value.year + (value.month // 12)
        month = value.month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


async def get_expense(db: AsyncSession, *, expense_id: uuid.UUID, user_id: uuid.UUID) -> Optional[ExpenseModel]:
    result = await db.execute(
        select(ExpenseModel).filter(ExpenseModel.id == expense_id, ExpenseModel.user_id == user_id)
    )
    return result.scalars().first()


async def get_expenses(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    project_id: Optional[uuid.UUID] = None,
    expense_type: Optional[ExpenseTypeEnum] = None,
    category: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[ExpenseModel]:
    query = select(ExpenseModel).filter(ExpenseModel.user_id == user_id)
    if project_id: query = query.filter(ExpenseModel.project_id == project_id)
    if expense_type: query = query.filter(ExpenseModel.type == expense_type)
    if category: query = query.filter(ExpenseModel.category == category)
    query = query.order_by(ExpenseModel.date.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_due_subscriptions(
    db: AsyncSession, *, user_id: uuid.UUID, now: Optional[datetime] = None
) -> List[ExpenseModel]:
    """
    Active subscriptions whose renewal falls inside their reminder window.
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(ExpenseModel).filter(
            ExpenseModel.user_id == user_id,
            ExpenseModel.is_subscription.is_(True),
            ExpenseModel.is_active.is_(True),
            ExpenseModel.next_renewal_date.is_not(None),
        ).order_by(ExpenseModel.next_renewal_date)
    )
    return [
        expense for expense in result.scalars().all()
        if as_utc(expense.next_renewal_date) <= now + timedelta(days=expense.reminder_days or 0)
    ]


async def create_expense(db: AsyncSession, *, expense_in: ExpenseCreate, user_id: uuid.UUID) -> ExpenseModel:
    data = expense_in.model_dump()
    if data.get("project_id") and data["type"] == ExpenseTypeEnum.GENERAL:
        data["type"] = ExpenseTypeEnum.PROJECT
    if data["is_subscription"] and not data.get("next_renewal_date"):
        data["next_renewal_date"] = add_period(as_utc(data["date"]), data["subscription_period"])
    db_obj = ExpenseModel(**data, user_id=user_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_expense(db: AsyncSession, *, db_obj: ExpenseModel, obj_in: ExpenseUpdate) -> ExpenseModel:
    update_data = obj_in.model_dump(exclude_unset=True)
    for required in ("description", "amount", "date", "type", "is_subscription", "reminder_days", "is_active"):
        if required in update_data and update_data[required] is None:
            del update_data[required]
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def delete_expense(db: AsyncSession, *, db_obj: ExpenseModel) -> ExpenseModel:
    await db.delete(db_obj)
    await db.commit()
    return db_obj


async def renew_subscription(db: AsyncSession, *, db_obj: ExpenseModel) -> ExpenseModel:
    """
    Record the next occurrence of a subscription. The renewed expense carries
    the following renewal date and the previous one is deactivated.
    """
    if not db_obj.is_subscription or not db_obj.subscription_period or not db_obj.next_renewal_date:
        raise SubscriptionNotRenewableError("This expense is not a renewable subscription.")
    if not db_obj.is_active:
        raise SubscriptionNotRenewableError("This subscription is no longer active.")

    renewal_date = as_utc(db_obj.next_renewal_date)
    renewed = ExpenseModel(
        description=db_obj.description,
        amount=db_obj.amount,
        category=db_obj.category,
        date=renewal_date,
        notes=db_obj.notes,
        type=db_obj.type,
        project_id=db_obj.project_id,
        is_subscription=True,
        subscription_period=db_obj.subscription_period,
        next_renewal_date=add_period(renewal_date, db_obj.subscription_period),
        reminder_days=db_obj.reminder_days,
        is_active=True,
        user_id=db_obj.user_id,
    )
    db_obj.is_active = False
    renewal_note = f"Renewed on {datetime.now(timezone.utc):%Y-%m-%d}"
    db_obj.notes = f"{db_obj.notes}\n{renewal_note}" if db_obj.notes else renewal_note

    db.add_all([renewed, db_obj])
    await db.commit()
    await db.refresh(renewed)
    await db.refresh(db_obj)
    return renewed
