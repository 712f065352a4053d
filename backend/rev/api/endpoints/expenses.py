# backend/rev/api/endpoints/expenses.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.services.notifications import notify

router = APIRouter()


async def _get_owned_expense(db: AsyncSession, expense_id: uuid.UUID, user: models.User) -> models.Expense:
    expense = await crud.expense.get_expense(db, expense_id=expense_id, user_id=user.id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.post("/", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
async def create_new_expense(
    *,
    db: AsyncSession = Depends(get_db),
    expense_in: schemas.ExpenseCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    await deps.ensure_project_owned(db, expense_in.project_id, current_user.id)
    expense = await crud.expense.create_expense(db, expense_in=expense_in, user_id=current_user.id)
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.EXPENSE_CREATED,
        description=f"Expense '{expense.description}' recorded", project_id=expense.project_id,
    )
    return expense


@router.get("/", response_model=List[schemas.Expense])
async def read_expenses(
    *,
    db: AsyncSession = Depends(get_db),
    project_id: Optional[uuid.UUID] = None,
    expense_type: Optional[schemas.ExpenseTypeEnum] = Query(None, alias="type"),
    category: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.expense.get_expenses(
        db, user_id=current_user.id, project_id=project_id, expense_type=expense_type,
        category=category, skip=skip, limit=limit,
    )


@router.get("/subscriptions/due", response_model=List[schemas.Expense])
async def read_due_subscriptions(
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Active subscriptions whose next renewal falls inside their reminder window.
    """
    return await crud.expense.get_due_subscriptions(db, user_id=current_user.id)


@router.get("/{expense_id}", response_model=schemas.Expense)
async def read_expense_by_id(
    expense_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_expense(db, expense_id, current_user)


@router.put("/{expense_id}", response_model=schemas.Expense)
async def update_existing_expense(
    expense_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    expense_in: schemas.ExpenseUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_expense = await _get_owned_expense(db, expense_id, current_user)
    await deps.ensure_project_owned(db, expense_in.project_id, current_user.id)
    return await crud.expense.update_expense(db, db_obj=db_expense, obj_in=expense_in)


@router.delete("/{expense_id}", response_model=schemas.Expense)
async def delete_existing_expense(
    expense_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_expense = await _get_owned_expense(db, expense_id, current_user)
    deleted_expense_data = schemas.Expense.model_validate(db_expense)
    await crud.expense.delete_expense(db, db_obj=db_expense)
    return deleted_expense_data


@router.post("/{expense_id}/renew-subscription", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
async def renew_expense_subscription(
    expense_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Record the next occurrence of a subscription and deactivate the current one.
    """
    db_expense = await _get_owned_expense(db, expense_id, current_user)
    try:
        renewed = await crud.expense.renew_subscription(db, db_obj=db_expense)
    except crud.expense.SubscriptionNotRenewableError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await notify(
        db, user=current_user,
        type=schemas.NotificationTypeEnum.SUCCESS,
        title="Abonnement renouvelé",
        message=f"L'abonnement '{renewed.description}' a été renouvelé. Prochain renouvellement le {renewed.next_renewal_date:%d/%m/%Y}.",
        related_type="expense", related_id=renewed.id, action_url=f"/expenses/{renewed.id}",
    )
    return renewed
