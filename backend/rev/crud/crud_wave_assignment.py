from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from typing import Dict, List, Optional, Sequence
import uuid

from rev.models.wave_assignment import WaveTransactionAssignment as AssignmentModel


class TransactionAlreadyAssignedError(ValueError):
    pass


async def get_assignment(
    db: AsyncSession, *, transaction_id: str, user_id: uuid.UUID
) -> Optional[AssignmentModel]:
    result = await db.execute(
        select(AssignmentModel).filter(
            AssignmentModel.transaction_id == transaction_id, AssignmentModel.user_id == user_id
        )
    )
    return result.scalars().first()


async def get_assignments_for_transactions(
    db: AsyncSession, *, transaction_ids: Sequence[str], user_id: uuid.UUID
) -> Dict[str, AssignmentModel]:
    if not transaction_ids:
        return {}
    result = await db.execute(
        select(AssignmentModel).filter(
            AssignmentModel.transaction_id.in_(list(transaction_ids)), AssignmentModel.user_id == user_id
        )
    )
    return {assignment.transaction_id: assignment for assignment in result.scalars().all()}


async def get_assignments(db: AsyncSession, *, user_id: uuid.UUID, limit: int = 100) -> List[AssignmentModel]:
    result = await db.execute(
        select(AssignmentModel)
        .filter(AssignmentModel.user_id == user_id)
        .order_by(AssignmentModel.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_assignment(
    db: AsyncSession, *, user_id: uuid.UUID, related: Sequence[object] = (), **fields
) -> AssignmentModel:
    """
    Insert an assignment together with the local records it points to
    (``related``) in one transaction. The (user_id, transaction_id) unique
    constraint is the final word on duplicates: a violation rolls everything
    back and surfaces as TransactionAlreadyAssignedError.
    """
    db_obj = AssignmentModel(**fields, user_id=user_id)
    db.add_all([*related, db_obj])
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise TransactionAlreadyAssignedError(
            f"Transaction {fields.get('transaction_id')} is already assigned."
        )
    for obj in related:
        await db.refresh(obj)
    await db.refresh(db_obj)
    return db_obj


async def delete_assignment(db: AsyncSession, *, db_obj: AssignmentModel) -> None:
    await db.delete(db_obj)
    await db.commit()
