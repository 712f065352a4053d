from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any
import logging

from rev import crud, schemas
from rev.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
async def register(
    *,
    db: AsyncSession = Depends(get_db),
    user_in: schemas.UserRegister,
) -> Any:
    """
    Create a new account. The password confirmation is checked by the schema.
    """
    try:
        user = await crud.user.create_user(
            db,
            user_in=schemas.UserCreate(email=user_in.email, full_name=user_in.name, password=user_in.password),
        )
    except crud.user.EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"New account registered: {user.id}")
    return user
