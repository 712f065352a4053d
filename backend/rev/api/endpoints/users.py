# backend/rev/api/endpoints/users.py
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


@router.get("/me", response_model=schemas.UserOut)
async def read_users_me(
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Get current user.
    """
    return current_user


@router.put("/me", response_model=schemas.UserOut)
async def update_user_me(
    *,
    db: AsyncSession = Depends(get_db),
    user_in: schemas.UserUpdate,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Update own profile, SMTP settings and notification preferences.
    """
    try:
        user = await crud.user.update_user(db=db, db_obj=current_user, obj_in=user_in)
    except crud.user.EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_me(
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
):
    """
    Delete own account together with everything it owns.
    """
    await crud.user.delete_user(db=db, user_to_delete=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/me/wave", response_model=schemas.UserOut)
async def update_wave_settings(
    *,
    db: AsyncSession = Depends(get_db),
    wave_in: schemas.WaveSettingsUpdate,
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Store the Wave API key and webhook secret. Only their presence is ever returned.
    """
    return await crud.user.update_wave_settings(db, db_obj=current_user, obj_in=wave_in)


@router.get("/me/smtp-status", response_model=schemas.SmtpStatus)
async def read_smtp_status(
    current_user: models.User = Depends(deps.get_current_active_user),
) -> Any:
    return schemas.SmtpStatus(
        configured=current_user.smtp_configured,
        host=current_user.smtp_host,
        from_address=current_user.smtp_from or current_user.smtp_user,
    )
