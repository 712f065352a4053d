from typing import Iterator, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from rev.core.security import decode_token
from rev.core.config import settings
from rev.db.session import get_db
from rev import crud, models
from rev.services.wave import WaveClient

# Clients may send the token as a bearer header; browsers rely on the session cookie
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/login/access-token",
    auto_error=False,
)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
) -> models.User:
    """
    Dependency to get the current user from a JWT held in the session
    cookie or in an ``Authorization: Bearer`` header.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = token or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise credentials_exception

    token_data = decode_token(token)
    if not token_data or not token_data.sub: # token_data.sub is the user id
        raise credentials_exception

    try:
        user_id = uuid.UUID(token_data.sub)
    except ValueError:
        raise credentials_exception

    user = await crud.user.get_user(db, user_id=user_id)
    if not user:
        raise credentials_exception
    return user


async def get_current_active_user(
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


def wave_client_for(user: models.User) -> WaveClient:
    """Wave client bound to the user's API key. The caller closes it."""
    if not user.wave_api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Wave is not configured. Add your Wave API key in your profile settings.",
        )
    return WaveClient(user.wave_api_key)


def get_wave_client(
    current_user: models.User = Depends(get_current_active_user),
) -> Iterator[WaveClient]:
    """
    Dependency yielding a Wave client for the current user.
    Its HTTP session is closed after the request.
    """
    wave = wave_client_for(current_user)
    try:
        yield wave
    finally:
        wave.close()


# --- Ownership checks for ids referenced in request bodies ---

async def ensure_client_owned(db: AsyncSession, client_id: Optional[uuid.UUID], user_id: uuid.UUID) -> Optional[models.Client]:
    if client_id is None:
        return None
    client = await crud.client.get_client(db, client_id=client_id, user_id=user_id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


async def ensure_project_owned(db: AsyncSession, project_id: Optional[uuid.UUID], user_id: uuid.UUID) -> Optional[models.Project]:
    if project_id is None:
        return None
    project = await crud.project.get_project(db, project_id=project_id, user_id=user_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


async def ensure_task_owned(db: AsyncSession, task_id: Optional[uuid.UUID], user_id: uuid.UUID) -> Optional[models.Task]:
    if task_id is None:
        return None
    task = await crud.task.get_task(db, task_id=task_id, user_id=user_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task
