# backend/rev/api/endpoints/clients.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


async def _get_owned_client(db: AsyncSession, client_id: uuid.UUID, user: models.User) -> models.Client:
    client = await crud.client.get_client(db, client_id=client_id, user_id=user.id)
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.post("/", response_model=schemas.Client, status_code=status.HTTP_201_CREATED)
async def create_new_client(
    *,
    db: AsyncSession = Depends(get_db),
    client_in: schemas.ClientCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Create a new client for the current user.
    """
    client = await crud.client.create_client(db, client_in=client_in, user_id=current_user.id)
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.CLIENT_ADDED,
        description=f"Client '{client.name}' added", client_id=client.id,
    )
    return client


@router.get("/", response_model=List[schemas.Client])
async def read_clients(
    *,
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Matches name, email or company"),
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.client.get_clients(db, user_id=current_user.id, search=search, skip=skip, limit=limit)


@router.get("/{client_id}", response_model=schemas.Client)
async def read_client_by_id(
    client_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_client(db, client_id, current_user)


@router.put("/{client_id}", response_model=schemas.Client)
async def update_existing_client(
    client_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    client_in: schemas.ClientUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_client = await _get_owned_client(db, client_id, current_user)
    return await crud.client.update_client(db, db_obj=db_client, obj_in=client_in)


@router.delete("/{client_id}", response_model=schemas.Client)
async def delete_existing_client(
    client_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Delete a client. Projects and invoices keep their copy of the client details.
    """
    db_client = await _get_owned_client(db, client_id, current_user)
    deleted_client_data = schemas.Client.model_validate(db_client)
    await crud.client.delete_client(db, db_obj=db_client)
    return deleted_client_data
