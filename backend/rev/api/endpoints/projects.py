# backend/rev/api/endpoints/projects.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Any, Optional
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps

router = APIRouter()


async def _get_owned_project(db: AsyncSession, project_id: uuid.UUID, user: models.User) -> models.Project:
    project = await crud.project.get_project(db, project_id=project_id, user_id=user.id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


@router.post("/", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
async def create_new_project(
    *,
    db: AsyncSession = Depends(get_db),
    project_in: schemas.ProjectCreate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    await deps.ensure_client_owned(db, project_in.client_id, current_user.id)
    project = await crud.project.create_project(db, project_in=project_in, user_id=current_user.id)
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.PROJECT_CREATED,
        description=f"Project '{project.name}' created", project_id=project.id, client_id=project.client_id,
    )
    return project


@router.get("/", response_model=List[schemas.Project])
async def read_projects(
    *,
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[schemas.ProjectStatusEnum] = Query(None, alias="status"),
    client_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.project.get_projects(
        db, user_id=current_user.id, status=status_filter, client_id=client_id, skip=skip, limit=limit
    )


@router.get("/{project_id}", response_model=schemas.Project)
async def read_project_by_id(
    project_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_project(db, project_id, current_user)


@router.get("/{project_id}/budget", response_model=schemas.ProjectBudget)
async def read_project_budget(
    project_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Budget, invoiced, paid and spent amounts for a project.
    """
    project = await _get_owned_project(db, project_id, current_user)
    return await crud.project.get_project_budget(db, project=project)


@router.put("/{project_id}", response_model=schemas.Project)
async def update_existing_project(
    project_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    project_in: schemas.ProjectUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Update a project. Moving it to COMPLETED is recorded as a completion.
    """
    db_project = await _get_owned_project(db, project_id, current_user)
    await deps.ensure_client_owned(db, project_in.client_id, current_user.id)

    previous_status = db_project.status
    project = await crud.project.update_project(db, db_obj=db_project, obj_in=project_in)

    if project.status == schemas.ProjectStatusEnum.COMPLETED and previous_status != project.status:
        activity_type, description = schemas.ActivityTypeEnum.PROJECT_COMPLETED, f"Project '{project.name}' completed"
    else:
        activity_type, description = schemas.ActivityTypeEnum.PROJECT_UPDATED, f"Project '{project.name}' updated"
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=activity_type, description=description,
        project_id=project.id, client_id=project.client_id,
    )
    return project


@router.delete("/{project_id}", response_model=schemas.Project)
async def delete_existing_project(
    project_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_project = await _get_owned_project(db, project_id, current_user)
    deleted_project_data = schemas.Project.model_validate(db_project)
    await crud.project.delete_project(db, db_obj=db_project)
    return deleted_project_data
