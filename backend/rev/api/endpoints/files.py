# backend/rev/api/endpoints/files.py
from fastapi import APIRouter, Depends, HTTPException, status, File, Form, UploadFile, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pathlib import Path
from typing import List, Any, Optional
import logging
import shutil
import uuid

from rev import crud, models, schemas
from rev.db.session import get_db
from rev.api import deps
from rev.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_owned_file(db: AsyncSession, file_id: uuid.UUID, user: models.User) -> models.File:
    db_file = await crud.file.get_file(db, file_id=file_id, user_id=user.id)
    if not db_file:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return db_file


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


@router.post("/upload", response_model=schemas.File, status_code=status.HTTP_201_CREATED)
async def upload_file(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user),
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    project_id: Optional[uuid.UUID] = Form(None),
    client_id: Optional[uuid.UUID] = Form(None),
    category: Optional[schemas.FileCategoryEnum] = Form(None),
) -> Any:
    """
    Store an uploaded file under the user's upload directory.
    The category is guessed from the MIME type unless given.
    """
    await deps.ensure_project_owned(db, project_id, current_user.id)
    await deps.ensure_client_owned(db, client_id, current_user.id)

    size = _upload_size(file)
    if size > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB.",
        )

    user_dir = Path(settings.UPLOAD_DIR) / str(current_user.id)
    user_dir.mkdir(parents=True, exist_ok=True)

    original_name = file.filename or "upload"
    file_id = uuid.uuid4()
    stored_name = f"{file_id}{Path(original_name).suffix.lower()}"
    file_location_on_server = user_dir / stored_name

    try:
        with open(file_location_on_server, "wb+") as file_object:
            shutil.copyfileobj(file.file, file_object)
    except OSError as e:
        logger.error(f"Error saving upload {file_location_on_server}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save file.")
    finally:
        file.file.close()

    mime_type = file.content_type or "application/octet-stream"
    db_file = await crud.file.create_file(
        db,
        user_id=current_user.id,
        id=file_id,
        filename=stored_name,
        original_name=original_name,
        url=f"{settings.API_V1_STR}/files/{file_id}/download",
        path=str(file_location_on_server),
        size=size,
        mime_type=mime_type,
        category=category or crud.file.category_for_mime_type(mime_type),
        description=description,
        project_id=project_id,
        client_id=client_id,
    )
    await crud.activity.record(
        db, user_id=current_user.id, activity_type=schemas.ActivityTypeEnum.FILE_UPLOADED,
        description=f"File '{original_name}' uploaded", project_id=project_id, client_id=client_id,
    )
    return db_file


@router.get("/", response_model=List[schemas.File])
async def read_files(
    *,
    db: AsyncSession = Depends(get_db),
    category: Optional[schemas.FileCategoryEnum] = None,
    project_id: Optional[uuid.UUID] = None,
    client_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = Query(100, ge=1, le=500),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await crud.file.get_files(
        db, user_id=current_user.id, category=category, project_id=project_id,
        client_id=client_id, skip=skip, limit=limit,
    )


@router.get("/{file_id}", response_model=schemas.File)
async def read_file(
    file_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    return await _get_owned_file(db, file_id, current_user)


@router.get("/{file_id}/download")
async def download_file(
    file_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
):
    db_file = await _get_owned_file(db, file_id, current_user)
    if not Path(db_file.path).is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stored file is missing")
    return FileResponse(db_file.path, media_type=db_file.mime_type, filename=db_file.original_name)


@router.put("/{file_id}", response_model=schemas.File)
async def update_existing_file(
    file_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    file_in: schemas.FileUpdate,
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    db_file = await _get_owned_file(db, file_id, current_user)
    await deps.ensure_project_owned(db, file_in.project_id, current_user.id)
    await deps.ensure_client_owned(db, file_in.client_id, current_user.id)
    return await crud.file.update_file(db, db_obj=db_file, obj_in=file_in)


@router.delete("/{file_id}", response_model=schemas.File)
async def delete_existing_file(
    file_id: uuid.UUID,
    *,
    db: AsyncSession = Depends(get_db),
    current_user: models.User = Depends(deps.get_current_active_user)
) -> Any:
    """
    Delete a file record and the stored file.
    """
    db_file = await _get_owned_file(db, file_id, current_user)
    deleted_file_data = schemas.File.model_validate(db_file)
    stored_path = Path(db_file.path)
    await crud.file.delete_file(db, db_obj=db_file)
    try:
        stored_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove stored file {stored_path}: {e}")
    return deleted_file_data
