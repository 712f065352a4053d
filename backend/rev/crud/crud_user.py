from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional
import uuid

from rev.models.user import User as UserModel # Alias to avoid name clash
from rev.schemas.user import UserCreate, UserUpdate, WaveSettingsUpdate
from rev.core.security import get_password_hash, verify_password


class EmailAlreadyRegisteredError(ValueError):
    pass


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> Optional[UserModel]:
    """
    Get a user by their ID.
    """
    result = await db.execute(select(UserModel).filter(UserModel.id == user_id))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[UserModel]:
    """
    Get a user by their email address.
    """
    result = await db.execute(select(UserModel).filter(UserModel.email == email))
    return result.scalars().first()


async def get_users_with_webhook_secret(db: AsyncSession) -> List[UserModel]:
    """Every user able to receive Wave webhooks."""
    result = await db.execute(
        select(UserModel).filter(UserModel.wave_webhook_secret.is_not(None), UserModel.is_active.is_(True))
    )
    return list(result.scalars().all())


async def create_user(db: AsyncSession, *, user_in: UserCreate) -> UserModel:
    """
    Create a new user.
    """
    if await get_user_by_email(db, email=user_in.email):
        raise EmailAlreadyRegisteredError("The user with this email already exists in the system.")

    hashed_password = get_password_hash(user_in.password)
    db_obj_data = user_in.model_dump(exclude={'password'})
    db_obj = UserModel(**db_obj_data, hashed_password=hashed_password)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_user(
    db: AsyncSession, *, db_obj: UserModel, obj_in: UserUpdate
) -> UserModel:
    """
    Update an existing user.
    'db_obj' is the existing user model instance.
    'obj_in' is a Pydantic schema with the update data.
    """
    update_data = obj_in.model_dump(exclude_unset=True)

    if "password" in update_data:
        password = update_data.pop("password")
        if password:
            update_data["hashed_password"] = get_password_hash(password)

    if "email" in update_data:
        if not update_data["email"]:
            del update_data["email"]
        elif update_data["email"] != db_obj.email:
            existing_user = await get_user_by_email(db, email=update_data["email"])
            if existing_user and existing_user.id != db_obj.id:
                raise EmailAlreadyRegisteredError("This email is already registered by another user.")

    if update_data.get("currency"):
        update_data["currency"] = update_data["currency"].upper()

    for field, value in update_data.items():
        setattr(db_obj, field, value)

    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update_wave_settings(
    db: AsyncSession, *, db_obj: UserModel, obj_in: WaveSettingsUpdate
) -> UserModel:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        # Empty string clears the stored value
        setattr(db_obj, field, value or None)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def set_webhook_secret(db: AsyncSession, *, db_obj: UserModel, secret: str) -> UserModel:
    db_obj.wave_webhook_secret = secret
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def authenticate_user(
    db: AsyncSession, *, email: str, password: str
) -> Optional[UserModel]:
    """
    Authenticate a user by email and password.
    Returns the user object if authentication is successful, None otherwise.
    Inactive users are returned so the caller can answer with a specific error.
    """
    user = await get_user_by_email(db, email=email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def delete_user(db: AsyncSession, *, user_to_delete: UserModel) -> UserModel:
    """
    Delete a user from the database.
    Everything the user owns is removed with it.
    """
    await db.delete(user_to_delete)
    await db.commit()
    return user_to_delete
