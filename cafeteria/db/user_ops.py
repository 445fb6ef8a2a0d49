"""
Cafeteria — Staff accounts
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cafeteria.core.errors import DuplicateUsername, StorageFailure, UserNotFound
from cafeteria.core.security import hash_password, verify_password
from cafeteria.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def authenticate(db: AsyncSession, username: str, password: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    user: User | None = result.scalar_one_or_none()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def create_user(db: AsyncSession, username: str, password: str, role: UserRole) -> User:
    try:
        async with db.begin():
            existing = await db.execute(select(User.id).where(User.username == username))
            if existing.first() is not None:
                raise DuplicateUsername(username)
            user = User(username=username, hashed_password=hash_password(password), role=role)
            db.add(user)
    except IntegrityError as exc:
        raise DuplicateUsername(username) from exc
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while creating user %s", username)
        raise StorageFailure("User could not be stored. Please retry.") from exc
    logger.info("User %s created with role %s", username, role.value)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    try:
        async with db.begin():
            user = await db.get(User, user_id)
            if user is None:
                raise UserNotFound(user_id)
            await db.delete(user)
    except SQLAlchemyError as exc:
        logger.exception("Storage failure while deleting user %s", user_id)
        raise StorageFailure("User could not be deleted. Please retry.") from exc
    logger.info("User %d deleted", user_id)


async def ensure_bootstrap_admin(db: AsyncSession, username: str, password: str) -> bool:
    """Create the first admin account if it does not exist yet."""
    if not username or not password:
        return False
    try:
        await create_user(db, username, password, UserRole.ADMIN)
    except DuplicateUsername:
        return False
    return True
