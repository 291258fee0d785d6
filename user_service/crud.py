"""Database access for the users table.

Every function takes the caller's session so that a service operation can
run several of them inside one transaction.
"""

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User
from .logger import logger


# ==================== Writes ====================


async def save_user(session: AsyncSession, user: User) -> User:
    """Insert or update a user and flush so the row gets its ID.

    Raises ValueError on a unique email violation; the caller's transaction
    is left to roll back.
    """
    # A failed flush expires persistent instances, so read the email first
    email = user.email
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        logger.debug(f"Duplicate email rejected by storage: {email}")
        raise ValueError("duplicate email") from e
    return user


async def delete_user_by_id(session: AsyncSession, user_id: int) -> None:
    """Delete the row with the given ID (no-op if absent)."""
    await session.execute(delete(User).where(User.id == user_id))


# ==================== Reads ====================


async def select_user(session: AsyncSession, user_id: int) -> User | None:
    """Retrieve a user by ID."""
    return await session.get(User, user_id)


async def select_user_by_email(session: AsyncSession, email: str) -> User | None:
    """Retrieve a user by email address."""
    result = await session.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def select_users(session: AsyncSession) -> list[User]:
    """Return every user ordered by ID."""
    result = await session.execute(select(User).order_by(User.id.asc()))
    users = list(result.scalars().all())
    logger.debug(f"Query executed: returned {len(users)} users")
    return users


async def email_exists(session: AsyncSession, email: str) -> bool:
    result = await session.execute(select(User.id).where(User.email == email).limit(1))
    return result.first() is not None


async def user_exists(session: AsyncSession, user_id: int) -> bool:
    result = await session.execute(select(User.id).where(User.id == user_id).limit(1))
    return result.first() is not None


async def count_users(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(User))
    return result.scalar() or 0
