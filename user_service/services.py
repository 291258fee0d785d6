"""Business logic layer for user operations.

Each operation returns a ``ServiceResult``: either the value, or a
``ServiceError`` tagged with an ``ErrorCode`` for the known failure kinds
(missing user, duplicate email). Anything else propagates as an exception.

Mutating operations run their read-check-write sequence inside a single
transaction, so a failure at any step leaves the table untouched.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from . import crud
from . import db
from .logger import logger
from .models import User
from .schemas import ErrorCode, UserIn, UserOut

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceError:
    code: ErrorCode
    message: str


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ==================== Helper Functions ====================


def _convert_to_user_out(user: User) -> UserOut:
    """Convert ORM User model to UserOut schema."""
    return UserOut.model_validate(user)


def _not_found(user_id: int) -> ServiceResult:
    logger.warning(f"User not found: id={user_id}")
    return ServiceResult(
        error=ServiceError(ErrorCode.USER_NOT_FOUND, f"User not found with id: {user_id}")
    )


def _duplicate_email(email: str) -> ServiceResult:
    logger.warning(f"Email already exists: {email}")
    return ServiceResult(
        error=ServiceError(ErrorCode.DUPLICATE_EMAIL, f"Email already exists: {email}")
    )


# ==================== User Operations ====================


async def create_user(data: UserIn) -> ServiceResult[UserOut]:
    """Create a user unless the email is already taken."""
    logger.info(f"Creating user with email: {data.email}")

    async with db.async_session() as session:
        try:
            async with session.begin():
                if await crud.email_exists(session, data.email):
                    return _duplicate_email(data.email)
                user = await crud.save_user(
                    session, User(name=data.name, email=data.email, active=data.active)
                )
        except ValueError:
            # Lost a race with a concurrent insert; the unique constraint decided
            return _duplicate_email(data.email)

    logger.info(f"User created successfully with ID: {user.id}")
    return ServiceResult(value=_convert_to_user_out(user))


async def get_user(user_id: int) -> ServiceResult[UserOut]:
    """Retrieve a user by ID."""
    logger.info(f"Fetching user with ID: {user_id}")

    async with db.async_session() as session:
        user = await crud.select_user(session, user_id)
    if user is None:
        return _not_found(user_id)
    return ServiceResult(value=_convert_to_user_out(user))


async def list_users() -> ServiceResult[list[UserOut]]:
    """Return every user in insertion (ID) order."""
    logger.info("Fetching all users")

    async with db.async_session() as session:
        users = await crud.select_users(session)
    return ServiceResult(value=[_convert_to_user_out(u) for u in users])


async def update_user(user_id: int, data: UserIn) -> ServiceResult[UserOut]:
    """Overwrite name, email and active on an existing user.

    Uniqueness against other rows is not pre-checked; a collision is
    rejected by the storage constraint and reported as a duplicate email.
    """
    logger.info(f"Updating user with ID: {user_id}")

    async with db.async_session() as session:
        try:
            async with session.begin():
                user = await crud.select_user(session, user_id)
                if user is None:
                    return _not_found(user_id)
                user.name = data.name
                user.email = data.email
                user.active = data.active
                user = await crud.save_user(session, user)
        except ValueError:
            return _duplicate_email(data.email)

    logger.info(f"User updated successfully: id={user_id}")
    return ServiceResult(value=_convert_to_user_out(user))


async def delete_user(user_id: int) -> ServiceResult[None]:
    """Permanently remove a user."""
    logger.info(f"Deleting user with ID: {user_id}")

    async with db.async_session() as session:
        async with session.begin():
            if not await crud.user_exists(session, user_id):
                return _not_found(user_id)
            await crud.delete_user_by_id(session, user_id)

    logger.info(f"User deleted successfully: id={user_id}")
    return ServiceResult()


async def deactivate_user(user_id: int) -> ServiceResult[UserOut]:
    """Mark a user inactive. Deactivating an inactive user is a no-op."""
    logger.info(f"Deactivating user with ID: {user_id}")

    async with db.async_session() as session:
        async with session.begin():
            user = await crud.select_user(session, user_id)
            if user is None:
                return _not_found(user_id)
            user.active = False
            user = await crud.save_user(session, user)

    logger.info(f"User deactivated successfully: id={user_id}")
    return ServiceResult(value=_convert_to_user_out(user))
