# API route definitions (HTTP layer)
# Handlers only unwrap service results; error bodies are built in errors.py

import os
from fastapi import APIRouter, Request, HTTPException, status
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from .schemas import UserIn, UserOut, ErrorResponse
from .services import ServiceResult
from .errors import service_error_response
from . import services
from . import db
from .config import settings

limiter = Limiter(key_func=get_remote_address)


def conditional_limit(limit_string):
    """Apply rate limit only if not in test mode."""
    if os.getenv('TEST_MODE'):
        def decorator(func):
            return func
        return decorator
    return limiter.limit(limit_string)


def unwrap(result: ServiceResult):
    """Return the result value, or the error response for a failed result."""
    if result.error is not None:
        return service_error_response(result.error)
    return result.value


ERROR_RESPONSES = {
    400: {"description": "Validation failed or email already exists"},
    404: {"model": ErrorResponse, "description": "User not found"},
}


# ============================================================================
# Service Endpoints
# ============================================================================

service_router = APIRouter()


@service_router.get("/")
def root():
    return {"app": settings.APP_NAME, "env": settings.APP_ENV}


@service_router.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring.

    Returns:
        - 200 OK if the database answers
        - 503 Service Unavailable otherwise
    """
    health_status = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "environment": settings.APP_ENV,
        "database": "connected",
    }
    if not await db.check_db_connection():
        health_status["status"] = "unhealthy"
        health_status["database"] = "disconnected"
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=health_status)
    return health_status


@service_router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


# ============================================================================
# User Endpoints
# ============================================================================

router = APIRouter(prefix=settings.API_PREFIX, tags=["users"], responses=ERROR_RESPONSES)


@router.post("", response_model=UserOut, status_code=201)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def create_user(user: UserIn, request: Request):
    """Create a user.

    Raises:
        400: Invalid fields or email already exists
    """
    return unwrap(await services.create_user(user))


@router.get("", response_model=list[UserOut])
@conditional_limit(settings.RATE_LIMIT_READ)
async def list_users(request: Request):
    return unwrap(await services.list_users())


@router.get("/{user_id}", response_model=UserOut)
@conditional_limit(settings.RATE_LIMIT_READ)
async def get_user(user_id: int, request: Request):
    return unwrap(await services.get_user(user_id))


@router.put("/{user_id}", response_model=UserOut)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def update_user(user_id: int, user: UserIn, request: Request):
    """Replace name, email and active on an existing user.

    Raises:
        400: Invalid fields or email taken by another user
        404: User does not exist
    """
    return unwrap(await services.update_user(user_id, user))


@router.delete("/{user_id}", status_code=204, response_class=Response)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def delete_user(user_id: int, request: Request):
    result = await services.delete_user(user_id)
    if result.error is not None:
        return service_error_response(result.error)
    return Response(status_code=204)


@router.patch("/{user_id}/deactivate", response_model=UserOut)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def deactivate_user(user_id: int, request: Request):
    return unwrap(await services.deactivate_user(user_id))
