"""Pydantic schemas for request/response validation and serialization."""

from datetime import datetime
from enum import Enum

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from .config import settings


# ==================== Error Schemas ====================

class ErrorCode(str, Enum):
    """Known failure kinds returned by the service layer."""
    USER_NOT_FOUND = "USER_NOT_FOUND"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"


class ErrorResponse(BaseModel):
    """Error body for every non-validation failure."""
    status: int
    message: str
    timestamp: datetime


# ==================== User Schemas ====================

class UserIn(BaseModel):
    """Request body for create and update.

    An ``id`` sent by the client is accepted and ignored.
    """
    id: int | None = None
    name: str = Field(..., max_length=settings.USER_NAME_MAX_LENGTH, description="User's full name")
    email: str = Field(..., max_length=settings.USER_EMAIL_MAX_LENGTH, description="User's email address")
    active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject empty or whitespace-only names."""
        if not v.strip():
            raise PydanticCustomError("blank", "Name is required")
        return v

    @field_validator('email')
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        """Reject blank and syntactically invalid addresses; the value is stored as sent."""
        if not v.strip():
            raise PydanticCustomError("blank", "Email is required")
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email", "Email should be valid")
        return v


class UserOut(BaseModel):
    """User representation returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: int | None
    name: str
    email: str
    active: bool
