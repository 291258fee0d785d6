"""SQLAlchemy ORM models for database tables."""

from sqlalchemy import Column, Integer, String, Boolean
from .db import Base
from .config import settings


class User(Base):
    """User model mapped to 'users' table."""

    __tablename__ = "users"
    # SQLite otherwise reuses the highest deleted rowid
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(settings.USER_NAME_MAX_LENGTH), nullable=False)
    email = Column(String(settings.USER_EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)
    active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} active={self.active}>"
