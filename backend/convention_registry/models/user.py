"""User accounts and the closed set of roles."""
import enum
import uuid

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


def new_user_id() -> str:
    return f"user_{uuid.uuid4().hex}"


class User(TimestampMixin, Base):
    """Authenticable principal; exactly one role per user."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_user_id)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column("password", String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default=UserRole.VIEWER.value)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        # never includes password_hash
        return f"User(id={self.id!r}, username={self.username!r}, role={self.role!r})"
