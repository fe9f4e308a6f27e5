"""Server-side login sessions."""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SessionRecord(Base):
    """Binds a browser (through its signed cookie) to a user until ``expire``."""

    __tablename__ = "sessions"

    __table_args__ = (Index("ix_sessions_expire", "expire"),)

    sid: Mapped[str] = mapped_column(String, primary_key=True)
    sess: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    expire: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @property
    def user_id(self) -> str | None:
        return (self.sess or {}).get("userId")
