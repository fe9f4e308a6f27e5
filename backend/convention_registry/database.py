"""Database engine construction and per-request session management."""
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings
from .errors import Conflict, Internal

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine described by the settings."""

    is_sqlite = settings.database_url.startswith("sqlite+")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_async_engine(
        settings.database_url, future=True, echo=False, connect_args=connect_args
    )
    if is_sqlite:
        # SQLite only honours ON DELETE CASCADE when asked to on every connection
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request."""

    async with request.app.state.sessionmaker() as session:
        yield session


@asynccontextmanager
async def store_guard(
    session: AsyncSession, action: str, conflict_message: str | None = None
) -> AsyncIterator[None]:
    """Translate driver exceptions raised inside the block into domain errors.

    Uniqueness and foreign-key violations become :class:`Conflict`; anything
    else the store raises is logged with full detail and re-raised as
    :class:`Internal`.
    """

    try:
        yield
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Integrity violation while %s: %s", action, exc.orig)
        raise Conflict(conflict_message) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Store failure while %s", action)
        raise Internal() from exc
