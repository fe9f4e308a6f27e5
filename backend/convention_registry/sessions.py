"""Server-side session store and the signed cookie that points at it.

A session row lives for a fixed TTL from creation (not sliding). The browser
only ever holds the session id, wrapped in an HS256 JWT signed with the
configured session secret so a forged or tampered cookie never reaches the
store.
"""
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Request, Response
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import store_guard
from .models import SessionRecord, User
from .models.base import utcnow

logger = logging.getLogger(__name__)


def compute_expiry(ttl: timedelta) -> datetime:
    """Return an absolute expiration timestamp for sessions."""

    return utcnow() + ttl


def public_snapshot(user: User) -> Dict[str, Any]:
    """Denormalised public profile kept in the session payload."""

    return {
        "id": user.id,
        "username": user.username,
        "role": user.role,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "email": user.email,
    }


async def create_session(db: AsyncSession, user: User, ttl: timedelta) -> SessionRecord:
    """Persist a new session bound to ``user``."""

    record = SessionRecord(
        sid=secrets.token_urlsafe(32),
        sess={"userId": user.id, "user": public_snapshot(user)},
        expire=compute_expiry(ttl),
    )
    async with store_guard(db, "creating a session"):
        db.add(record)
        await db.commit()
    return record


async def load_session(db: AsyncSession, sid: str) -> Optional[SessionRecord]:
    """Return the live session for ``sid``; expired rows are never returned."""

    async with store_guard(db, "loading a session"):
        result = await db.execute(
            select(SessionRecord).where(
                SessionRecord.sid == sid, SessionRecord.expire > utcnow()
            )
        )
        return result.scalar_one_or_none()


async def destroy_session(db: AsyncSession, sid: str) -> None:
    """Delete a session row. Deleting a missing session is not an error."""

    async with store_guard(db, "destroying a session"):
        await db.execute(delete(SessionRecord).where(SessionRecord.sid == sid))
        await db.commit()


async def prune_expired_sessions(db: AsyncSession) -> int:
    async with store_guard(db, "pruning sessions"):
        result = await db.execute(
            delete(SessionRecord).where(SessionRecord.expire <= utcnow())
        )
        await db.commit()
    removed = result.rowcount or 0
    if removed:
        logger.info("Pruned %d expired sessions", removed)
    return removed


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def encode_session_cookie(record: SessionRecord, secret: str) -> str:
    expires_at = record.expire.replace(tzinfo=timezone.utc)
    return jwt.encode(
        {"sid": record.sid, "exp": int(expires_at.timestamp())},
        secret,
        algorithm="HS256",
    )


def decode_session_cookie(token: str, secret: str) -> Optional[str]:
    """Return the session id carried by a cookie, or None if it is not genuine."""

    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


def read_session_id(request: Request, settings: Settings) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    return decode_session_cookie(token, settings.session_secret)


def set_session_cookie(response: Response, record: SessionRecord, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        encode_session_cookie(record, settings.session_secret),
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
