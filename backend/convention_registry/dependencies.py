"""Reusable FastAPI dependencies: configuration access and the authorization gate.

Every protected route depends on :func:`get_current_user` (directly or via
:func:`require_roles`), which runs these steps in order and stops at the
first failure:

1. resolve the signed session cookie to a live session row;
2. load the bound user and reject missing or inactive accounts, destroying
   the stale session;
3. hand the user to the route as its principal;
4. (``require_roles`` only) compare the principal's role with the route's
   static allow-list.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import get_session, store_guard
from .errors import Forbidden, InvalidArgument, Unauthenticated
from .models import User, UserRole
from .sessions import destroy_session, load_session, read_session_id

logger = logging.getLogger(__name__)

ANY_ROLE = frozenset(UserRole)
EDITORS = frozenset({UserRole.ADMIN, UserRole.EDITOR})
ADMINS = frozenset({UserRole.ADMIN})

MAX_ID = 2**63 - 1


def get_app_settings(request: Request) -> Settings:
    """Settings the application was constructed with."""
    return request.app.state.settings


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Return the authenticated principal for this request."""

    sid = read_session_id(request, settings)
    if sid is None:
        raise Unauthenticated()

    record = await load_session(session, sid)
    if record is None or record.user_id is None:
        raise Unauthenticated()

    async with store_guard(session, "resolving the session user"):
        user = await session.get(User, record.user_id)
    if user is None or not user.is_active:
        logger.info("Destroying session of missing or inactive user %s", record.user_id)
        await destroy_session(session, sid)
        raise Unauthenticated()

    return user


def require_roles(allowed: frozenset[UserRole]) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits only principals whose role is in ``allowed``."""

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        try:
            role = UserRole(current_user.role)
        except ValueError:
            role = None
        if role not in allowed:
            raise Forbidden()
        return current_user

    return dependency


require_editor = require_roles(EDITORS)
require_admin = require_roles(ADMINS)


def parse_id(raw: str, message: str = "المعرف غير صحيح") -> int:
    """Parse a numeric path identifier before it reaches the store."""

    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise InvalidArgument(message)
    value = int(text)
    # ids are 64-bit integers in the store
    if value > MAX_ID:
        raise InvalidArgument(message)
    return value
