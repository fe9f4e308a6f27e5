"""Authentication routes and the credential store helpers."""
import logging
from datetime import timedelta
from typing import Sequence

from fastapi import APIRouter, Depends, Request, Response
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session, store_guard
from .dependencies import get_app_settings, get_current_user
from .errors import Conflict, InvalidCredentials, NotFound
from .config import Settings
from .models import User
from .schemas import AuthResponse, LoginRequest, MessageResponse, PublicUser, UserCreate, UserUpdate
from .sessions import (
    clear_session_cookie,
    create_session,
    destroy_session,
    read_session_id,
    set_session_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)

DUPLICATE_USER_MESSAGE = "اسم المستخدم أو البريد الإلكتروني مستخدم مسبقاً"

# Stands in for a stored hash so unknown and inactive users cost one verification too.
DUMMY_PASSWORD_HASH = password_context.hash("convention-registry-placeholder")


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    try:
        return password_context.verify(password, password_hash)
    except ValueError:
        # unrecognised or malformed hash in the store
        return False


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def validate_credentials(session: AsyncSession, username: str, password: str) -> User:
    """Return the user for a correct username/password pair.

    Unknown usernames, inactive accounts and wrong passwords all raise the
    same :class:`InvalidCredentials`.
    """

    async with store_guard(session, "validating credentials"):
        user = await get_user_by_username(session, username)
    if user is None or not user.is_active:
        verify_password(password, DUMMY_PASSWORD_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


async def _ensure_unique(
    session: AsyncSession, username: str | None, email: str | None, exclude_id: str | None = None
) -> None:
    clauses = []
    if username is not None:
        clauses.append(User.username == username)
    if email is not None:
        clauses.append(User.email == email)
    for clause in clauses:
        query = select(User.id).where(clause)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await session.execute(query)).first() is not None:
            raise Conflict(DUPLICATE_USER_MESSAGE)


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    """Create a user account with a freshly hashed password."""

    email = str(payload.email) if payload.email else None
    async with store_guard(session, "creating a user", DUPLICATE_USER_MESSAGE):
        await _ensure_unique(session, payload.username, email)
        user = User(
            username=payload.username,
            password_hash=hash_password(payload.password),
            role=payload.role.value,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            is_active=True,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
    logger.info("Created user %s with role %s", user.username, user.role)
    return user


async def update_user(session: AsyncSession, user_id: str, payload: UserUpdate) -> User:
    changes = payload.model_dump(exclude_unset=True)
    async with store_guard(session, "updating a user", DUPLICATE_USER_MESSAGE):
        user = await session.get(User, user_id)
        if user is None:
            raise NotFound("المستخدم غير موجود")
        email = str(changes["email"]) if changes.get("email") else None
        await _ensure_unique(
            session, changes.get("username"), email if "email" in changes else None, exclude_id=user_id
        )
        for field, value in changes.items():
            if field == "password":
                user.password_hash = hash_password(value)
            elif field == "role":
                user.role = value.value
            elif field == "email":
                user.email = email
            else:
                setattr(user, field, value)
        await session.commit()
        await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user_id: str) -> bool:
    async with store_guard(session, "deleting a user"):
        user = await session.get(User, user_id)
        if user is None:
            return False
        await session.delete(user)
        await session.commit()
    logger.info("Deleted user %s", user.username)
    return True


async def list_users(session: AsyncSession) -> Sequence[User]:
    async with store_guard(session, "listing users"):
        result = await session.execute(select(User).order_by(User.created_at, User.username))
        return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Check credentials and open a server-side session."""

    user = await validate_credentials(session, payload.username, payload.password)

    previous_sid = read_session_id(request, settings)
    if previous_sid is not None:
        await destroy_session(session, previous_sid)

    record = await create_session(
        session, user, timedelta(hours=settings.session_ttl_hours)
    )
    set_session_cookie(response, record, settings)
    logger.info("User %s logged in", user.username)
    return AuthResponse(user=PublicUser.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Destroy the caller's session, if any. Always succeeds."""

    sid = read_session_id(request, settings)
    if sid is not None:
        await destroy_session(session, sid)
    clear_session_cookie(response, settings)
    return MessageResponse(message="تم تسجيل الخروج بنجاح")


@router.get("/user", response_model=AuthResponse)
async def current_user(current_user: User = Depends(get_current_user)) -> AuthResponse:
    return AuthResponse(user=PublicUser.model_validate(current_user))
