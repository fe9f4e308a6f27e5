"""User administration endpoints (admin only)."""
from typing import List, Sequence

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import create_user, delete_user, list_users, update_user
from ..database import get_session
from ..dependencies import require_admin
from ..errors import NotFound, SelfDeleteForbidden
from ..models import User
from ..schemas import MessageResponse, UserCreate, UserRead, UserUpdate

router = APIRouter(prefix="/api/users", tags=["users"])

USER_NOT_FOUND = "المستخدم غير موجود"


@router.get("", response_model=List[UserRead])
async def read_users(
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> Sequence[User]:
    return await list_users(session)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Create an account; the password is stored only as a hash."""

    return await create_user(session, payload)


@router.put("/{user_id}", response_model=UserRead)
async def modify_user(
    user_id: str,
    payload: UserUpdate,
    _: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> User:
    return await update_user(session, user_id, payload)


@router.delete("/{user_id}", response_model=MessageResponse)
async def remove_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    if user_id == current_user.id:
        raise SelfDeleteForbidden()
    if not await delete_user(session, user_id):
        raise NotFound(USER_NOT_FOUND)
    return MessageResponse(message="تم حذف المستخدم بنجاح")
