"""Administrative event endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import repository
from ..database import get_session
from ..dependencies import get_current_user, parse_id, require_editor
from ..errors import NotFound
from ..models import AdministrativeEvent, User
from ..schemas import (
    AdministrativeEventCreate,
    AdministrativeEventRead,
    AdministrativeEventUpdate,
    MessageResponse,
)

router = APIRouter(prefix="/api", tags=["administrative-events"])


@router.get(
    "/conventions/{convention_id}/administrative-events",
    response_model=List[AdministrativeEventRead],
)
async def list_events(
    convention_id: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[AdministrativeEvent]:
    """Events of one convention in chronological order."""

    return await repository.list_events(session, parse_id(convention_id))


@router.post(
    "/conventions/{convention_id}/administrative-events",
    response_model=AdministrativeEventRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    convention_id: str,
    payload: AdministrativeEventCreate,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> AdministrativeEvent:
    return await repository.create_event(session, parse_id(convention_id), payload)


@router.put("/administrative-events/{event_id}", response_model=AdministrativeEventRead)
async def update_event(
    event_id: str,
    payload: AdministrativeEventUpdate,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> AdministrativeEvent:
    return await repository.update_event(session, parse_id(event_id), payload)


@router.delete("/administrative-events/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    if not await repository.delete_event(session, parse_id(event_id)):
        raise NotFound(repository.EVENT_NOT_FOUND)
    return MessageResponse(message="تم حذف الحدث الإداري بنجاح")
