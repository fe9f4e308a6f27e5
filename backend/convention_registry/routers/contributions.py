"""Financial contribution endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import repository
from ..database import get_session
from ..dependencies import get_current_user, parse_id, require_editor
from ..errors import NotFound
from ..models import FinancialContribution, User
from ..schemas import (
    FinancialContributionCreate,
    FinancialContributionRead,
    FinancialContributionUpdate,
    MessageResponse,
)

router = APIRouter(prefix="/api", tags=["financial-contributions"])


@router.get(
    "/conventions/{convention_id}/financial-contributions",
    response_model=List[FinancialContributionRead],
)
async def list_contributions(
    convention_id: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[FinancialContribution]:
    return await repository.list_contributions(session, parse_id(convention_id))


@router.post(
    "/conventions/{convention_id}/financial-contributions",
    response_model=FinancialContributionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_contribution(
    convention_id: str,
    payload: FinancialContributionCreate,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> FinancialContribution:
    return await repository.create_contribution(session, parse_id(convention_id), payload)


@router.put("/financial-contributions/{contribution_id}", response_model=FinancialContributionRead)
async def update_contribution(
    contribution_id: str,
    payload: FinancialContributionUpdate,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> FinancialContribution:
    return await repository.update_contribution(session, parse_id(contribution_id), payload)


@router.delete("/financial-contributions/{contribution_id}", response_model=MessageResponse)
async def delete_contribution(
    contribution_id: str,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    if not await repository.delete_contribution(session, parse_id(contribution_id)):
        raise NotFound(repository.CONTRIBUTION_NOT_FOUND)
    return MessageResponse(message="تم حذف المساهمة المالية بنجاح")
