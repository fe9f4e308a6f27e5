"""Convention endpoints: browsing, statistics, exports and editing."""
import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import repository
from ..database import get_session
from ..dependencies import get_current_user, parse_id, require_editor
from ..errors import NotFound
from ..exports import (
    DOCX_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    build_convention_docx,
    build_conventions_workbook,
    docx_disposition,
)
from ..models import User
from ..schemas import (
    ConventionCreate,
    ConventionRead,
    ConventionSummary,
    ConventionUpdate,
    MessageResponse,
)

router = APIRouter(prefix="/api/conventions", tags=["conventions"])

INVALID_CONVENTION_ID = "معرف الاتفاقية غير صحيح"


@router.get("", response_model=List[ConventionRead])
async def list_conventions(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    date_from: Optional[str] = Query(default=None, alias="dateFrom"),
    date_to: Optional[str] = Query(default=None, alias="dateTo"),
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[ConventionRead]:
    """Return conventions, newest first, optionally filtered by status and date."""

    return await repository.list_conventions(
        session,
        status=status_filter or None,
        date_from=repository.parse_date_filter(date_from, "dateFrom"),
        date_to=repository.parse_date_filter(date_to, "dateTo"),
    )


@router.get("/stats", response_model=ConventionSummary)
async def convention_stats(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ConventionSummary:
    return repository.summarize(await repository.list_conventions(session))


@router.get("/stats/by-sector-cost")
async def stats_by_sector_cost(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[dict]:
    groups = repository.group_conventions(await repository.list_conventions(session), "sector")
    return [{"sector": group["sector"], "amount": group["amount"]} for group in groups]


@router.get("/stats/by-{dimension}")
async def stats_by_dimension(
    dimension: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[dict]:
    """Count and total amount per sector, status, domain, province, year or programme."""

    if dimension not in repository.DIMENSIONS:
        raise NotFound("الإحصائية غير موجودة")
    return repository.group_conventions(await repository.list_conventions(session), dimension)


@router.get("/search/{query}", response_model=List[ConventionRead])
async def search_conventions(
    query: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> List[ConventionRead]:
    return await repository.search_conventions(session, query)


@router.get("/export/excel")
async def export_excel(
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Spreadsheet of every convention."""

    conventions = await repository.list_conventions(session)
    content = await asyncio.to_thread(build_conventions_workbook, conventions)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="conventions.xlsx"'},
    )


@router.get("/{convention_id}", response_model=ConventionRead)
async def get_convention(
    convention_id: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ConventionRead:
    return await repository.get_convention(session, parse_id(convention_id, INVALID_CONVENTION_ID))


@router.get("/{convention_id}/download")
async def download_convention(
    convention_id: str,
    _: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Word document describing one convention."""

    convention = await repository.get_convention(
        session, parse_id(convention_id, INVALID_CONVENTION_ID)
    )
    content = await asyncio.to_thread(build_convention_docx, convention)
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": docx_disposition(convention.convention_number)},
    )


@router.post("", response_model=ConventionRead, status_code=status.HTTP_201_CREATED)
async def create_convention(
    payload: ConventionCreate,
    current_user: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> ConventionRead:
    return await repository.create_convention(session, payload, created_by=current_user.id)


@router.put("/{convention_id}", response_model=ConventionRead)
async def update_convention(
    convention_id: str,
    payload: ConventionUpdate,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> ConventionRead:
    return await repository.update_convention(
        session, parse_id(convention_id, INVALID_CONVENTION_ID), payload
    )


@router.delete("/{convention_id}", response_model=MessageResponse)
async def delete_convention(
    convention_id: str,
    _: User = Depends(require_editor),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    deleted = await repository.delete_convention(
        session, parse_id(convention_id, INVALID_CONVENTION_ID)
    )
    if not deleted:
        raise NotFound(repository.CONVENTION_NOT_FOUND)
    return MessageResponse(message="تم حذف الاتفاقية بنجاح")
