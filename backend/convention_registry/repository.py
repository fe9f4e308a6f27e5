"""Record access layer for conventions and their attached records.

Routes call these functions only after the authorization gate has admitted
the caller. Reads always go back to the store; search and statistics scan
the full fetched set in memory, which is fine for a single region's
conventions.
"""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import store_guard
from .errors import Conflict, InvalidArgument, NotFound
from .models import AdministrativeEvent, Convention, FinancialContribution
from .schemas import (
    AdministrativeEventCreate,
    AdministrativeEventUpdate,
    ConventionCreate,
    ConventionRead,
    ConventionSummary,
    ConventionUpdate,
    FinancialContributionCreate,
    FinancialContributionUpdate,
)

logger = logging.getLogger(__name__)

UNSPECIFIED = "غير محدد"
ZERO = Decimal("0.00")

DUPLICATE_NUMBER_MESSAGE = "رقم الاتفاقية موجود مسبقاً"
CONVENTION_NOT_FOUND = "الاتفاقية غير موجودة"
CONTRIBUTION_NOT_FOUND = "المساهمة المالية غير موجودة"
EVENT_NOT_FOUND = "الحدث الإداري غير موجود"

STATUS_SIGNED = "موقعة"
STATUS_SIGNING = "في طور التوقيع"
STATUS_VISA = "في طور التأشير"
STATUS_VISED = "مؤشرة"

_NUMBER_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


# ---------------------------------------------------------------------------
# Conventions
# ---------------------------------------------------------------------------


def convention_sort_key(convention_number: str) -> Tuple[int, int, int]:
    """Key for "<sequence>/<year>" numbers; unparseable numbers rank lowest."""

    match = _NUMBER_RE.match(convention_number or "")
    if match is None:
        return (0, 0, 0)
    sequence, year = match.groups()
    return (1, int(year), int(sequence))


def _to_read(rows: Iterable[Convention]) -> List[ConventionRead]:
    return [ConventionRead.model_validate(row) for row in rows]


async def _number_taken(
    session: AsyncSession, convention_number: str, exclude_id: Optional[int] = None
) -> bool:
    query = select(Convention.id).where(Convention.convention_number == convention_number)
    if exclude_id is not None:
        query = query.where(Convention.id != exclude_id)
    return (await session.execute(query)).first() is not None


async def list_conventions(
    session: AsyncSession,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[ConventionRead]:
    """All conventions, newest year first, then highest sequence first."""

    async with store_guard(session, "listing conventions"):
        result = await session.execute(select(Convention).order_by(Convention.id))
        rows = list(result.scalars().all())

    conventions = _to_read(rows)
    if status is not None:
        conventions = [c for c in conventions if c.status == status]
    if date_from is not None or date_to is not None:
        conventions = [c for c in conventions if _within(c.date, date_from, date_to)]
    return sorted(
        conventions, key=lambda c: convention_sort_key(c.convention_number), reverse=True
    )


def _within(raw: str, date_from: Optional[date], date_to: Optional[date]) -> bool:
    try:
        value = date.fromisoformat((raw or "").strip()[:10])
    except ValueError:
        return False
    if date_from is not None and value < date_from:
        return False
    if date_to is not None and value > date_to:
        return False
    return True


async def get_convention(session: AsyncSession, convention_id: int) -> ConventionRead:
    async with store_guard(session, "fetching a convention"):
        row = await session.get(Convention, convention_id)
    if row is None:
        raise NotFound(CONVENTION_NOT_FOUND)
    return ConventionRead.model_validate(row)


async def create_convention(
    session: AsyncSession, payload: ConventionCreate, created_by: str
) -> ConventionRead:
    async with store_guard(session, "creating a convention", DUPLICATE_NUMBER_MESSAGE):
        if await _number_taken(session, payload.convention_number):
            raise Conflict(DUPLICATE_NUMBER_MESSAGE)
        row = Convention(**payload.model_dump(), created_by=created_by)
        session.add(row)
        await session.commit()
        await session.refresh(row)
    logger.info("Convention %s created by %s", row.convention_number, created_by)
    return ConventionRead.model_validate(row)


async def update_convention(
    session: AsyncSession, convention_id: int, payload: ConventionUpdate
) -> ConventionRead:
    changes = payload.model_dump(exclude_unset=True)
    async with store_guard(session, "updating a convention", DUPLICATE_NUMBER_MESSAGE):
        row = await session.get(Convention, convention_id)
        if row is None:
            raise NotFound(CONVENTION_NOT_FOUND)
        number = changes.get("convention_number")
        if number is not None and await _number_taken(session, number, exclude_id=convention_id):
            raise Conflict(DUPLICATE_NUMBER_MESSAGE)
        for field, value in changes.items():
            setattr(row, field, value)
        await session.commit()
        await session.refresh(row)
    return ConventionRead.model_validate(row)


async def delete_convention(session: AsyncSession, convention_id: int) -> bool:
    """Delete a convention and everything attached to it.

    Returns False when no such convention exists.
    """

    async with store_guard(session, "deleting a convention"):
        row = await session.get(Convention, convention_id)
        if row is None:
            return False
        await session.execute(
            delete(FinancialContribution).where(
                FinancialContribution.convention_id == convention_id
            )
        )
        await session.execute(
            delete(AdministrativeEvent).where(AdministrativeEvent.convention_id == convention_id)
        )
        await session.delete(row)
        await session.commit()
    logger.info("Convention %s deleted", convention_id)
    return True


def matches_query(convention: ConventionRead, query: str) -> bool:
    needle = query.lower()
    if needle in (convention.convention_number or "").lower():
        return True
    if needle in (convention.description or "").lower():
        return True
    if needle in (convention.contractor or "").lower():
        return True
    return convention.amount is not None and needle in str(convention.amount)


async def search_conventions(session: AsyncSession, query: str) -> List[ConventionRead]:
    return [c for c in await list_conventions(session) if matches_query(c, query)]


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def _collapse(value: Optional[str]) -> str:
    text = " ".join((value or "").split())
    return text or UNSPECIFIED


def _single(attribute: str) -> Callable[[ConventionRead], List[str]]:
    return lambda convention: [_collapse(getattr(convention, attribute))]


def _provinces(convention: ConventionRead) -> List[str]:
    return [p.strip() for p in convention.province if p and p.strip()]


DIMENSIONS: Dict[str, Callable[[ConventionRead], List[str]]] = {
    "sector": _single("sector"),
    "status": _single("status"),
    "domain": _single("domain"),
    "province": _provinces,
    "year": _single("year"),
    "programme": _single("programme"),
}


def group_conventions(conventions: Sequence[ConventionRead], dimension: str) -> List[dict]:
    """Count conventions and sum their amounts per value of ``dimension``.

    Multi-valued dimensions (province) credit every listed value, so one
    convention may appear in several buckets.
    """

    keys_of = DIMENSIONS[dimension]
    counts: Dict[str, int] = defaultdict(int)
    amounts: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for convention in conventions:
        for key in keys_of(convention):
            counts[key] += 1
            amounts[key] += convention.amount or ZERO
    return [
        {dimension: key, "count": counts[key], "amount": str(amounts[key])} for key in counts
    ]


def summarize(conventions: Sequence[ConventionRead]) -> ConventionSummary:
    def _count(status: str) -> int:
        return sum(1 for c in conventions if c.status == status)

    return ConventionSummary(
        total=len(conventions),
        signed=_count(STATUS_SIGNED),
        signature=_count(STATUS_SIGNING),
        visa=_count(STATUS_VISA),
        visee=_count(STATUS_VISED),
        total_value=sum((c.amount or ZERO for c in conventions), ZERO),
    )


# ---------------------------------------------------------------------------
# Financial contributions
# ---------------------------------------------------------------------------


async def _require_convention(session: AsyncSession, convention_id: int) -> None:
    if await session.get(Convention, convention_id) is None:
        raise NotFound(CONVENTION_NOT_FOUND)


async def list_contributions(
    session: AsyncSession, convention_id: int
) -> List[FinancialContribution]:
    async with store_guard(session, "listing financial contributions"):
        result = await session.execute(
            select(FinancialContribution)
            .where(FinancialContribution.convention_id == convention_id)
            .order_by(FinancialContribution.year, FinancialContribution.id)
        )
        return list(result.scalars().all())


async def create_contribution(
    session: AsyncSession, convention_id: int, payload: FinancialContributionCreate
) -> FinancialContribution:
    async with store_guard(session, "creating a financial contribution"):
        await _require_convention(session, convention_id)
        row = FinancialContribution(convention_id=convention_id, **payload.model_dump())
        session.add(row)
        await session.commit()
        await session.refresh(row)
    return row


async def update_contribution(
    session: AsyncSession, contribution_id: int, payload: FinancialContributionUpdate
) -> FinancialContribution:
    async with store_guard(session, "updating a financial contribution"):
        row = await session.get(FinancialContribution, contribution_id)
        if row is None:
            raise NotFound(CONTRIBUTION_NOT_FOUND)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        await session.commit()
        await session.refresh(row)
    return row


async def delete_contribution(session: AsyncSession, contribution_id: int) -> bool:
    async with store_guard(session, "deleting a financial contribution"):
        result = await session.execute(
            delete(FinancialContribution).where(FinancialContribution.id == contribution_id)
        )
        await session.commit()
    return bool(result.rowcount)


# ---------------------------------------------------------------------------
# Administrative events
# ---------------------------------------------------------------------------


async def list_events(session: AsyncSession, convention_id: int) -> List[AdministrativeEvent]:
    async with store_guard(session, "listing administrative events"):
        result = await session.execute(
            select(AdministrativeEvent)
            .where(AdministrativeEvent.convention_id == convention_id)
            .order_by(AdministrativeEvent.event_date, AdministrativeEvent.id)
        )
        return list(result.scalars().all())


async def create_event(
    session: AsyncSession, convention_id: int, payload: AdministrativeEventCreate
) -> AdministrativeEvent:
    async with store_guard(session, "creating an administrative event"):
        await _require_convention(session, convention_id)
        row = AdministrativeEvent(convention_id=convention_id, **payload.model_dump())
        session.add(row)
        await session.commit()
        await session.refresh(row)
    return row


async def update_event(
    session: AsyncSession, event_id: int, payload: AdministrativeEventUpdate
) -> AdministrativeEvent:
    async with store_guard(session, "updating an administrative event"):
        row = await session.get(AdministrativeEvent, event_id)
        if row is None:
            raise NotFound(EVENT_NOT_FOUND)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(row, field, value)
        await session.commit()
        await session.refresh(row)
    return row


async def delete_event(session: AsyncSession, event_id: int) -> bool:
    async with store_guard(session, "deleting an administrative event"):
        result = await session.execute(
            delete(AdministrativeEvent).where(AdministrativeEvent.id == event_id)
        )
        await session.commit()
    return bool(result.rowcount)


def parse_date_filter(raw: Optional[str], name: str) -> Optional[date]:
    if raw is None or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidArgument(f"تاريخ غير صحيح: {name}") from exc
