"""Rewriting legacy list encodings."""
import pytest
from sqlalchemy import text

from convention_registry.legacy import normalize_legacy_rows
from convention_registry.models import Convention

INSERT_LEGACY = text(
    """
    INSERT INTO conventions (
        convention_number, date, description, status, year, session, domain,
        sector, decision_number, contractor, province, partners, attachments,
        delegated_project_owner, created_at, updated_at
    ) VALUES (
        '8/2019', '2019-05-02', 'legacy', 'موقعة', '2019', 'ماي 2019', 'd',
        's', '3/2019', 'c', :province, :partners, NULL, :owner,
        CURRENT_TIMESTAMP, CURRENT_TIMESTAMP
    )
    """
)


@pytest.mark.asyncio
async def test_legacy_rows_become_canonical_lists(app) -> None:
    async with app.state.engine.begin() as conn:
        await conn.execute(
            INSERT_LEGACY,
            {"province": '"أكادير"', "partners": "الجهة, الوزارة", "owner": "الوكالة"},
        )
        changed = await conn.run_sync(normalize_legacy_rows, True)
        again = await conn.run_sync(normalize_legacy_rows, True)

    assert changed == 1
    assert again == 0

    async with app.state.sessionmaker() as session:
        row = (await session.execute(Convention.__table__.select())).mappings().one()
    assert row["province"] == ["أكادير"]
    assert row["partners"] == ["الجهة", "الوزارة"]
    assert row["attachments"] == []
    assert row["delegated_project_owner"] == ["الوكالة"]


@pytest.mark.asyncio
async def test_legacy_rows_are_readable_through_the_api(app, login_as) -> None:
    async with app.state.engine.begin() as conn:
        await conn.execute(
            INSERT_LEGACY, {"province": '["تزنيت"]', "partners": "الجهة", "owner": None}
        )
        await conn.run_sync(normalize_legacy_rows, True)

    viewer = await login_as("viewer")
    listed = (await viewer.get("/api/conventions")).json()

    assert listed[0]["province"] == ["تزنيت"]
    assert listed[0]["partners"] == ["الجهة"]
    assert listed[0]["delegatedProjectOwner"] == []
