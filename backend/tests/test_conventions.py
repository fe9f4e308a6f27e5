"""Integration tests for the convention API."""
import pytest
from sqlalchemy import func, select

from conftest import convention_payload
from convention_registry.models import AdministrativeEvent, FinancialContribution


@pytest.mark.asyncio
async def test_editor_creates_convention_and_duplicate_is_rejected(login_as, users) -> None:
    editor = await login_as("editor")

    created = await editor.post(
        "/api/conventions",
        json=convention_payload(
            "99/2025",
            amount="1500.5",
            contribution="",
            province=["أكادير إداوتنان", "تارودانت"],
            partners="الجهة, الوزارة",
            delegatedProjectOwner='["الوكالة"]',
            jurisdiction="ذاتي",
        ),
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["conventionNumber"] == "99/2025"
    assert body["createdBy"] == users["editor"].id
    assert body["amount"] == "1500.50"
    assert body["contribution"] is None
    assert body["province"] == ["أكادير إداوتنان", "تارودانت"]
    assert body["partners"] == ["الجهة", "الوزارة"]
    assert body["delegatedProjectOwner"] == ["الوكالة"]
    assert body["attachments"] == []

    duplicate = await editor.post(
        "/api/conventions", json=convention_payload("99/2025", description="أخرى")
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "رقم الاتفاقية موجود مسبقاً"

    listed = (await editor.get("/api/conventions")).json()
    assert len(listed) == 1
    assert listed[0]["description"] == body["description"]


@pytest.mark.asyncio
async def test_invalid_payloads_are_rejected(login_as) -> None:
    editor = await login_as("editor")

    missing = await editor.post("/api/conventions", json={"conventionNumber": "1/2025"})
    bad_jurisdiction = await editor.post(
        "/api/conventions", json=convention_payload(jurisdiction="مركزي")
    )
    bad_amount = await editor.post("/api/conventions", json=convention_payload(amount="abc"))

    for response in (missing, bad_jurisdiction, bad_amount):
        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_ARGUMENT"
        assert response.json()["errors"]


@pytest.mark.asyncio
async def test_list_is_ordered_by_year_then_sequence(login_as) -> None:
    editor = await login_as("editor")
    for number in ("5/2021", "bad-number", "12/2021", "3/2023"):
        response = await editor.post("/api/conventions", json=convention_payload(number, year="2021"))
        assert response.status_code == 201

    listed = (await editor.get("/api/conventions")).json()

    assert [c["conventionNumber"] for c in listed] == ["3/2023", "12/2021", "5/2021", "bad-number"]


@pytest.mark.asyncio
async def test_list_filters_by_status_and_date(login_as) -> None:
    editor = await login_as("editor")
    await editor.post("/api/conventions", json=convention_payload("1/2024", date="2024-02-01"))
    await editor.post(
        "/api/conventions",
        json=convention_payload("2/2024", date="2024-06-15", status="في طور التأشير"),
    )

    by_status = await editor.get("/api/conventions", params={"status": "في طور التأشير"})
    by_date = await editor.get(
        "/api/conventions", params={"dateFrom": "2024-01-01", "dateTo": "2024-03-01"}
    )
    bad_date = await editor.get("/api/conventions", params={"dateFrom": "yesterday"})

    assert [c["conventionNumber"] for c in by_status.json()] == ["2/2024"]
    assert [c["conventionNumber"] for c in by_date.json()] == ["1/2024"]
    assert bad_date.status_code == 400


@pytest.mark.asyncio
async def test_get_update_and_invalid_ids(login_as) -> None:
    editor = await login_as("editor")
    created = (await editor.post("/api/conventions", json=convention_payload())).json()

    fetched = await editor.get(f"/api/conventions/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["conventionNumber"] == "99/2025"

    updated = await editor.put(
        f"/api/conventions/{created['id']}",
        json={"status": "مؤشرة", "province": "أكادير, إنزكان"},
    )
    assert updated.status_code == 200
    assert updated.json()["status"] == "مؤشرة"
    assert updated.json()["province"] == ["أكادير", "إنزكان"]
    assert updated.json()["description"] == created["description"]

    assert (await editor.get("/api/conventions/abc")).status_code == 400
    assert (await editor.get("/api/conventions/١٢")).status_code == 400
    assert (await editor.get("/api/conventions/4242")).status_code == 404
    # past the 64-bit id range
    assert (await editor.get("/api/conventions/99999999999999999999999")).status_code == 400
    assert (await editor.put("/api/conventions/4242", json={"status": "x"})).status_code == 404
    null_required = await editor.put(
        f"/api/conventions/{created['id']}", json={"description": None}
    )
    assert null_required.status_code == 400


@pytest.mark.asyncio
async def test_renumbering_onto_an_existing_number_conflicts(login_as) -> None:
    editor = await login_as("editor")
    await editor.post("/api/conventions", json=convention_payload("1/2025"))
    second = (await editor.post("/api/conventions", json=convention_payload("2/2025"))).json()

    response = await editor.put(
        f"/api/conventions/{second['id']}", json={"conventionNumber": "1/2025"}
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_search_is_case_insensitive_over_text_and_amount(login_as) -> None:
    editor = await login_as("editor")
    await editor.post(
        "/api/conventions",
        json=convention_payload("1/2025", description="Extension of the AGADIR port", amount="750"),
    )
    await editor.post(
        "/api/conventions",
        json=convention_payload("2/2025", description="Rural roads", contractor="ONEE"),
    )

    by_text = (await editor.get("/api/conventions/search/agadir")).json()
    by_contractor = (await editor.get("/api/conventions/search/onee")).json()
    by_amount = (await editor.get("/api/conventions/search/750")).json()
    nothing = (await editor.get("/api/conventions/search/zzz")).json()

    assert [c["conventionNumber"] for c in by_text] == ["1/2025"]
    assert [c["conventionNumber"] for c in by_contractor] == ["2/2025"]
    assert [c["conventionNumber"] for c in by_amount] == ["1/2025"]
    assert nothing == []


@pytest.mark.asyncio
async def test_statistics(login_as) -> None:
    editor = await login_as("editor")
    await editor.post(
        "/api/conventions",
        json=convention_payload(
            "1/2024", status="موقعة", amount="1000", province=["أكادير", "تزنيت"],
            sector="  السياحة   الجبلية ",
        ),
    )
    await editor.post(
        "/api/conventions",
        json=convention_payload(
            "2/2024", status="مؤشرة", amount="500.50", province=["أكادير"],
            sector="السياحة الجبلية", programme="برنامج التنمية",
        ),
    )
    await editor.post(
        "/api/conventions",
        json=convention_payload("3/2024", status="في طور التوقيع", amount=None, sector=""),
    )

    summary = (await editor.get("/api/conventions/stats")).json()
    assert summary == {
        "total": 3,
        "signed": 1,
        "signature": 1,
        "visa": 0,
        "visee": 1,
        "totalValue": "1500.50",
    }

    provinces = {
        row["province"]: row for row in (await editor.get("/api/conventions/stats/by-province")).json()
    }
    assert provinces["أكادير"]["count"] == 2
    assert provinces["أكادير"]["amount"] == "1500.50"
    assert provinces["تزنيت"]["count"] == 1

    sectors = {
        row["sector"]: row["count"]
        for row in (await editor.get("/api/conventions/stats/by-sector")).json()
    }
    assert sectors == {"السياحة الجبلية": 2, "غير محدد": 1}

    programmes = {
        row["programme"]: row["count"]
        for row in (await editor.get("/api/conventions/stats/by-programme")).json()
    }
    assert programmes == {"برنامج التنمية": 1, "غير محدد": 2}

    cost = (await editor.get("/api/conventions/stats/by-sector-cost")).json()
    assert {"sector": "السياحة الجبلية", "amount": "1500.50"} in cost

    assert (await editor.get("/api/conventions/stats/by-colour")).status_code == 404


@pytest.mark.asyncio
async def test_delete_cascades_to_attached_records(app, login_as) -> None:
    editor = await login_as("editor")
    convention = (await editor.post("/api/conventions", json=convention_payload())).json()
    cid = convention["id"]
    await editor.post(
        f"/api/conventions/{cid}/financial-contributions",
        json={"partnerName": "الوزارة", "year": "2025", "amountExpected": "100"},
    )
    await editor.post(
        f"/api/conventions/{cid}/administrative-events",
        json={"eventDate": "2025-04-01", "eventDescription": "توقيع"},
    )

    deleted = await editor.delete(f"/api/conventions/{cid}")
    assert deleted.status_code == 200
    assert (await editor.delete(f"/api/conventions/{cid}")).status_code == 404
    assert (await editor.get(f"/api/conventions/{cid}")).status_code == 404

    async with app.state.sessionmaker() as session:
        contributions = await session.scalar(
            select(func.count()).select_from(FinancialContribution)
        )
        events = await session.scalar(select(func.count()).select_from(AdministrativeEvent))
    assert contributions == 0
    assert events == 0
