"""Financial contributions and administrative events."""
import pytest

from conftest import convention_payload


@pytest.mark.asyncio
async def test_financial_contribution_lifecycle(login_as) -> None:
    editor = await login_as("editor")
    viewer = await login_as("viewer")
    cid = (await editor.post("/api/conventions", json=convention_payload())).json()["id"]

    created = await editor.post(
        f"/api/conventions/{cid}/financial-contributions",
        json={
            "partnerName": "وزارة السياحة",
            "year": "2025",
            "amountExpected": "250000",
            "amountPaid": "",
            "paymentDate": "",
        },
    )
    assert created.status_code == 201, created.text
    contribution = created.json()
    assert contribution["conventionId"] == cid
    assert contribution["amountExpected"] == "250000.00"
    assert contribution["amountPaid"] is None
    assert contribution["isPaid"] is False

    updated = await editor.put(
        f"/api/financial-contributions/{contribution['id']}",
        json={"isPaid": "true", "amountPaid": 250000, "paymentDate": "2025-06-30"},
    )
    assert updated.status_code == 200
    assert updated.json()["isPaid"] is True
    assert updated.json()["paymentDate"] == "2025-06-30"
    assert updated.json()["partnerName"] == "وزارة السياحة"

    listed = await viewer.get(f"/api/conventions/{cid}/financial-contributions")
    assert [c["id"] for c in listed.json()] == [contribution["id"]]

    assert (
        await editor.delete(f"/api/financial-contributions/{contribution['id']}")
    ).status_code == 200
    assert (
        await editor.delete(f"/api/financial-contributions/{contribution['id']}")
    ).status_code == 404
    assert (await viewer.get(f"/api/conventions/{cid}/financial-contributions")).json() == []


@pytest.mark.asyncio
async def test_contribution_requires_existing_convention(login_as) -> None:
    editor = await login_as("editor")

    missing = await editor.post(
        "/api/conventions/4242/financial-contributions",
        json={"partnerName": "الجهة", "year": "2025"},
    )
    bad_id = await editor.get("/api/conventions/x1/financial-contributions")
    no_partner = await editor.post(
        "/api/conventions/1/financial-contributions", json={"year": "2025"}
    )

    assert missing.status_code == 404
    assert bad_id.status_code == 400
    assert no_partner.status_code == 400


@pytest.mark.asyncio
async def test_administrative_events_are_chronological(login_as) -> None:
    editor = await login_as("editor")
    cid = (await editor.post("/api/conventions", json=convention_payload())).json()["id"]

    for event_date, text in (("2025-05-01", "تأشير"), ("2024-01-10", "توقيع")):
        response = await editor.post(
            f"/api/conventions/{cid}/administrative-events",
            json={"eventDate": event_date, "eventDescription": text},
        )
        assert response.status_code == 201

    events = (await editor.get(f"/api/conventions/{cid}/administrative-events")).json()
    assert [e["eventDescription"] for e in events] == ["توقيع", "تأشير"]

    updated = await editor.put(
        f"/api/administrative-events/{events[0]['id']}", json={"notes": "بحضور الشركاء"}
    )
    assert updated.status_code == 200
    assert updated.json()["notes"] == "بحضور الشركاء"
    assert updated.json()["eventDate"] == "2024-01-10"

    bad_date = await editor.post(
        f"/api/conventions/{cid}/administrative-events",
        json={"eventDate": "soon", "eventDescription": "x"},
    )
    assert bad_date.status_code == 400
    assert (await editor.put("/api/administrative-events/999", json={"notes": "x"})).status_code == 404
    assert (await editor.delete(f"/api/administrative-events/{events[1]['id']}")).status_code == 200
