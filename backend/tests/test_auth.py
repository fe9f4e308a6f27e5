"""Authentication and session lifecycle tests."""
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, update

from convention_registry import auth
from convention_registry.models import SessionRecord, User
from convention_registry.models.base import utcnow


@pytest.mark.asyncio
async def test_login_returns_public_profile_and_sets_cookie(client: AsyncClient, users) -> None:
    response = await client.post(
        "/api/auth/login", json={"username": "editor", "password": "editor123"}
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["username"] == "editor"
    assert user["role"] == "editor"
    assert "password" not in user
    assert "convention_sid" in response.cookies

    me = await client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == users["editor"].id


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client: AsyncClient, app, users) -> None:
    wrong_password = await client.post(
        "/api/auth/login", json={"username": "admin", "password": "nope"}
    )
    unknown_user = await client.post(
        "/api/auth/login", json={"username": "ghost", "password": "admin123"}
    )

    async with app.state.sessionmaker() as session:
        viewer = await session.get(User, users["viewer"].id)
        viewer.is_active = False
        await session.commit()
    inactive = await client.post(
        "/api/auth/login", json={"username": "viewer", "password": "viewer123"}
    )

    assert wrong_password.status_code == unknown_user.status_code == inactive.status_code == 401
    assert wrong_password.json() == unknown_user.json() == inactive.json()
    assert wrong_password.json()["message"] == "بيانات الدخول غير صحيحة"


@pytest.mark.asyncio
async def test_logout_is_always_successful(client: AsyncClient, login_as) -> None:
    anonymous = await client.post("/api/auth/logout")
    assert anonymous.status_code == 200

    editor = await login_as("editor")
    first = await editor.post("/api/auth/logout")
    second = await editor.post("/api/auth/logout")

    assert first.status_code == second.status_code == 200
    assert (await editor.get("/api/auth/user")).status_code == 401


@pytest.mark.asyncio
async def test_expired_session_is_rejected(app, login_as) -> None:
    editor = await login_as("editor")
    async with app.state.sessionmaker() as session:
        await session.execute(
            update(SessionRecord).values(expire=utcnow() - timedelta(minutes=1))
        )
        await session.commit()

    response = await editor.get("/api/auth/user")

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHENTICATED"
    assert "convention_sid" in response.headers.get("set-cookie", "")


@pytest.mark.asyncio
async def test_tampered_cookie_is_rejected(client: AsyncClient, users) -> None:
    client.cookies.set("convention_sid", "not-a-signed-token")

    response = await client.get("/api/conventions")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_user_loses_existing_session(app, users, login_as) -> None:
    admin = await login_as("admin")
    editor = await login_as("editor")
    assert (await editor.get("/api/conventions")).status_code == 200

    response = await admin.put(f"/api/users/{users['editor'].id}", json={"isActive": False})
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    assert (await editor.get("/api/conventions")).status_code == 401
    assert (await editor.get("/api/conventions")).status_code == 401

    async with app.state.sessionmaker() as session:
        remaining = await session.scalar(select(func.count()).select_from(SessionRecord))
    # only the admin's session is left
    assert remaining == 1


@pytest.mark.asyncio
async def test_deleted_user_loses_existing_session(app, users, login_as) -> None:
    admin = await login_as("admin")
    editor = await login_as("editor")
    assert (await editor.get("/api/conventions")).status_code == 200

    response = await admin.delete(f"/api/users/{users['editor'].id}")
    assert response.status_code == 200

    assert (await editor.get("/api/conventions")).status_code == 401
    assert (await editor.get("/api/conventions")).status_code == 401

    async with app.state.sessionmaker() as session:
        remaining = await session.scalar(select(func.count()).select_from(SessionRecord))
    assert remaining == 1


@pytest.mark.asyncio
async def test_rejected_logins_still_verify_a_password(
    client: AsyncClient, app, users, monkeypatch
) -> None:
    checked = []
    real_verify = auth.verify_password

    def recording_verify(password: str, password_hash: str) -> bool:
        checked.append(password_hash)
        return real_verify(password, password_hash)

    monkeypatch.setattr(auth, "verify_password", recording_verify)
    async with app.state.sessionmaker() as session:
        await session.execute(
            update(User).where(User.id == users["viewer"].id).values(is_active=False)
        )
        await session.commit()

    unknown = await client.post(
        "/api/auth/login", json={"username": "ghost", "password": "admin123"}
    )
    inactive = await client.post(
        "/api/auth/login", json={"username": "viewer", "password": "viewer123"}
    )

    assert unknown.status_code == inactive.status_code == 401
    assert checked == [auth.DUMMY_PASSWORD_HASH, auth.DUMMY_PASSWORD_HASH]


@pytest.mark.asyncio
async def test_password_change_takes_effect(client: AsyncClient, users, login_as) -> None:
    admin = await login_as("admin")

    response = await admin.put(
        f"/api/users/{users['viewer'].id}", json={"password": "fresh-secret"}
    )
    assert response.status_code == 200

    old = await client.post("/api/auth/login", json={"username": "viewer", "password": "viewer123"})
    new = await client.post(
        "/api/auth/login", json={"username": "viewer", "password": "fresh-secret"}
    )
    assert old.status_code == 401
    assert new.status_code == 200
