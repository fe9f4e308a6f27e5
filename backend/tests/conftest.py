"""Test fixtures for the backend."""
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Dict

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from convention_registry import models
from convention_registry.auth import create_user
from convention_registry.config import Settings
from convention_registry.main import create_app
from convention_registry.schemas import UserCreate

PASSWORDS = {
    "admin": "admin123",
    "editor": "editor123",
    "viewer": "viewer123",
}


def convention_payload(number: str = "99/2025", **overrides) -> dict:
    payload = {
        "conventionNumber": number,
        "date": "2025-03-01",
        "description": "اتفاقية شراكة لتهيئة ميناء أكادير",
        "status": "موقعة",
        "year": number.split("/")[-1],
        "session": "مارس 2025",
        "domain": "التنمية الإقتصادية",
        "sector": "السياحة",
        "decisionNumber": "12/2025",
        "contractor": "الجهة",
        "amount": "1000",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    client_dir = tmp_path / "client"
    client_dir.mkdir()
    (client_dir / "index.html").write_text(
        '<html><body><script type="module" src="/src/main.tsx"></script></body></html>',
        encoding="utf-8",
    )
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}",
        session_secret="test-secret",
        environment="development",
        upload_dir=tmp_path / "uploads",
        client_dir=client_dir,
        seed_defaults=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    """Application with its schema created, as startup would do."""

    application = create_app(settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Anonymous HTTP client for integration tests."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def users(app: FastAPI) -> Dict[str, models.User]:
    """One account per role, named after the role."""

    created = {}
    async with app.state.sessionmaker() as session:
        for role, password in PASSWORDS.items():
            created[role] = await create_user(
                session,
                UserCreate(username=role, password=password, role=role, email=f"{role}@example.com"),
            )
    return created


@pytest_asyncio.fixture
async def login_as(
    app: FastAPI, users: Dict[str, models.User]
) -> AsyncIterator[Callable[[str], Awaitable[AsyncClient]]]:
    """Factory returning a client that holds a session for the given role."""

    clients = []

    async def _login(role: str) -> AsyncClient:
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
        clients.append(client)
        response = await client.post(
            "/api/auth/login", json={"username": role, "password": PASSWORDS[role]}
        )
        assert response.status_code == 200, response.text
        return client

    yield _login
    for client in clients:
        await client.aclose()
