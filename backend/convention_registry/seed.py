"""Default accounts and sample conventions for a fresh database."""
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import hash_password
from .database import store_guard
from .models import Convention, User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {
        "id": "admin_001",
        "username": "admin",
        "password": "admin123",
        "role": UserRole.ADMIN,
        "first_name": "مدير",
        "last_name": "النظام",
        "email": "admin@example.com",
    },
    {
        "id": "editor_001",
        "username": "editor",
        "password": "editor123",
        "role": UserRole.EDITOR,
        "first_name": "محرر",
        "last_name": "النظام",
        "email": "editor@example.com",
    },
    {
        "id": "viewer_001",
        "username": "viewer",
        "password": "viewer123",
        "role": UserRole.VIEWER,
        "first_name": "مشاهد",
        "last_name": "النظام",
        "email": "viewer@example.com",
    },
]

SAMPLE_CONVENTIONS = [
    {
        "convention_number": "47/2021",
        "date": "2024-01-15",
        "description": "اتفاقية شراكة من أجل تعزيز الربط الجوي بين طنجة واكادير",
        "amount": Decimal("6750000.00"),
        "status": "في طور التفعيل",
        "year": "2021",
        "session": "نونبر 2021",
        "domain": "التنمية الإقتصادية",
        "sector": "السياحة",
        "decision_number": "26/2021",
        "contractor": "شركة العربية للطيران المغرب",
        "created_by": "admin_001",
    },
    {
        "convention_number": "21/2022",
        "date": "2024-01-15",
        "description": "اتفاقية شراكة حول دعم قرية الأطفال المسعفين بأكادير",
        "amount": Decimal("1500000.00"),
        "status": "في طور التفعيل",
        "year": "2022",
        "session": "مارس 2022",
        "domain": "الشؤون الاجتماعية و الثقافية والرياضية",
        "sector": "التأهيل الاجتماعي",
        "decision_number": "62/2022",
        "contractor": "قرية الأطفال المسعفين",
        "created_by": "editor_001",
    },
]


async def seed_defaults(session: AsyncSession) -> None:
    """Insert the default rows that are missing. Existing rows are left alone."""

    async with store_guard(session, "seeding defaults"):
        existing_users = set(
            (await session.execute(select(User.username))).scalars().all()
        )
        for entry in DEFAULT_USERS:
            if entry["username"] in existing_users:
                continue
            session.add(
                User(
                    id=entry["id"],
                    username=entry["username"],
                    password_hash=hash_password(entry["password"]),
                    role=entry["role"].value,
                    first_name=entry["first_name"],
                    last_name=entry["last_name"],
                    email=entry["email"],
                    is_active=True,
                )
            )
            logger.info("Seeded default user %s", entry["username"])
        await session.flush()

        existing_numbers = set(
            (await session.execute(select(Convention.convention_number))).scalars().all()
        )
        known_ids = set((await session.execute(select(User.id))).scalars().all())
        for entry in SAMPLE_CONVENTIONS:
            if entry["convention_number"] in existing_numbers:
                continue
            values = dict(entry)
            if values["created_by"] not in known_ids:
                values["created_by"] = None
            session.add(Convention(**values))
            logger.info("Seeded sample convention %s", entry["convention_number"])
        await session.commit()
