"""SQLAlchemy models exposed by the backend."""
from .base import Base
from .convention import AdministrativeEvent, Convention, FinancialContribution
from .session import SessionRecord
from .user import User, UserRole

__all__ = [
    "AdministrativeEvent",
    "Base",
    "Convention",
    "FinancialContribution",
    "SessionRecord",
    "User",
    "UserRole",
]
