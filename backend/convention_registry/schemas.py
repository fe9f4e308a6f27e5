"""Pydantic schemas used across the backend API.

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .lists import decode_string_list
from .models import UserRole

Jurisdiction = Literal["منقول", "ذاتي", "مشترك"]

_CENTS = Decimal("0.01")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _money(value: Any) -> Any:
    value = _blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip()).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError("must be a decimal number") from exc


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# ---------------------------------------------------------------------------
# Users & authentication
# ---------------------------------------------------------------------------


class LoginRequest(CamelModel):
    """Credentials supplied during login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PublicUser(CamelModel):
    """The fields a user may see about themselves."""

    id: str
    username: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class AuthResponse(BaseModel):
    user: PublicUser


class UserRead(PublicUser):
    """Admin view of a user account."""

    is_active: bool
    created_at: Optional[datetime] = None


class UserCreate(CamelModel):
    """Payload for user creation by an administrator."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: UserRole = UserRole.VIEWER
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None

    normalize_email = field_validator("email", mode="before")(_blank_to_none)


class UserUpdate(CamelModel):
    """Partial update of a user account."""

    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[UserRole] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None

    normalize_email = field_validator("email", mode="before")(_blank_to_none)

    @model_validator(mode="after")
    def reject_nulls(self) -> "UserUpdate":
        for name in ("username", "password", "role", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


# ---------------------------------------------------------------------------
# Conventions
# ---------------------------------------------------------------------------

CONVENTION_REQUIRED = (
    "convention_number",
    "date",
    "description",
    "status",
    "year",
    "session",
    "domain",
    "sector",
    "decision_number",
    "contractor",
)


class ConventionFields(CamelModel):
    """Optional and multi-valued convention fields shared by every schema."""

    amount: Optional[Decimal] = None
    contribution: Optional[Decimal] = None
    delegated_project_owner: List[str] = Field(default_factory=list)
    execution_type: Optional[str] = None
    validity: Optional[str] = None
    jurisdiction: Optional[Jurisdiction] = None
    province: List[str] = Field(default_factory=list)
    partners: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    programme: Optional[str] = None

    normalize_money = field_validator("amount", "contribution", mode="before")(_money)
    normalize_jurisdiction = field_validator("jurisdiction", mode="before")(_blank_to_none)

    @field_validator(
        "delegated_project_owner", "province", "partners", "attachments", mode="before"
    )
    @classmethod
    def decode_lists(cls, value: Any) -> List[str]:
        return decode_string_list(value)


class ConventionCreate(ConventionFields):
    """Convention payload for creation."""

    convention_number: str
    date: str
    description: str
    status: str
    year: str
    session: str
    domain: str
    sector: str
    decision_number: str
    contractor: str


class ConventionUpdate(ConventionFields):
    """Partial convention update; only the fields sent are written."""

    convention_number: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    year: Optional[str] = None
    session: Optional[str] = None
    domain: Optional[str] = None
    sector: Optional[str] = None
    decision_number: Optional[str] = None
    contractor: Optional[str] = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "ConventionUpdate":
        for name in CONVENTION_REQUIRED:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class ConventionRead(ConventionCreate):
    """Convention representation returned by the API."""

    id: int
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConventionSummary(CamelModel):
    """Dashboard totals."""

    total: int
    signed: int
    signature: int
    visa: int
    visee: int
    total_value: Decimal


# ---------------------------------------------------------------------------
# Financial contributions & administrative events
# ---------------------------------------------------------------------------


class FinancialContributionBase(CamelModel):
    amount_expected: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    payment_date: Optional[date] = None
    is_paid: bool = False
    notes: Optional[str] = None

    normalize_money = field_validator("amount_expected", "amount_paid", mode="before")(_money)
    normalize_payment_date = field_validator("payment_date", mode="before")(_blank_to_none)


class FinancialContributionCreate(FinancialContributionBase):
    partner_name: str = Field(min_length=1)
    year: str = Field(min_length=1)


class FinancialContributionUpdate(FinancialContributionBase):
    partner_name: Optional[str] = Field(default=None, min_length=1)
    year: Optional[str] = Field(default=None, min_length=1)
    is_paid: Optional[bool] = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "FinancialContributionUpdate":
        for name in ("partner_name", "year", "is_paid"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class FinancialContributionRead(FinancialContributionCreate):
    id: int
    convention_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdministrativeEventCreate(CamelModel):
    event_date: date
    event_description: str = Field(min_length=1)
    notes: Optional[str] = None


class AdministrativeEventUpdate(CamelModel):
    event_date: Optional[date] = None
    event_description: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def reject_nulls(self) -> "AdministrativeEventUpdate":
        for name in ("event_date", "event_description"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class AdministrativeEventRead(AdministrativeEventCreate):
    id: int
    convention_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class StoredFile(CamelModel):
    original_name: str
    filename: str
    size: int
    mimetype: str
    path: str


class UploadResponse(BaseModel):
    files: List[StoredFile]


class MessageResponse(BaseModel):
    message: str
