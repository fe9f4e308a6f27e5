"""Conventions and the records attached to them."""
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

MONEY = Numeric(12, 2)


class Convention(TimestampMixin, Base):
    """A partnership agreement tracked by the region."""

    __tablename__ = "conventions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    convention_number: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    contribution: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[str] = mapped_column(Text, nullable=False)
    session: Mapped[str] = mapped_column(Text, nullable=False)
    domain: Mapped[str] = mapped_column(Text, nullable=False)
    sector: Mapped[str] = mapped_column(Text, nullable=False)
    decision_number: Mapped[str] = mapped_column(Text, nullable=False)
    contractor: Mapped[str] = mapped_column(Text, nullable=False)
    delegated_project_owner: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=True)
    execution_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    validity: Mapped[str | None] = mapped_column(Text, nullable=True)
    jurisdiction: Mapped[str | None] = mapped_column(Text, nullable=True)
    province: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=True)
    partners: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=True)
    attachments: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=True)
    programme: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


class FinancialContribution(TimestampMixin, Base):
    """Per-partner, per-year funding line of one convention."""

    __tablename__ = "financial_contributions"

    __table_args__ = (Index("ix_financial_contributions_convention", "convention_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    convention_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conventions.id", ondelete="CASCADE"), nullable=False
    )
    partner_name: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[str] = mapped_column(Text, nullable=False)
    amount_expected: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    amount_paid: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class AdministrativeEvent(TimestampMixin, Base):
    """Dated milestone note of one convention."""

    __tablename__ = "administrative_events"

    __table_args__ = (Index("ix_administrative_events_convention", "convention_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    convention_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("conventions.id", ondelete="CASCADE"), nullable=False
    )
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_description: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
