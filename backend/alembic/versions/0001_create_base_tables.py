"""create users, sessions, conventions and their attached records"""
from alembic import op
import sqlalchemy as sa

revision = "0001_create_base_tables"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="viewer"),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "sessions",
        sa.Column("sid", sa.String(), primary_key=True),
        sa.Column("sess", sa.JSON(), nullable=False),
        sa.Column("expire", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_sessions_expire", "sessions", ["expire"])

    # List columns start as text; 0002 converts them once legacy values are canonical.
    op.create_table(
        "conventions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("convention_number", sa.Text(), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", MONEY, nullable=True),
        sa.Column("contribution", MONEY, nullable=True),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("year", sa.Text(), nullable=False),
        sa.Column("session", sa.Text(), nullable=False),
        sa.Column("domain", sa.Text(), nullable=False),
        sa.Column("sector", sa.Text(), nullable=False),
        sa.Column("decision_number", sa.Text(), nullable=False),
        sa.Column("contractor", sa.Text(), nullable=False),
        sa.Column("delegated_project_owner", sa.Text(), nullable=True),
        sa.Column("execution_type", sa.Text(), nullable=True),
        sa.Column("validity", sa.Text(), nullable=True),
        sa.Column("jurisdiction", sa.Text(), nullable=True),
        sa.Column("province", sa.Text(), nullable=True),
        sa.Column("partners", sa.Text(), nullable=True),
        sa.Column("attachments", sa.Text(), nullable=True),
        sa.Column("programme", sa.Text(), nullable=True),
        sa.Column(
            "created_by",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_conventions_created_by_users"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("convention_number", name="uq_conventions_convention_number"),
    )

    op.create_table(
        "financial_contributions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "convention_id",
            sa.Integer(),
            sa.ForeignKey(
                "conventions.id",
                ondelete="CASCADE",
                name="fk_financial_contributions_convention_id_conventions",
            ),
            nullable=False,
        ),
        sa.Column("partner_name", sa.Text(), nullable=False),
        sa.Column("year", sa.Text(), nullable=False),
        sa.Column("amount_expected", MONEY, nullable=True),
        sa.Column("amount_paid", MONEY, nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_financial_contributions_convention", "financial_contributions", ["convention_id"]
    )

    op.create_table(
        "administrative_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "convention_id",
            sa.Integer(),
            sa.ForeignKey(
                "conventions.id",
                ondelete="CASCADE",
                name="fk_administrative_events_convention_id_conventions",
            ),
            nullable=False,
        ),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_description", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_administrative_events_convention", "administrative_events", ["convention_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_administrative_events_convention", table_name="administrative_events")
    op.drop_table("administrative_events")
    op.drop_index("ix_financial_contributions_convention", table_name="financial_contributions")
    op.drop_table("financial_contributions")
    op.drop_table("conventions")
    op.drop_index("ix_sessions_expire", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("users")
