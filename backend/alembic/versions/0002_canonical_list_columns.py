"""decode legacy list values and store list columns as JSON"""
from alembic import op
import sqlalchemy as sa

from convention_registry.legacy import normalize_legacy_rows
from convention_registry.lists import LIST_FIELDS

revision = "0002_canonical_list_columns"
down_revision = "0001_create_base_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    normalize_legacy_rows(op.get_bind())
    with op.batch_alter_table("conventions") as batch:
        for field in LIST_FIELDS:
            batch.alter_column(
                field,
                existing_type=sa.Text(),
                type_=sa.JSON(),
                existing_nullable=True,
                postgresql_using=f"{field}::json",
            )


def downgrade() -> None:
    with op.batch_alter_table("conventions") as batch:
        for field in LIST_FIELDS:
            batch.alter_column(
                field,
                existing_type=sa.JSON(),
                type_=sa.Text(),
                existing_nullable=True,
                postgresql_using=f"{field}::text",
            )
