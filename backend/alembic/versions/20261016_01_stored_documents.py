"""stored documents

Revision ID: 20261016_01
Revises: 
Create Date: 2026-10-16 09:30:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261016_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "stored_documents",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("collection_path", sa.String(length=255), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_stored_documents_collection_path"),
        "stored_documents",
        ["collection_path"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_stored_documents_collection_path"), table_name="stored_documents")
    op.drop_table("stored_documents")
