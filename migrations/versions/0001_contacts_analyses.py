"""contacts and analyses

Canonical schema: contact (email unique, confirmation_token unique) and
analysis (contact_id -> contact.id). Earlier ad-hoc tables (status default
'active', analysis NOT NULL, last_analysis_at) are replaced by this baseline.

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel  # noqa: F401
from alembic import op


revision: str = "0001_contacts_analyses"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "contact",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("confirmation_token", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contact_email", "contact", ["email"], unique=True)
    op.create_index("ix_contact_confirmation_token", "contact", ["confirmation_token"], unique=True)
    op.create_index("ix_contact_created_at", "contact", ["created_at"], unique=False)

    op.create_table(
        "analysis",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=False),
        sa.Column("situation", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("analysis", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("status", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contact.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analysis_contact_id", "analysis", ["contact_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_analysis_contact_id", table_name="analysis")
    op.drop_table("analysis")
    op.drop_index("ix_contact_created_at", table_name="contact")
    op.drop_index("ix_contact_confirmation_token", table_name="contact")
    op.drop_index("ix_contact_email", table_name="contact")
    op.drop_table("contact")
