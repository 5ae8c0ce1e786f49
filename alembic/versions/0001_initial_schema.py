"""Initial schema: admin users and profile settings

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("hashed_password", sqlmodel.AutoString(length=255), nullable=True),
        sa.Column("legacy_password", sqlmodel.AutoString(length=255), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admin_users_username"), "admin_users", ["username"], unique=True)

    op.create_table(
        "profile_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_image_uri", sa.Text(), nullable=True),
        sa.Column("cv_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("construction_active", sa.Boolean(), nullable=False),
        sa.Column("construction_active_until", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("profile_settings")
    op.drop_index(op.f("ix_admin_users_username"), table_name="admin_users")
    op.drop_table("admin_users")
