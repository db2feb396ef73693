"""Initial catalog schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-01
"""

from __future__ import annotations

from alembic import op

from catalogix.adapters.sqlalchemy.mappings import mapper_registry, start_mappers

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    start_mappers()
    mapper_registry.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    mapper_registry.metadata.drop_all(bind=op.get_bind())
