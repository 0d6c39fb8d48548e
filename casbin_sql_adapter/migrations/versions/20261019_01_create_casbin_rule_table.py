"""create casbin_rule table

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def _target() -> tuple[str | None, str]:
    config = op.get_context().config
    schema = config.get_main_option("casbin_schema") if config is not None else None
    table = config.get_main_option("casbin_table") if config is not None else None
    return schema or None, table or "casbin_rule"


def _value_column(name: str) -> sa.Column:
    return sa.Column(name, sa.String(length=255), nullable=False, server_default="")


def upgrade() -> None:
    schema, table = _target()
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _value_column("ptype"),
        *[_value_column(f"v{i}") for i in range(8)],
        schema=schema,
    )


def downgrade() -> None:
    schema, table = _target()
    op.drop_table(table, schema=schema)
