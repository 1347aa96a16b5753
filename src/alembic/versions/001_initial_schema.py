"""Initial schema -- users, drawings, indexes, and the updated_at trigger.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17
"""

from alembic import op

from patterndraw.schema_sql import indexes, tables_core, triggers

revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _execute_all(statements: list[str]) -> None:
    for stmt in statements:
        op.execute(stmt)


def upgrade() -> None:
    _execute_all(tables_core.ALL)
    _execute_all(indexes.ALL)
    _execute_all(triggers.FUNCTIONS_ALL)
    _execute_all(triggers.TRIGGERS_ALL)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_drawings_updated_at ON drawings;")
    op.execute("DROP FUNCTION IF EXISTS touch_updated_at();")
    for table in ("drawings", "users"):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE;")
