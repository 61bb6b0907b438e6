"""seed roles and permissions

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:15:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_0002"
down_revision: str | None = "20261019_0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ROLE_PERMISSIONS = {
    "admin": ["audit.read"],
    "operator": [],
}

PERMISSIONS = {
    "audit.read": "Read the activity log",
}


def upgrade() -> None:
    roles_table = sa.table("roles", sa.column("id", sa.Integer), sa.column("name", sa.String))
    permissions_table = sa.table(
        "permissions",
        sa.column("id", sa.Integer),
        sa.column("code", sa.String),
        sa.column("description", sa.String),
    )
    role_permissions_table = sa.table(
        "role_permissions",
        sa.column("role_id", sa.Integer),
        sa.column("permission_id", sa.Integer),
    )

    op.bulk_insert(roles_table, [{"name": name} for name in ROLE_PERMISSIONS])
    op.bulk_insert(
        permissions_table,
        [{"code": code, "description": description} for code, description in PERMISSIONS.items()],
    )

    connection = op.get_bind()
    role_ids = {row.name: row.id for row in connection.execute(sa.text("SELECT id, name FROM roles"))}
    permission_ids = {row.code: row.id for row in connection.execute(sa.text("SELECT id, code FROM permissions"))}

    op.bulk_insert(
        role_permissions_table,
        [
            {"role_id": role_ids[role], "permission_id": permission_ids[code]}
            for role, codes in ROLE_PERMISSIONS.items()
            for code in codes
        ],
    )


def downgrade() -> None:
    op.execute(sa.text("DELETE FROM role_permissions"))
    op.execute(sa.text("DELETE FROM permissions WHERE code = 'audit.read'"))
    op.execute(sa.text("DELETE FROM roles WHERE name IN ('admin', 'operator')"))
