"""Create security_audit_logs table and user_locations if missing.

user_locations belongs to the ingest store and normally exists already; it is
only created here for fresh development databases.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())

    if "user_locations" not in inspector.get_table_names():
        op.create_table(
            "user_locations",
            sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
            sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=True),
            sa.Column("latitude", sa.Numeric(10, 8), nullable=False),
            sa.Column("longitude", sa.Numeric(11, 8), nullable=False),
            sa.Column("accuracy", sa.Numeric(10, 2), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                server_default=sa.func.now(),
            ),
        )
        op.create_index("ix_user_locations_user_id", "user_locations", ["user_id"])
        op.create_index("ix_user_locations_created_at", "user_locations", ["created_at"])

    op.create_table(
        "security_audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("endpoint", sa.String(100), nullable=False),
        sa.Column("client_ip", sa.String(255), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("request_count", sa.Integer(), nullable=True),
        sa.Column("time_window_seconds", sa.Integer(), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_security_audit_logs_created_at", "security_audit_logs", ["created_at"]
    )
    op.create_index(
        "ix_security_audit_logs_client_ip", "security_audit_logs", ["client_ip"]
    )
    op.create_index(
        "ix_security_audit_logs_event_type", "security_audit_logs", ["event_type"]
    )


def downgrade() -> None:
    op.drop_index("ix_security_audit_logs_event_type", table_name="security_audit_logs")
    op.drop_index("ix_security_audit_logs_client_ip", table_name="security_audit_logs")
    op.drop_index("ix_security_audit_logs_created_at", table_name="security_audit_logs")
    op.drop_table("security_audit_logs")
