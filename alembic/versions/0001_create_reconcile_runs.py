"""create reconcile_runs table

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "reconcile_runs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("mode", sa.String(length=20), nullable=False),
        sa.Column("reference_snapshot_path", sa.Text(), nullable=True),
        sa.Column("local_snapshot_path", sa.Text(), nullable=True),
        sa.Column("comparison_path", sa.Text(), nullable=True),
        sa.Column("phase", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("cancel_requested", sa.Boolean(), nullable=False),
        sa.Column("healthy", sa.Boolean(), nullable=True),
        sa.Column("total_operations", sa.Integer(), nullable=False),
        sa.Column("succeeded_operations", sa.Integer(), nullable=False),
        sa.Column("failed_operations", sa.Integer(), nullable=False),
        sa.Column("skipped_operations", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("artifacts", sa.JSON(), nullable=False),
    )

def downgrade():
    op.drop_table("reconcile_runs")
