"""create applications, activities and orphaned resumes

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "applications",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("job_id", sa.String(length=24), nullable=False),
        sa.Column("job_snapshot", sa.JSON(), nullable=False),
        sa.Column("applicant_id", sa.String(length=24), nullable=False),
        sa.Column("applicant_snapshot", sa.JSON(), nullable=False),
        sa.Column("recruiter_id", sa.String(length=24), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("resume_reference", sa.String(length=512), nullable=False),
        sa.Column("resume_original_name", sa.String(length=512), nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_id", "applicant_id", name="uq_applications_job_id_applicant_id"),
    )
    op.create_index(op.f("ix_applications_job_id"), "applications", ["job_id"], unique=False)
    op.create_index(op.f("ix_applications_applicant_id"), "applications", ["applicant_id"], unique=False)
    op.create_index(op.f("ix_applications_recruiter_id"), "applications", ["recruiter_id"], unique=False)
    op.create_index(
        "ix_applications_applicant_id_created_at",
        "applications",
        ["applicant_id", "created_at"],
        unique=False,
    )
    op.create_index("ix_applications_job_id_status", "applications", ["job_id", "status"], unique=False)

    op.create_table(
        "application_activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("application_id", sa.String(length=24), nullable=False),
        sa.Column("actor_id", sa.String(length=24), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("message", sa.String(length=255), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_application_activities_id"), "application_activities", ["id"], unique=False)
    op.create_index(
        op.f("ix_application_activities_application_id"),
        "application_activities",
        ["application_id"],
        unique=False,
    )
    op.create_index(op.f("ix_application_activities_actor_id"), "application_activities", ["actor_id"], unique=False)
    op.create_index(op.f("ix_application_activities_type"), "application_activities", ["type"], unique=False)

    op.create_table(
        "orphaned_resumes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("resume_reference", sa.String(length=512), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("attempts", sa.Integer(), server_default="1", nullable=False),
        sa.Column("last_error", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orphaned_resumes_id"), "orphaned_resumes", ["id"], unique=False)
    op.create_index(
        op.f("ix_orphaned_resumes_resume_reference"),
        "orphaned_resumes",
        ["resume_reference"],
        unique=False,
    )
    op.create_index(op.f("ix_orphaned_resumes_resolved_at"), "orphaned_resumes", ["resolved_at"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_orphaned_resumes_resolved_at"), table_name="orphaned_resumes")
    op.drop_index(op.f("ix_orphaned_resumes_resume_reference"), table_name="orphaned_resumes")
    op.drop_index(op.f("ix_orphaned_resumes_id"), table_name="orphaned_resumes")
    op.drop_table("orphaned_resumes")

    op.drop_index(op.f("ix_application_activities_type"), table_name="application_activities")
    op.drop_index(op.f("ix_application_activities_actor_id"), table_name="application_activities")
    op.drop_index(op.f("ix_application_activities_application_id"), table_name="application_activities")
    op.drop_index(op.f("ix_application_activities_id"), table_name="application_activities")
    op.drop_table("application_activities")

    op.drop_index("ix_applications_job_id_status", table_name="applications")
    op.drop_index("ix_applications_applicant_id_created_at", table_name="applications")
    op.drop_index(op.f("ix_applications_recruiter_id"), table_name="applications")
    op.drop_index(op.f("ix_applications_applicant_id"), table_name="applications")
    op.drop_index(op.f("ix_applications_job_id"), table_name="applications")
    op.drop_table("applications")
