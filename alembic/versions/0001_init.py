"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _base_columns(tenant: bool = True):
    columns = [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]
    if tenant:
        columns.append(sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False))
    return columns


def _tenant_index(table: str):
    op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"])
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])


def upgrade():
    op.create_table(
        "tenants",
        *_base_columns(tenant=False),
        sa.Column("slug", sa.String(length=80), nullable=False, unique=True),
        sa.Column("name", sa.String(length=200), nullable=False),
    )

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    _tenant_index("users")
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "levels",
        *_base_columns(),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    _tenant_index("levels")

    op.create_table(
        "programs",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("level_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("levels.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    _tenant_index("programs")
    op.create_index("ix_programs_name", "programs", ["name"])

    op.create_table(
        "centers",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    _tenant_index("centers")

    op.create_table(
        "groups",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("program_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("programs.id"), nullable=False),
    )
    _tenant_index("groups")

    op.create_table(
        "parents",
        *_base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
    )
    _tenant_index("parents")
    op.create_index("ix_parents_email", "parents", ["email"])

    op.create_table(
        "students",
        *_base_columns(),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("preferred_name", sa.String(length=120), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="ACTIVE"),
        sa.Column("level_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("levels.id"), nullable=True),
        sa.Column("date_of_birth", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    _tenant_index("students")
    op.create_index("ix_students_status", "students", ["status"])

    op.create_table(
        "student_parents",
        *_base_columns(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("parents.id"), nullable=False),
        sa.UniqueConstraint("student_id", "parent_id", name="uq_student_parents_pair"),
    )
    _tenant_index("student_parents")
    op.create_index("ix_student_parents_student_id", "student_parents", ["student_id"])
    op.create_index("ix_student_parents_parent_id", "student_parents", ["parent_id"])

    op.create_table(
        "sessions",
        *_base_columns(),
        sa.Column("center_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("tutor_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("group_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("groups.id"), nullable=True),
        sa.Column("session_type", sa.String(length=20), nullable=False, server_default="ONE_ON_ONE"),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
    )
    _tenant_index("sessions")
    op.create_index("ix_sessions_tutor_id", "sessions", ["tutor_id"])
    op.create_index("ix_sessions_start_at", "sessions", ["start_at"])

    op.create_table(
        "session_students",
        *_base_columns(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("students.id"), nullable=False),
        sa.UniqueConstraint("session_id", "student_id", name="uq_session_students_pair"),
    )
    _tenant_index("session_students")
    op.create_index("ix_session_students_session_id", "session_students", ["session_id"])
    op.create_index("ix_session_students_student_id", "session_students", ["student_id"])

    op.create_table(
        "attendance",
        *_base_columns(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("marked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
    )
    _tenant_index("attendance")
    op.create_index("ix_attendance_session_id", "attendance", ["session_id"])
    op.create_index("ix_attendance_student_id", "attendance", ["student_id"])

    op.create_table(
        "parent_requests",
        *_base_columns(),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="ABSENCE"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("parents.id"), nullable=False),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("sessions.id"), nullable=False),
        sa.Column("reason_code", sa.String(length=40), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
    )
    _tenant_index("parent_requests")
    op.create_index("ix_parent_requests_status", "parent_requests", ["status"])

    op.create_table(
        "announcements",
        *_base_columns(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
    )
    _tenant_index("announcements")
    op.create_index("ix_announcements_status", "announcements", ["status"])
    op.create_index("ix_announcements_published_at", "announcements", ["published_at"])

    op.create_table(
        "audit_log",
        *_base_columns(),
        sa.Column("actor_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("actor_display", sa.String(length=200), nullable=True),
        sa.Column("entity", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("diff", sa.JSON(), nullable=False),
    )
    _tenant_index("audit_log")


def downgrade():
    for table in (
        "audit_log",
        "announcements",
        "parent_requests",
        "attendance",
        "session_students",
        "sessions",
        "student_parents",
        "students",
        "parents",
        "groups",
        "centers",
        "programs",
        "levels",
        "users",
        "tenants",
    ):
        op.drop_table(table)
