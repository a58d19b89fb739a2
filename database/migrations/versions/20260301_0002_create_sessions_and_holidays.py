"""create classes, class sessions, makeups, trials, holidays

Revision ID: 20260301_0002
Revises: 20260301_0001
Create Date: 2026-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    class_status = sa.Enum("draft", "published", "started", "completed", "cancelled", name="class_status")
    schedule_status = sa.Enum("scheduled", "completed", "cancelled", "rescheduled", name="schedule_status")
    makeup_status = sa.Enum("pending", "scheduled", "completed", "cancelled", name="makeup_status")
    trial_status = sa.Enum("scheduled", "attended", "absent", "cancelled", name="trial_status")
    holiday_type = sa.Enum("national", "branch", name="holiday_type")

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("status", class_status, nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_classes_code", "classes", ["code"], unique=True)
    op.create_index("ix_classes_teacher_id", "classes", ["teacher_id"])
    op.create_index("ix_classes_branch_id", "classes", ["branch_id"])

    op.create_table(
        "class_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("status", schedule_status, nullable=False, server_default="scheduled"),
        sa.Column("original_date", sa.Date(), nullable=True),
        sa.Column("actual_teacher_id", sa.String(length=36), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
    )
    op.create_index("ix_class_schedules_class_id", "class_schedules", ["class_id"])
    op.create_index("ix_class_schedules_session_date", "class_schedules", ["session_date"])

    op.create_table(
        "makeup_classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("original_class_id", sa.String(length=36), nullable=False),
        sa.Column("original_schedule_id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("student_nickname", sa.String(length=100), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", makeup_status, nullable=False, server_default="pending"),
        sa.Column("makeup_date", sa.Date(), nullable=True),
        sa.Column("makeup_start_time", sa.String(length=5), nullable=True),
        sa.Column("makeup_end_time", sa.String(length=5), nullable=True),
        sa.Column("makeup_teacher_id", sa.String(length=36), nullable=True),
        sa.Column("makeup_branch_id", sa.String(length=36), nullable=True),
        sa.Column("makeup_room_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_makeup_classes_original_schedule_id", "makeup_classes", ["original_schedule_id"])
    op.create_index("ix_makeup_classes_makeup_date", "makeup_classes", ["makeup_date"])

    op.create_table(
        "trial_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("branch_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("status", trial_status, nullable=False, server_default="scheduled"),
        sa.Column("attended", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_trial_sessions_scheduled_date", "trial_sessions", ["scheduled_date"])

    op.create_table(
        "holidays",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", holiday_type, nullable=False),
        sa.Column("branches", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_holidays_date", "holidays", ["date"])


def downgrade() -> None:
    op.drop_index("ix_holidays_date", table_name="holidays")
    op.drop_table("holidays")
    op.drop_index("ix_trial_sessions_scheduled_date", table_name="trial_sessions")
    op.drop_table("trial_sessions")
    op.drop_index("ix_makeup_classes_makeup_date", table_name="makeup_classes")
    op.drop_index("ix_makeup_classes_original_schedule_id", table_name="makeup_classes")
    op.drop_table("makeup_classes")
    op.drop_index("ix_class_schedules_session_date", table_name="class_schedules")
    op.drop_index("ix_class_schedules_class_id", table_name="class_schedules")
    op.drop_table("class_schedules")
    op.drop_index("ix_classes_branch_id", table_name="classes")
    op.drop_index("ix_classes_teacher_id", table_name="classes")
    op.drop_index("ix_classes_code", table_name="classes")
    op.drop_table("classes")

    bind = op.get_bind()
    for enum_name in ("holiday_type", "trial_status", "makeup_status", "schedule_status", "class_status"):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
