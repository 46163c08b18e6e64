"""baseline_course_generation_schema

Revision ID: 5e1c2a7b9d40
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5e1c2a7b9d40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "users",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("name", sa.String(length=255), nullable=True),
    sa.Column("email", sa.String(length=255), nullable=False),
    sa.Column("is_member", sa.Boolean(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("email"),
  )
  op.create_table(
    "study_material",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("course_id", sa.String(length=255), nullable=False),
    sa.Column("course_type", sa.String(length=100), nullable=True),
    sa.Column("topic", sa.String(length=500), nullable=True),
    sa.Column("difficulty_level", sa.String(length=50), nullable=True),
    sa.Column("course_layout", JSONB, nullable=True),
    sa.Column("created_by", sa.String(length=255), nullable=True),
    sa.Column("created_for", sa.String(length=255), nullable=True),
    sa.Column("status", sa.String(length=50), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("course_id"),
  )
  op.create_table(
    "chapter_notes",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("course_id", sa.String(length=255), nullable=False),
    sa.Column("chapter_id", sa.Integer(), nullable=False),
    sa.Column("notes", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("course_id", "chapter_id", name="ux_chapter_notes_course_chapter"),
  )
  op.create_index(op.f("ix_chapter_notes_course_id"), "chapter_notes", ["course_id"], unique=False)
  op.create_table(
    "practice_tests",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("user_id", sa.Integer(), nullable=True),
    sa.Column("course_id", sa.String(length=255), nullable=True),
    sa.Column("chapter_id", sa.Integer(), nullable=True),
    sa.Column("test_type", sa.String(length=20), nullable=False),
    sa.Column("questions", JSONB, nullable=True),
    sa.Column("mcq_count", sa.Integer(), nullable=False),
    sa.Column("true_false_count", sa.Integer(), nullable=False),
    sa.Column("descriptive_count", sa.Integer(), nullable=False),
    sa.Column("status", sa.String(length=20), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("course_id", "chapter_id", "user_id", "test_type", name="ux_practice_tests_chapter_user_type"),
  )
  op.create_index(op.f("ix_practice_tests_user_id"), "practice_tests", ["user_id"], unique=False)
  op.create_index(op.f("ix_practice_tests_course_id"), "practice_tests", ["course_id"], unique=False)
  op.create_index(op.f("ix_practice_tests_status"), "practice_tests", ["status"], unique=False)
  op.create_table(
    "study_type_content",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("course_id", sa.String(length=255), nullable=False),
    sa.Column("type", sa.String(length=50), nullable=False),
    sa.Column("content", JSONB, nullable=True),
    sa.Column("status", sa.String(length=50), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_study_type_content_course_id"), "study_type_content", ["course_id"], unique=False)
  op.create_table(
    "workflow_runs",
    sa.Column("run_id", sa.String(), nullable=False),
    sa.Column("workflow", sa.String(), nullable=False),
    sa.Column("event_name", sa.String(), nullable=False),
    sa.Column("payload_json", JSONB, nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("result_json", JSONB, nullable=True),
    sa.Column("error_json", JSONB, nullable=True),
    sa.Column("logs_json", JSONB, nullable=True),
    sa.Column("attempt_count", sa.Integer(), nullable=False),
    sa.Column("created_at", sa.String(), nullable=False),
    sa.Column("updated_at", sa.String(), nullable=False),
    sa.Column("completed_at", sa.String(), nullable=True),
    sa.PrimaryKeyConstraint("run_id"),
  )
  op.create_index(op.f("ix_workflow_runs_workflow"), "workflow_runs", ["workflow"], unique=False)
  op.create_index(op.f("ix_workflow_runs_status"), "workflow_runs", ["status"], unique=False)
  op.create_index(op.f("ix_workflow_runs_completed_at"), "workflow_runs", ["completed_at"], unique=False)
  op.create_table(
    "step_checkpoints",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("run_id", sa.String(), nullable=False),
    sa.Column("step_name", sa.String(), nullable=False),
    sa.Column("state", sa.String(), nullable=False),
    sa.Column("result_json", JSONB, nullable=True),
    sa.Column("attempt_count", sa.Integer(), nullable=False),
    sa.Column("last_error", sa.Text(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["run_id"], ["workflow_runs.run_id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("run_id", "step_name", name="ux_step_checkpoints_run_step"),
  )
  op.create_index(op.f("ix_step_checkpoints_run_id"), "step_checkpoints", ["run_id"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index(op.f("ix_step_checkpoints_run_id"), table_name="step_checkpoints")
  op.drop_table("step_checkpoints")
  op.drop_index(op.f("ix_workflow_runs_completed_at"), table_name="workflow_runs")
  op.drop_index(op.f("ix_workflow_runs_status"), table_name="workflow_runs")
  op.drop_index(op.f("ix_workflow_runs_workflow"), table_name="workflow_runs")
  op.drop_table("workflow_runs")
  op.drop_index(op.f("ix_study_type_content_course_id"), table_name="study_type_content")
  op.drop_table("study_type_content")
  op.drop_index(op.f("ix_practice_tests_status"), table_name="practice_tests")
  op.drop_index(op.f("ix_practice_tests_course_id"), table_name="practice_tests")
  op.drop_index(op.f("ix_practice_tests_user_id"), table_name="practice_tests")
  op.drop_table("practice_tests")
  op.drop_index(op.f("ix_chapter_notes_course_id"), table_name="chapter_notes")
  op.drop_table("chapter_notes")
  op.drop_table("study_material")
  op.drop_table("users")
