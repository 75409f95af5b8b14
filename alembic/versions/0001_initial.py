"""initial evaluation schema

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=120)),
        sa.Column("last_name", sa.String(length=120)),
        sa.Column("username", sa.String(length=120)),
        sa.Column("role", sa.String(length=50)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_table(
        "learning_paths",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("course_ids", sa.JSON()),
        *_timestamps(),
    )
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("course_id", sa.Integer(), index=True),
        sa.Column("max_score", sa.Float()),
        sa.Column("total_questions", sa.Integer()),
        *_timestamps(),
    )
    op.create_table(
        "quiz_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("score", sa.Float()),
        sa.Column("submitted_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_table(
        "activity_submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("activity_id", sa.Integer(), index=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("course_id", sa.Integer(), index=True),
        sa.Column("title", sa.String(length=255)),
        sa.Column("score", sa.Float()),
        sa.Column("status", sa.String(length=30)),
        sa.Column("reviewed_at", sa.DateTime()),
        *_timestamps(),
    )
    op.create_table(
        "evaluations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("learning_path_id", sa.Integer(), sa.ForeignKey("learning_paths.id")),
        sa.Column("evaluator_id", sa.Integer(), sa.ForeignKey("users.id")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("trainee_info", sa.JSON()),
        sa.Column("period_start", sa.Date()),
        sa.Column("period_end", sa.Date()),
        *_timestamps(),
    )
    op.create_table(
        "evaluation_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("evaluation_id", sa.Integer(), sa.ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("sheet", sa.String(length=64), nullable=False),
        sa.Column("category", sa.String(length=64)),
        sa.Column("criterion_key", sa.String(length=255), nullable=False),
        sa.Column("criterion_label", sa.String(length=255)),
        sa.Column("score", sa.Float()),
        sa.Column("max_score", sa.Float()),
        sa.Column("weight", sa.Float()),
        sa.Column("remarks", sa.Text()),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="manual"),
        sa.Column("source_ref_id", sa.String(length=64)),
        sa.Column("status", sa.String(length=20)),
        *_timestamps(),
        sa.UniqueConstraint("evaluation_id", "sheet", "criterion_key", name="uq_evaluation_scores_key"),
    )


def downgrade():
    for name in ("evaluation_scores", "evaluations", "activity_submissions", "quiz_scores", "quizzes", "learning_paths", "users"):
        op.drop_table(name)
