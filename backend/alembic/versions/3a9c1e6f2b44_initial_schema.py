"""initial schema: tests, questions, submissions, revoked admin tokens

Revision ID: 3a9c1e6f2b44
Revises:
Create Date: 2026-10-12 09:14:02.511870

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3a9c1e6f2b44"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUESTION_TYPES = ("multiple-choice", "rating-scale", "open-ended")
ANALYSIS_STATUSES = (
    "pending_ai",
    "ai_completed",
    "ai_failed_pending_manual",
    "manual_review_completed",
)


def upgrade() -> None:
    """Create the catalog, submission, and admin token tables."""
    op.create_table(
        "tests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tests_is_published", "tests", ["is_published"])

    op.create_table(
        "questions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column(
            "question_type",
            sa.Enum(*QUESTION_TYPES, name="questiontype"),
            nullable=False,
        ),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("scale_min", sa.Integer(), nullable=True),
        sa.Column("scale_max", sa.Integer(), nullable=True),
        sa.Column("min_label", sa.String(length=200), nullable=True),
        sa.Column("max_label", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_test_id", "questions", ["test_id"])
    # Ordered reads of a test's questions
    op.create_index(
        "ix_questions_test_position", "questions", ["test_id", "position"]
    )

    # No foreign key to tests: submissions outlive deleted tests
    op.create_table(
        "test_submissions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("time_taken", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "analysis_status",
            sa.Enum(*ANALYSIS_STATUSES, name="analysisstatus"),
            nullable=False,
        ),
        sa.Column("analysis_claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("psychological_traits", sa.Text(), nullable=True),
        sa.Column("ai_error", sa.Text(), nullable=True),
        sa.Column("ai_error_category", sa.String(length=32), nullable=True),
        sa.Column("manual_analysis_notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_test_submissions_test_id", "test_submissions", ["test_id"])
    op.create_index(
        "ix_test_submissions_submitted_at", "test_submissions", ["submitted_at"]
    )
    op.create_index(
        "ix_test_submissions_analysis_status", "test_submissions", ["analysis_status"]
    )

    op.create_table(
        "revoked_admin_tokens",
        sa.Column("jti", sa.String(length=36), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("jti"),
    )
    op.create_index(
        "ix_revoked_admin_tokens_expires_at", "revoked_admin_tokens", ["expires_at"]
    )


def downgrade() -> None:
    """Drop all tables and the enum types."""
    op.drop_index("ix_revoked_admin_tokens_expires_at", table_name="revoked_admin_tokens")
    op.drop_table("revoked_admin_tokens")

    op.drop_index("ix_test_submissions_analysis_status", table_name="test_submissions")
    op.drop_index("ix_test_submissions_submitted_at", table_name="test_submissions")
    op.drop_index("ix_test_submissions_test_id", table_name="test_submissions")
    op.drop_table("test_submissions")

    op.drop_index("ix_questions_test_position", table_name="questions")
    op.drop_index("ix_questions_test_id", table_name="questions")
    op.drop_table("questions")

    op.drop_index("ix_tests_is_published", table_name="tests")
    op.drop_table("tests")

    sa.Enum(name="analysisstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="questiontype").drop(op.get_bind(), checkfirst=True)
