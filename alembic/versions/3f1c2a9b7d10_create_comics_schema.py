"""create admins, kids, comics and submissions

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-03-02 10:14:07.112904

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("avatar", sa.String(512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_admins_id", "admins", ["id"])
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    op.create_table(
        "kids",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("parent_phone", sa.String(50), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("father_name", sa.String(255), nullable=True),
        sa.Column("mother_name", sa.String(255), nullable=True),
        sa.Column("avatar", sa.String(512), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("verification_code", sa.String(6), nullable=True),
        sa.Column("verification_code_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_kids_id", "kids", ["id"])
    op.create_index("ix_kids_email", "kids", ["email"], unique=True)
    op.create_index("ix_kids_parent_phone", "kids", ["parent_phone"], unique=True)
    op.create_index("ix_kids_last_login", "kids", ["last_login"])
    op.create_index("ix_kids_created_at", "kids", ["created_at"])

    op.create_table(
        "comics",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subtitle", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("documents", sa.JSON(), nullable=False),
        sa.Column("submission_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bonus", sa.Integer(), nullable=False),
        sa.Column("total_marks", sa.Integer(), nullable=False),
        sa.Column("max_uploads", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_comics_id", "comics", ["id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("kid_id", sa.Integer(), sa.ForeignKey("kids.id", ondelete="CASCADE"), nullable=False),
        sa.Column("comic_id", sa.Integer(), sa.ForeignKey("comics.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("files", sa.JSON(), nullable=False),
        sa.Column("marks", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("kid_id", "comic_id", name="uq_submission_kid_comic"),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("ix_submissions_kid_id", "submissions", ["kid_id"])
    op.create_index("ix_submissions_comic_id", "submissions", ["comic_id"])
    op.create_index("ix_submissions_status", "submissions", ["status"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("submissions")
    op.drop_table("comics")
    op.drop_table("kids")
    op.drop_table("admins")
