"""Initial comment schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "commenter",
        sa.Column("commenter_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("oauth_provider", sa.String(length=32), nullable=False),
        sa.Column("oauth_user_id", sa.String(length=128), nullable=False),
        sa.UniqueConstraint("oauth_provider", "oauth_user_id", name="uq_commenter_oauth"),
    )

    op.create_table(
        "comment",
        sa.Column("comment_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("offset_start", sa.Integer(), nullable=False),
        sa.Column("offset_end", sa.Integer(), nullable=False),
        sa.Column("commenter_id", sa.Integer(), sa.ForeignKey("commenter.commenter_id"), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("commit_hash", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("offset_start >= 0 AND offset_start < offset_end", name="ck_comment_offset"),
    )
    op.create_index("ix_comment_path_id", "comment", ["path", "comment_id"])

    op.create_table(
        "meta",
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "response_cache",
        sa.Column("cache_key", sa.String(length=64), primary_key=True),
        sa.Column("origin", sa.String(length=512), nullable=False),
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("generation", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("content_type", sa.String(length=128), nullable=False, server_default="application/json"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_response_cache_origin", "response_cache", ["origin"])


def downgrade() -> None:
    op.drop_index("ix_response_cache_origin", table_name="response_cache")
    op.drop_table("response_cache")
    op.drop_table("meta")
    op.drop_index("ix_comment_path_id", table_name="comment")
    op.drop_table("comment")
    op.drop_table("commenter")
