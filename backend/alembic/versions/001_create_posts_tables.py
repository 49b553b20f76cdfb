"""Create posts and post_images tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Initial schema for the `database` storage backend.
How:   Portable column types only, so the same revision runs on SQLite
       (aiosqlite) and PostgreSQL (asyncpg).

Rollback: downgrade() drops both tables (all posts are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),

        # Trimmed text; empty only when the post has images
        sa.Column(
            "content",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Post text, trimmed; empty only when images are attached",
        ),

        # Refreshed on every edit
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Creation time, overwritten on every edit (UTC)",
        ),

        sa.PrimaryKeyConstraint("id"),
        # AUTOINCREMENT on SQLite keeps ids from being reused after a delete
        sqlite_autoincrement=True,
    )

    op.create_index(
        "idx_posts_created_at",
        "posts",
        [sa.text("created_at DESC")],
    )

    op.create_table(
        "post_images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(512), nullable=False),
        sa.Column("path", sa.String(1024), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_post_images_post_id", "post_images", ["post_id"])


def downgrade() -> None:
    op.drop_index("ix_post_images_post_id", table_name="post_images")
    op.drop_table("post_images")
    op.drop_index("idx_posts_created_at", table_name="posts")
    op.drop_table("posts")
