"""create posts, modules, revisions and activity log tables

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-18 12:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="editor"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "posts",
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("locale", sa.String(length=10), nullable=False, server_default="en"),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("meta_title", sa.String(length=500), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("canonical_url", sa.String(length=2048), nullable=True),
        sa.Column("robots_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("jsonld_overrides", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("parent_id", sa.String(length=32), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("featured_image_id", sa.String(length=64), nullable=True),
        sa.Column("review_draft", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ai_review_draft", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ab_group_id", sa.String(length=32), nullable=True),
        sa.Column("ab_variation", sa.String(length=10), nullable=True),
        sa.Column("author_id", sa.String(length=32), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["posts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_posts_locale_slug", "posts", ["locale", "slug"], unique=False)
    op.create_index("ix_posts_type_status", "posts", ["type", "status"], unique=False)
    op.create_index("ix_posts_ab_group_id", "posts", ["ab_group_id"], unique=False)

    op.create_table(
        "post_custom_field_values",
        sa.Column("post_id", sa.String(length=32), nullable=False),
        sa.Column("field_slug", sa.String(length=100), nullable=False),
        sa.Column("value", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "post_id",
            "field_slug",
            name="uq_post_custom_field_values_post_slug",
        ),
    )
    op.create_index(
        "ix_post_custom_field_values_post_id",
        "post_custom_field_values",
        ["post_id"],
        unique=False,
    )

    op.create_table(
        "post_taxonomy_terms",
        sa.Column("post_id", sa.String(length=32), nullable=False),
        sa.Column("taxonomy_term_id", sa.String(length=64), nullable=False),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "post_id",
            "taxonomy_term_id",
            name="uq_post_taxonomy_terms_post_term",
        ),
    )
    op.create_index(
        "ix_post_taxonomy_terms_post_id",
        "post_taxonomy_terms",
        ["post_id"],
        unique=False,
    )

    op.create_table(
        "module_instances",
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("scope", sa.String(length=10), nullable=False, server_default="local"),
        sa.Column("global_slug", sa.String(length=255), nullable=True),
        sa.Column("global_label", sa.String(length=255), nullable=True),
        sa.Column(
            "props",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("review_props", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ai_review_props", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("global_slug"),
    )
    op.create_index("ix_module_instances_type", "module_instances", ["type"], unique=False)

    op.create_table(
        "post_modules",
        sa.Column("post_id", sa.String(length=32), nullable=False),
        sa.Column("module_id", sa.String(length=32), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_label", sa.String(length=255), nullable=True),
        sa.Column("overrides", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("review_overrides", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ai_review_overrides", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("review_added", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("review_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_review_added", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ai_review_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["module_id"], ["module_instances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_modules_post_id", "post_modules", ["post_id"], unique=False)
    op.create_index("ix_post_modules_module_id", "post_modules", ["module_id"], unique=False)
    op.create_index(
        "ix_post_modules_post_order",
        "post_modules",
        ["post_id", "order_index"],
        unique=False,
    )

    op.create_table(
        "post_revisions",
        sa.Column("post_id", sa.String(length=32), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("mode", sa.String(length=20), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("user_id", sa.String(length=32), nullable=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "sequence", name="uq_post_revisions_post_sequence"),
    )
    op.create_index("ix_post_revisions_post_id", "post_revisions", ["post_id"], unique=False)

    op.create_table(
        "activity_log_entries",
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("user_id", sa.String(length=32), nullable=True),
        sa.Column("entity_type", sa.String(length=50), nullable=False, server_default="post"),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("id", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_activity_log_entries_action",
        "activity_log_entries",
        ["action"],
        unique=False,
    )
    op.create_index(
        "ix_activity_log_entries_entity_id",
        "activity_log_entries",
        ["entity_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_activity_log_entries_entity_id", table_name="activity_log_entries")
    op.drop_index("ix_activity_log_entries_action", table_name="activity_log_entries")
    op.drop_table("activity_log_entries")

    op.drop_index("ix_post_revisions_post_id", table_name="post_revisions")
    op.drop_table("post_revisions")

    op.drop_index("ix_post_modules_post_order", table_name="post_modules")
    op.drop_index("ix_post_modules_module_id", table_name="post_modules")
    op.drop_index("ix_post_modules_post_id", table_name="post_modules")
    op.drop_table("post_modules")

    op.drop_index("ix_module_instances_type", table_name="module_instances")
    op.drop_table("module_instances")

    op.drop_index("ix_post_taxonomy_terms_post_id", table_name="post_taxonomy_terms")
    op.drop_table("post_taxonomy_terms")

    op.drop_index(
        "ix_post_custom_field_values_post_id",
        table_name="post_custom_field_values",
    )
    op.drop_table("post_custom_field_values")

    op.drop_index("ix_posts_ab_group_id", table_name="posts")
    op.drop_index("ix_posts_type_status", table_name="posts")
    op.drop_index("ix_posts_locale_slug", table_name="posts")
    op.drop_table("posts")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
