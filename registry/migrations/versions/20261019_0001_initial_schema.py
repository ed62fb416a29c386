"""Initial registry schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("login", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("api_token", sa.String(length=128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_users_login", "users", ["login"], unique=True)
    op.create_index("ix_users_api_token", "users", ["api_token"], unique=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("login", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_teams_login", "teams", ["login"], unique=True)

    op.create_table(
        "team_memberships",
        sa.Column("team_login", sa.String(length=255), primary_key=True),
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "crates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("canonical_name", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("homepage", sa.Text(), nullable=True),
        sa.Column("documentation", sa.Text(), nullable=True),
        sa.Column("readme", sa.Text(), nullable=True),
        sa.Column("license", sa.String(length=255), nullable=True),
        sa.Column("repository", sa.Text(), nullable=True),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_upload_size", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_crates_canonical_name", "crates", ["canonical_name"], unique=True)

    op.create_table(
        "reserved_crate_names",
        sa.Column("name", sa.String(length=64), primary_key=True),
    )

    op.create_table(
        "versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("crate_id", sa.Integer(), nullable=False),
        sa.Column("num", sa.String(length=64), nullable=False),
        sa.Column("yanked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("authors", sa.JSON(), nullable=False),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("crate_id", "num", name="uq_versions_crate_num"),
    )
    op.create_index("ix_versions_crate_id", "versions", ["crate_id"])

    op.create_table(
        "dependencies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("crate_id", sa.Integer(), nullable=False),
        sa.Column("req", sa.String(length=255), nullable=False),
        sa.Column("optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("default_features", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("target", sa.String(length=255), nullable=True),
        sa.Column("kind", sa.String(length=16), nullable=False, server_default="normal"),
        sa.ForeignKeyConstraint(["version_id"], ["versions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_dependencies_version_id", "dependencies", ["version_id"])
    op.create_index("ix_dependencies_crate_id", "dependencies", ["crate_id"])

    op.create_table(
        "crate_owners",
        sa.Column("crate_id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), primary_key=True),
        sa.Column("owner_kind", sa.String(length=16), primary_key=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "follows",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("crate_id", sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "version_downloads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("downloads", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("counted", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["version_id"], ["versions.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("version_id", "date", name="uq_version_downloads_version_date"),
    )
    op.create_index("ix_version_downloads_version_id", "version_downloads", ["version_id"])

    op.create_table(
        "keywords",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("keyword", sa.String(length=64), nullable=False),
        sa.Column("crates_cnt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_keywords_keyword", "keywords", ["keyword"], unique=True)

    op.create_table(
        "crates_keywords",
        sa.Column("crate_id", sa.Integer(), primary_key=True),
        sa.Column("keyword_id", sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["keyword_id"], ["keywords.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("crates_cnt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "crates_categories",
        sa.Column("crate_id", sa.Integer(), primary_key=True),
        sa.Column("category_id", sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "badges",
        sa.Column("crate_id", sa.Integer(), primary_key=True),
        sa.Column("badge_type", sa.String(length=64), primary_key=True),
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["crate_id"], ["crates.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    op.drop_table("badges")
    op.drop_table("crates_categories")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")
    op.drop_table("crates_keywords")
    op.drop_index("ix_keywords_keyword", table_name="keywords")
    op.drop_table("keywords")
    op.drop_index("ix_version_downloads_version_id", table_name="version_downloads")
    op.drop_table("version_downloads")
    op.drop_table("follows")
    op.drop_table("crate_owners")
    op.drop_index("ix_dependencies_crate_id", table_name="dependencies")
    op.drop_index("ix_dependencies_version_id", table_name="dependencies")
    op.drop_table("dependencies")
    op.drop_index("ix_versions_crate_id", table_name="versions")
    op.drop_table("versions")
    op.drop_table("reserved_crate_names")
    op.drop_index("ix_crates_canonical_name", table_name="crates")
    op.drop_table("crates")
    op.drop_table("team_memberships")
    op.drop_index("ix_teams_login", table_name="teams")
    op.drop_table("teams")
    op.drop_index("ix_users_api_token", table_name="users")
    op.drop_index("ix_users_login", table_name="users")
    op.drop_table("users")
