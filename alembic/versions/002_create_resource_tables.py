"""Create folder, image, pdf and note tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _owned_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("favorite", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _blob_columns() -> list[sa.Column]:
    return [
        sa.Column("size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("content_type", sa.String(length=128), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("storage_key", sa.String(length=1024), nullable=True),
    ]


def _owned_constraints() -> list[sa.schema.SchemaItem]:
    return [
        sa.ForeignKeyConstraint(["user_id"], ["user.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["folder.id"]),
        sa.PrimaryKeyConstraint("id"),
    ]


def _create_indexes(table: str, blob: bool) -> None:
    op.create_index(op.f(f"ix_{table}_user_id"), table, ["user_id"], unique=False)
    op.create_index(op.f(f"ix_{table}_parent_id"), table, ["parent_id"], unique=False)
    op.create_index(op.f(f"ix_{table}_created_at"), table, ["created_at"], unique=False)
    if blob:
        op.create_index(op.f(f"ix_{table}_file_path"), table, ["file_path"], unique=False)


def upgrade() -> None:
    op.create_table(
        "folder",
        *_owned_columns(),
        sa.Column("name", sa.String(length=512), nullable=False),
        *_owned_constraints(),
    )
    _create_indexes("folder", blob=False)

    for table in ("image", "pdf"):
        op.create_table(
            table,
            *_owned_columns(),
            *_blob_columns(),
            sa.Column("name", sa.String(length=512), nullable=False),
            *_owned_constraints(),
        )
        _create_indexes(table, blob=True)

    op.create_table(
        "note",
        *_owned_columns(),
        *_blob_columns(),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(length=512), nullable=True),
        *_owned_constraints(),
    )
    _create_indexes("note", blob=True)


def downgrade() -> None:
    for table in ("note", "pdf", "image", "folder"):
        op.drop_table(table)
