"""add_files

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""

from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Metadata for files stored in Telegram. The bytes live in the user's
    # linked chat; telegram_file_id is enough to fetch them back.
    op.execute("""
        CREATE TABLE files (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id TEXT NOT NULL,
            telegram_file_id TEXT NOT NULL,
            original_filename TEXT NOT NULL,
            mime_type TEXT,
            size_bytes BIGINT,
            uploaded_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_files_user_uploaded ON files(user_id, uploaded_at DESC);")

    op.execute("ALTER TABLE files ENABLE ROW LEVEL SECURITY;")
    op.execute("ALTER TABLE files FORCE ROW LEVEL SECURITY;")

    op.execute("""
        CREATE POLICY files_all_own
        ON files
        FOR ALL
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id())
        WITH CHECK (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS files CASCADE;")
