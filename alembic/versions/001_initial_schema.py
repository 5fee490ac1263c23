"""Initial schema: Telegram link table and RLS helper.

Revision ID: 001
Revises:
Create Date: 2026-10-02
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # RLS helper. Empty or unset app.user_id means a system connection.
    op.execute("""
        CREATE OR REPLACE FUNCTION get_app_user_id() RETURNS text AS $$
        BEGIN
            RETURN NULLIF(current_setting('app.user_id', true), '');
        END;
        $$ LANGUAGE plpgsql STABLE;
    """)

    # One row per web user; user_id is the Supabase auth user id
    op.execute("""
        CREATE TABLE user_telegram_settings (
            user_id TEXT PRIMARY KEY,
            telegram_chat_id TEXT NOT NULL,
            telegram_username TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_user_telegram_settings_chat ON user_telegram_settings(telegram_chat_id);")

    op.execute("ALTER TABLE user_telegram_settings ENABLE ROW LEVEL SECURITY;")
    op.execute("ALTER TABLE user_telegram_settings FORCE ROW LEVEL SECURITY;")

    op.execute("""
        CREATE POLICY user_telegram_settings_all_own
        ON user_telegram_settings
        FOR ALL
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id())
        WITH CHECK (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS user_telegram_settings CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS get_app_user_id();")
