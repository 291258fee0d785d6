"""
Tests for the Alembic migrations.
Runs the real migration scripts against a throwaway SQLite file.
"""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from user_service.config import settings

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


@pytest.fixture
def migrated_db(tmp_path, monkeypatch):
    """Upgrade a fresh SQLite file to head and yield a sync engine on it."""
    db_file = tmp_path / "migrated.db"
    monkeypatch.setattr(settings, "DB_URL", f"sqlite+aiosqlite:///{db_file}")

    # No ini file, so alembic leaves the app's logging configuration alone
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    command.upgrade(config, "head")

    engine = create_engine(f"sqlite:///{db_file}")
    yield engine, config
    engine.dispose()


def _insert(conn, name, email):
    conn.execute(text("INSERT INTO users (name, email) VALUES (:name, :email)"), {"name": name, "email": email})
    return conn.execute(text("SELECT id FROM users WHERE email = :email"), {"email": email}).scalar_one()


class TestInitialMigration:
    """Test the users table created by 001_initial."""

    def test_creates_users_table(self, migrated_db):
        engine, _ = migrated_db

        columns = {c["name"] for c in inspect(engine).get_columns("users")}

        assert columns == {"id", "name", "email", "active"}

    def test_email_uniqueness_declared_once(self, migrated_db):
        engine, _ = migrated_db
        inspector = inspect(engine)

        unique_indexes = [i for i in inspector.get_indexes("users") if i["unique"]]

        assert [i["column_names"] for i in unique_indexes] == [["email"]]
        assert inspector.get_unique_constraints("users") == []

    def test_duplicate_email_rejected(self, migrated_db):
        engine, _ = migrated_db

        with engine.begin() as conn:
            _insert(conn, "Alice", "alice@example.com")

        with pytest.raises(IntegrityError):
            with engine.begin() as conn:
                _insert(conn, "Bob", "alice@example.com")

    def test_active_defaults_to_true(self, migrated_db):
        engine, _ = migrated_db

        with engine.begin() as conn:
            user_id = _insert(conn, "Alice", "alice@example.com")
            active = conn.execute(text("SELECT active FROM users WHERE id = :id"), {"id": user_id}).scalar_one()

        assert bool(active) is True

    def test_ids_not_reused_after_delete(self, migrated_db):
        engine, _ = migrated_db

        with engine.begin() as conn:
            _insert(conn, "First", "first@example.com")
            second = _insert(conn, "Second", "second@example.com")
            conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": second})
            third = _insert(conn, "Third", "third@example.com")

        assert third > second

    def test_downgrade_drops_table(self, migrated_db):
        engine, config = migrated_db

        command.downgrade(config, "base")

        assert "users" not in inspect(engine).get_table_names()
