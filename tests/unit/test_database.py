"""Unit tests for pool access, migrations and the health check."""

from pathlib import Path

import pytest

from recordstore import database

REPO_MIGRATIONS = Path(__file__).parents[2] / "migrations"


class TestGetPool:
    @pytest.mark.asyncio
    async def test_raises_before_init(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            await database.get_pool()

    @pytest.mark.asyncio
    async def test_returns_installed_pool(self, db_pool):
        pool, _ = db_pool
        assert await database.get_pool() is pool


class TestRunMigrations:
    @pytest.mark.asyncio
    async def test_applies_files_in_name_order(self, db_pool, tmp_path):
        _, conn = db_pool
        (tmp_path / "002_second.sql").write_text("SELECT 2;")
        (tmp_path / "001_first.sql").write_text("SELECT 1;")

        applied = await database.run_migrations(tmp_path)

        assert applied == 2
        executed = [call[0][0] for call in conn.execute.call_args_list]
        assert executed == ["SELECT 1;", "SELECT 2;"]

    @pytest.mark.asyncio
    async def test_missing_directory_applies_nothing(self, db_pool, tmp_path):
        _, conn = db_pool

        assert await database.run_migrations(tmp_path / "absent") == 0
        conn.execute.assert_not_awaited()

    def test_users_schema_enforces_uniqueness_and_reset_pair(self):
        sql = (REPO_MIGRATIONS / "001_create_users.sql").read_text()
        assert "users_email_key ON users (LOWER(email))" in sql
        assert "users_username_key ON users (LOWER(username))" in sql
        assert "users_reset_token_key" in sql
        assert "(reset_token IS NULL) = (reset_token_expires_at IS NULL)" in sql


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self, db_pool):
        _, conn = db_pool
        conn.fetchval.return_value = 1

        assert await database.health_check() is True

    @pytest.mark.asyncio
    async def test_unhealthy_without_pool(self):
        assert await database.health_check() is False
