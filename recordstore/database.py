"""PostgreSQL connection pool and schema migrations."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from recordstore.config import Settings, get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the process-wide connection pool.

    Raises:
        RuntimeError: If init_database() has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database(settings: Optional[Settings] = None) -> asyncpg.Pool:
    """Create the connection pool once per process.

    Pool sizing and the per-command timeout come from settings.
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = settings or get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
            server_settings={"application_name": "recordstore"},
        )
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> int:
    """Apply every ``*.sql`` file in migrations_dir, in file name order.

    Each file runs in its own transaction. Files must be idempotent
    (CREATE ... IF NOT EXISTS) since all of them run on every startup.

    Returns:
        Number of migration files applied
    """
    pool = await get_pool()

    migration_files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.exists() else []
    if not migration_files:
        logger.warning("no_migrations_found", path=str(migrations_dir))
        return 0

    async with pool.acquire() as conn:
        for migration_file in migration_files:
            try:
                async with conn.transaction():
                    await conn.execute(migration_file.read_text())
            except asyncpg.PostgresError as e:
                logger.error("migration_failed", file=migration_file.name, error=str(e))
                raise
            logger.info("migration_applied", file=migration_file.name)

    return len(migration_files)


async def health_check() -> bool:
    """Return True when a pooled connection answers ``SELECT 1``."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
