"""PostgreSQL pool lifecycle, schema migrations and health check."""

from pathlib import Path

import asyncpg
import structlog

from streamhub.config import Settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """Open the asyncpg pool described by ``settings``.

    The pool is owned by the app lifespan and handed to PostgresUserStore;
    nothing else keeps a reference to it.
    """
    try:
        pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.postgres_pool_min_size,
            max_size=settings.postgres_pool_max_size,
            command_timeout=settings.postgres_command_timeout,
        )
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.postgres_pool_min_size,
        max_size=settings.postgres_pool_max_size,
    )
    return pool


async def close_pool(pool: asyncpg.Pool) -> None:
    await pool.close()
    logger.info("database_pool_closed")


async def run_migrations(pool: asyncpg.Pool, migrations_dir: Path = MIGRATIONS_DIR) -> int:
    """Apply every ``*.sql`` file in ``migrations_dir`` in filename order.

    Each file must be idempotent (``IF NOT EXISTS``) because all of them run
    on every startup. A failing file aborts startup.

    Returns:
        Number of files applied
    """
    if not migrations_dir.is_dir():
        logger.warning("migrations_directory_not_found", path=str(migrations_dir))
        return 0

    scripts = sorted(migrations_dir.glob("*.sql"))

    async with pool.acquire() as conn:
        for script in scripts:
            try:
                await conn.execute(script.read_text(encoding="utf-8"))
            except Exception as e:
                logger.error("migration_failed", file=script.name, error=str(e))
                raise
            logger.info("migration_applied", file=script.name)

    return len(scripts)


async def health_check(pool: asyncpg.Pool) -> bool:
    """Return True when the pool can run ``SELECT 1``; never raises."""
    try:
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
