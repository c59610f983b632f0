"""
Database initialization module.

This module handles all database initialization logic:
- Running Alembic migrations
- Creating any missing tables
- Seeding the module catalogue and the superadmin account
"""

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger("hr-admin.db")


async def init_database():
    """Initialize database: migrations, missing tables, default data."""
    from api.database import AsyncSessionLocal, init_db
    from api.services.auth import create_superadmin_if_not_exists

    logger.info("=== DATABASE INITIALIZATION START ===")

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, run_alembic_migrations_sync)

    # Tables added after the last migration
    await init_db()
    logger.info("Tables verified")

    async with AsyncSessionLocal() as db:
        await create_superadmin_if_not_exists(db)

    logger.info("=== DATABASE INITIALIZATION COMPLETE ===")


def run_alembic_migrations_sync():
    """Run Alembic migrations synchronously on startup."""
    import subprocess

    backend_dir = Path(__file__).parent.parent.parent

    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            cwd=backend_dir,
            capture_output=True,
            text=True,
            timeout=60
        )

        if result.returncode == 0:
            logger.info("Alembic migrations applied successfully")
            if result.stdout:
                for line in result.stdout.strip().split('\n'):
                    if line:
                        logger.info(f"  {line}")
        else:
            logger.warning(f"Alembic: {result.stderr or 'unknown error'}")
    except FileNotFoundError:
        logger.warning("Alembic not found in PATH, skipping migrations")
    except subprocess.TimeoutExpired:
        logger.error("Alembic migration timed out")
