"""
Database initialization and migrations module.
"""

from .init import (
    init_database,
    run_alembic_migrations_sync,
)

__all__ = [
    "init_database",
    "run_alembic_migrations_sync",
]
