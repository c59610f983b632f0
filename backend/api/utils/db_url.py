"""
Database URL helpers.

Normalizes the configured PostgreSQL URL for the async engine (asyncpg) and
for synchronous tooling such as Alembic (psycopg2):
- postgres:// -> postgresql+asyncpg://  (old Heroku/Railway format)
- postgresql:// -> postgresql+asyncpg://
URLs for other dialects (e.g. sqlite+aiosqlite in tests) pass through unchanged.
"""


def get_async_database_url(url: str) -> str:
    """Convert database URL to async format for asyncpg."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def get_sync_database_url(url: str) -> str:
    """Convert database URL to the standard postgresql:// format."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    elif url.startswith("postgresql+asyncpg://"):
        url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
    return url
