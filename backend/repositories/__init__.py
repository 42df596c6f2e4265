"""
Repository Pattern - Storage abstraction layer

Repositories hide storage details (PostgreSQL) from business logic.
Consumers work with domain models, not storage-specific types.

Storage:
- WordRepository: PostgreSQL (words table)
"""
import asyncpg

from config import get_settings, PostgresConfig
from .word_repository import WordRepository

# Shared database connection pool (initialized on first use)
db_pool = None


async def get_db_pool():
    """Get or create shared database connection pool"""
    global db_pool
    if db_pool is None:
        config = PostgresConfig.from_settings(get_settings())
        db_pool = await asyncpg.create_pool(**config.to_asyncpg_kwargs())
    return db_pool


async def close_db_pool():
    """Close the shared pool (application shutdown)"""
    global db_pool
    if db_pool is not None:
        await db_pool.close()
        db_pool = None


__all__ = [
    'WordRepository',
    'db_pool',
    'get_db_pool',
    'close_db_pool',
]
