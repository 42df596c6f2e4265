"""
Database Configuration
======================

PostgreSQL connection configuration for the words table.
Built from the POSTGRES_* settings, or from DATABASE_URL when it is set.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""
    host: str
    port: int
    user: str
    password: str
    database: str
    dsn: Optional[str] = None
    min_size: int = 1
    max_size: int = 5
    command_timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings, min_size: int = 1, max_size: int = 5) -> 'PostgresConfig':
        """Create config from an application Settings instance."""
        return cls(
            host=settings.postgres_host,
            port=settings.postgres_port,
            user=settings.postgres_user,
            password=settings.postgres_password,
            database=settings.postgres_db,
            dsn=settings.database_url or None,
            min_size=min_size,
            max_size=max_size,
            command_timeout=settings.db_command_timeout,
        )

    def to_asyncpg_kwargs(self) -> dict:
        """Convert to asyncpg.create_pool kwargs."""
        pool_kwargs = {
            'min_size': self.min_size,
            'max_size': self.max_size,
            'command_timeout': self.command_timeout,
        }
        # Explicit connection kwargs would override the parts of a DSN
        if self.dsn:
            return {'dsn': self.dsn, **pool_kwargs}
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            **pool_kwargs,
        }
