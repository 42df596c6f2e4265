"""
Configuration module for settings and database connections.
"""
from .settings import Settings, get_settings
from .database import PostgresConfig

__all__ = [
    'Settings',
    'get_settings',
    'PostgresConfig',
]
