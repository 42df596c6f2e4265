"""
Domain Models - Storage-agnostic data structures

These models represent the core domain entities independent of storage layer.
Services operate on these models, not raw database rows.

Architecture:
- Domain models are pure Python objects (dataclasses)
- Storage details (PostgreSQL) are abstracted via repositories
- Business logic operates on these models, not database rows
"""

from .word import Word, normalize_term

__all__ = [
    'Word',
    'normalize_term',
]
