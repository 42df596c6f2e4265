"""
Models - domain dataclasses and API (pydantic) schemas

Architecture:
- models.domain: pure Python dataclasses used by services and repositories
- models.api: pydantic models that shape HTTP responses
"""

from .domain import Word

__all__ = [
    'Word',
]
