"""Persistencia de sesiones y PCs"""

from .repository import (
    Repository, InMemoryRepository, JSONFileRepository, create_repository, end_session
)

__all__ = [
    'Repository',
    'InMemoryRepository',
    'JSONFileRepository',
    'create_repository',
    'end_session'
]
