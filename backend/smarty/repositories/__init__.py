"""
Storage for notes and categories.
"""
from smarty.repositories.base import Repository
from smarty.repositories.memory import InMemoryRepository
from smarty.repositories.sql import SqlRepository

__all__ = [
    "Repository",
    "InMemoryRepository",
    "SqlRepository",
]
