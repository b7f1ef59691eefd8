"""SQLAlchemy adapter package for stockbridge."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import SqlAlchemyProductRepository, SqlAlchemySyncRunRepository

__all__ = [
    "SqlAlchemyProductRepository",
    "SqlAlchemySyncRunRepository",
    "mapper_registry",
    "start_mappers",
]
