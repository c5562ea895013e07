"""
Persistence layer for the tool catalog and the action audit log.

Structure:
- entities/: SQLModel table entities
- repositories/: data access returning domain models
- utils.py: engine, session factory and schema helpers
"""

from .base import Base
from .repositories import RepoBundle, build_repos
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Base",
    "RepoBundle",
    "build_repos",
    "create_all",
    "create_engine",
    "create_sessionmaker",
]
