"""
Base repository interfaces and utilities.

This module provides the repository contract and query helpers shared by all
repository implementations. Repositories work on SQLModel entities and hand
domain models back to callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

EntityType = TypeVar("EntityType", bound=SQLModel)
DomainType = TypeVar("DomainType")


class AsyncBaseRepository(ABC, Generic[EntityType, DomainType]):
    """Base async repository interface using SQLModel.

    Catalog and audit data is never hard-deleted, so the contract has no
    delete operation.
    """

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        """Initialize repository with async database session and SQLModel entity class.

        Args:
            session: Async SQLModel Session for database operations
            model: SQLModel entity class for this repository
        """
        self.session = session
        self.model = model

    @abstractmethod
    async def create(self, item: DomainType) -> DomainType:
        """Persist a new record.

        Args:
            item: Domain model to persist

        Returns:
            The persisted domain model
        """

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[DomainType]:
        """Get a record by its primary identifier.

        Args:
            entity_id: Primary key value

        Returns:
            Domain model or None if not found
        """

    @abstractmethod
    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[DomainType]:
        """List records with optional pagination and filtering.

        Args:
            limit: Maximum number of records to return
            offset: Number of records to skip
            filters: Dictionary of field filters

        Returns:
            List of domain models
        """

    async def _get_entity(self, entity_id: str) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """Apply equality filters to a SQLModel select statement.

        Args:
            stmt: SQLModel select statement
            model: SQLModel entity class
            filters: Dictionary of field filters; ``None`` values are ignored

        Returns:
            Modified select statement with filters applied
        """
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == getattr(value, "value", value))
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        """Apply pagination to a SQLModel select statement.

        Args:
            stmt: SQLModel select statement
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            Modified select statement with pagination applied
        """
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt
