"""
Repositories for catalog and audit data.

Use :func:`build_repos` to get every repository bound to one session, so a
multi-table change commits as one unit.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from .action_records import ActionRecordRepository
from .base import AsyncBaseRepository, QueryBuilder
from .capability_sources import CapabilitySourceRepository
from .tools import ToolRepository


@dataclass(frozen=True)
class RepoBundle:
    """Convenience bundle of all repositories sharing one session."""

    session: AsyncSession
    sources: CapabilitySourceRepository
    tools: ToolRepository
    actions: ActionRecordRepository


def build_repos(session: AsyncSession) -> RepoBundle:
    return RepoBundle(
        session=session,
        sources=CapabilitySourceRepository(session),
        tools=ToolRepository(session),
        actions=ActionRecordRepository(session),
    )


__all__ = [
    "ActionRecordRepository",
    "AsyncBaseRepository",
    "CapabilitySourceRepository",
    "QueryBuilder",
    "RepoBundle",
    "ToolRepository",
    "build_repos",
]
