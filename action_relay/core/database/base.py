"""
SQLModel declarative root for the relay's persisted tables.

Capability sources, compiled tools and action records all inherit from
:class:`Base` so a single ``SQLModel.metadata`` drives ``create_all``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Root of every ``ar_*`` table model."""

    # JSON columns carry dict/list payloads straight from the catalog
    model_config = ConfigDict(arbitrary_types_allowed=True)


def _utc_now() -> datetime:
    """Timezone-aware timestamp used for created/updated columns."""
    return datetime.now(timezone.utc)
