"""
Database entities.

Importing this package registers every table on ``Base.metadata``.
"""

from .action_records import ActionRecordEntity
from .capability_sources import CapabilitySourceEntity
from .tools import ToolEntity

__all__ = [
    "ActionRecordEntity",
    "CapabilitySourceEntity",
    "ToolEntity",
]
