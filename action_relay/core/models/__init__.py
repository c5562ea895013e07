"""Domain models and enums."""

from .base import BaseSchema
from .domain import (
    ActionOutcome,
    ActionRecord,
    ActionRequest,
    BuiltRequest,
    CapabilitySource,
    CompiledDescription,
    ExecutionResult,
    PaginationState,
    Principal,
    SessionStatus,
    SourceMetadata,
    SyncReport,
    Tool,
    ToolDefinition,
)
from .enums import (
    ActionStatus,
    AuthMode,
    BodyEncoding,
    PaginationStrategy,
    RiskLevel,
    SessionState,
    TransportKind,
)

__all__ = [
    "ActionOutcome",
    "ActionRecord",
    "ActionRequest",
    "ActionStatus",
    "AuthMode",
    "BaseSchema",
    "BodyEncoding",
    "BuiltRequest",
    "CapabilitySource",
    "CompiledDescription",
    "ExecutionResult",
    "PaginationState",
    "PaginationStrategy",
    "Principal",
    "RiskLevel",
    "SessionState",
    "SessionStatus",
    "SourceMetadata",
    "SyncReport",
    "Tool",
    "ToolDefinition",
    "TransportKind",
]
