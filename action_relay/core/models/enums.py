"""
Domain enumerations.

String-valued enums so they persist and serialize as their plain values.
"""

from __future__ import annotations

from enum import Enum


class TransportKind(str, Enum):
    """How a capability source is reached."""

    http = "http"
    protocol_process = "protocol-process"
    protocol_network = "protocol-network"

    @property
    def is_protocol(self) -> bool:
        return self is not TransportKind.http


class AuthMode(str, Enum):
    """Authentication scheme applied to outbound HTTP requests."""

    none = "none"
    bearer = "bearer"
    api_key = "api_key"
    basic = "basic"
    header = "header"
    passthrough = "passthrough"


class BodyEncoding(str, Enum):
    json = "json"
    form = "form"


class RiskLevel(str, Enum):
    """Risk classification of a tool."""

    safe = "safe"
    moderate = "moderate"
    dangerous = "dangerous"


class ActionStatus(str, Enum):
    """Lifecycle status of an action record."""

    pending_confirmation = "pending_confirmation"
    confirmed = "confirmed"
    executing = "executing"
    completed = "completed"
    failed = "failed"
    rejected = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ActionStatus.completed, ActionStatus.failed, ActionStatus.rejected)


class SessionState(str, Enum):
    """Protocol session lifecycle."""

    disconnected = "disconnected"
    handshaking = "handshaking"
    ready = "ready"
    closed = "closed"


class PaginationStrategy(str, Enum):
    """Pagination convention recognised in a response body."""

    cursor_flag = "cursor_flag"
    cursor = "cursor"
    offset = "offset"
    link = "link"
    token = "token"
    raw_array = "raw_array"
