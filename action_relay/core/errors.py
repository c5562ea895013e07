"""Error taxonomy.

Every failure raised by the relay derives from :class:`ActionRelayError`. The
HTTP surface maps the subclasses onto status codes; the executor captures
target-side failures into the action record instead of raising them.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class ActionRelayError(Exception):
    pass


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class InvalidDescriptionError(ActionRelayError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid API description: {reason}")


class UnsupportedTransportError(ActionRelayError):
    def __init__(self, transport: str, operation: str) -> None:
        super().__init__(f"Transport '{transport}' does not support {operation}")


class CapabilitySourceNotFoundError(ActionRelayError):
    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        super().__init__(f"Capability source not found: '{source_id}'")


class ToolNotFoundError(ActionRelayError):
    def __init__(self, tool_id: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool not found: '{tool_id}'")


class ToolInactiveError(ActionRelayError):
    def __init__(self, tool_id: str, name: str) -> None:
        self.tool_id = tool_id
        super().__init__(f"Tool '{name}' ({tool_id}) is no longer available in its source description")


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


class MissingRequiredArgumentError(ActionRelayError):
    def __init__(self, tool_name: str, missing: Iterable[str]) -> None:
        self.missing = sorted(missing)
        super().__init__(f"Tool '{tool_name}' is missing required arguments: {', '.join(self.missing)}")


class MissingPassthroughCredentialError(ActionRelayError):
    def __init__(self, source_name: str) -> None:
        super().__init__(
            f"Source '{source_name}' forwards the caller's own credentials, but no passthrough token was supplied"
        )


class MissingCredentialError(ActionRelayError):
    def __init__(self, source_name: str, auth_mode: str, fields: Iterable[str]) -> None:
        self.fields = list(fields)
        super().__init__(
            f"Source '{source_name}' uses {auth_mode} authentication; "
            f"missing credential fields: {', '.join(self.fields)}"
        )


# ---------------------------------------------------------------------------
# Tool-protocol sessions
# ---------------------------------------------------------------------------


class ProtocolError(ActionRelayError):
    pass


class ProtocolConnectionError(ProtocolError):
    def __init__(self, source_id: str, message: str) -> None:
        self.source_id = source_id
        super().__init__(f"Failed to establish protocol session for source '{source_id}': {message}")


class ProtocolTimeoutError(ProtocolError):
    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"Protocol request '{method}' timed out after {timeout:g}s")


class ProtocolSessionClosedError(ProtocolError):
    def __init__(self, source_id: str, reason: str = "session closed") -> None:
        self.source_id = source_id
        super().__init__(f"Protocol session for source '{source_id}' is not usable: {reason}")


class ProtocolRemoteError(ProtocolError):
    def __init__(self, code: Optional[int], message: str, data: Any = None) -> None:
        self.code = code
        self.data = data
        super().__init__(message)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class HttpError(ActionRelayError):
    """Non-success status from a target system. Captured on the record, never propagated."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"HTTP {status}")


# ---------------------------------------------------------------------------
# Confirmation & audit
# ---------------------------------------------------------------------------


class ActionRecordNotFoundError(ActionRelayError):
    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Action record not found: '{record_id}'")


class InvalidTransitionError(ActionRelayError):
    def __init__(self, record_id: str, status: str, event: str) -> None:
        self.record_id = record_id
        self.status = status
        self.event = event
        super().__init__(f"Action '{record_id}' in status '{status}' cannot accept '{event}'")


class ActionStateConflictError(InvalidTransitionError):
    """The record left the expected status between read and conditional write."""

    def __init__(self, record_id: str, status: str, event: str) -> None:
        super().__init__(record_id, status, event)
        self.args = (f"Action '{record_id}' is no longer '{status}'; '{event}' was applied concurrently",)


class ActionNotPermittedError(ActionRelayError):
    def __init__(self, principal_id: str, record_id: str, operation: str) -> None:
        self.principal_id = principal_id
        super().__init__(f"Principal '{principal_id}' may not {operation} action '{record_id}'")
