"""
Confirmation & audit state machine.

A single pure transition function, ``apply_event(record, event)``, computes
the next record and the side effects the caller must perform. Nothing here
touches storage; persistence applies the result with a conditional update
keyed on the status the transition started from.

    pending_confirmation --Confirm--> confirmed --BeginExecution--> executing
    pending_confirmation --Reject---> rejected
    executing --Finish--> completed | failed

Every transition stamps exactly one timestamp: confirmation (``confirmed_at``)
for Confirm and Reject, ``executed_at`` for entering execution,
``completed_at`` for Finish.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from action_relay.core.errors import ActionNotPermittedError, InvalidTransitionError
from action_relay.core.models import ActionRecord, ActionStatus, ExecutionResult, Principal, Tool

ALLOWED_TRANSITIONS = {
    ActionStatus.pending_confirmation: frozenset({ActionStatus.confirmed, ActionStatus.rejected}),
    ActionStatus.confirmed: frozenset({ActionStatus.executing}),
    ActionStatus.executing: frozenset({ActionStatus.completed, ActionStatus.failed}),
    ActionStatus.completed: frozenset(),
    ActionStatus.failed: frozenset(),
    ActionStatus.rejected: frozenset(),
}


class SideEffect(str, Enum):
    """Work the caller must do after persisting a transition."""

    await_confirmation = "await_confirmation"
    begin_execution = "begin_execution"
    execute = "execute"
    report_outcome = "report_outcome"


@dataclass(frozen=True)
class Confirm:
    principal: Principal
    at: datetime


@dataclass(frozen=True)
class Reject:
    principal: Principal
    at: datetime


@dataclass(frozen=True)
class BeginExecution:
    at: datetime


@dataclass(frozen=True)
class Finish:
    result: ExecutionResult
    at: datetime


Event = Union[Confirm, Reject, BeginExecution, Finish]


@dataclass(frozen=True)
class Transition:
    record: ActionRecord
    side_effects: Tuple[SideEffect, ...] = ()


def can_act_on(principal: Principal, record: ActionRecord) -> bool:
    """Only the requesting principal or an administrator may decide on a record."""
    return principal.is_admin or principal.id == record.requested_by


def open_record(
    tool: Tool,
    *,
    url: str,
    arguments: Mapping[str, Any],
    principal: Principal,
    at: datetime,
    conversation_id: Optional[str] = None,
    redo_of: Optional[str] = None,
) -> Transition:
    """Create the record for a new request.

    Tools that require confirmation start in ``pending_confirmation``; all
    others go straight to ``executing``.
    """
    fields: Dict[str, Any] = dict(
        tool_id=tool.id,
        source_id=tool.source_id,
        tool_name=tool.name,
        method=tool.method,
        url=url,
        arguments=dict(arguments),
        requires_confirmation=tool.requires_confirmation,
        requested_by=principal.id,
        conversation_id=conversation_id,
        redo_of=redo_of,
        created_at=at,
    )
    if tool.requires_confirmation:
        record = ActionRecord(status=ActionStatus.pending_confirmation, **fields)
        return Transition(record, (SideEffect.await_confirmation,))
    record = ActionRecord(status=ActionStatus.executing, executed_at=at, **fields)
    return Transition(record, (SideEffect.execute,))


def _event_name(event: Event) -> str:
    return type(event).__name__


def _move(record: ActionRecord, target: ActionStatus, event: Event, **changes: Any) -> ActionRecord:
    if target not in ALLOWED_TRANSITIONS[record.status]:
        raise InvalidTransitionError(record.id, record.status.value, _event_name(event))
    return record.model_copy(update={"status": target, **changes})


def apply_event(record: ActionRecord, event: Event) -> Transition:
    """Compute the record after ``event`` plus the resulting side effects.

    Raises:
        InvalidTransitionError: The event is not allowed from the record's status
        ActionNotPermittedError: The principal may not confirm or reject this record
    """
    if isinstance(event, (Confirm, Reject)):
        operation = "confirm" if isinstance(event, Confirm) else "reject"
        target = ActionStatus.confirmed if isinstance(event, Confirm) else ActionStatus.rejected
        if target not in ALLOWED_TRANSITIONS[record.status]:
            raise InvalidTransitionError(record.id, record.status.value, _event_name(event))
        if not can_act_on(event.principal, record):
            raise ActionNotPermittedError(event.principal.id, record.id, operation)
        updated = _move(record, target, event, confirmed_by=event.principal.id, confirmed_at=event.at)
        effect = SideEffect.begin_execution if target is ActionStatus.confirmed else SideEffect.report_outcome
        return Transition(updated, (effect,))

    if isinstance(event, BeginExecution):
        return Transition(_move(record, ActionStatus.executing, event, executed_at=event.at), (SideEffect.execute,))

    if isinstance(event, Finish):
        result = event.result
        target = ActionStatus.completed if result.error_message is None else ActionStatus.failed
        updated = _move(
            record,
            target,
            event,
            response_status=result.status,
            response_body=result.body,
            duration_ms=result.duration_ms,
            error_message=result.error_message,
            completed_at=event.at,
        )
        return Transition(updated, (SideEffect.report_outcome,))

    raise TypeError(f"Unknown event type: {type(event).__name__}")
