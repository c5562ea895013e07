"""Confirmation gating and the action audit trail."""

from .credentials import CredentialProvider, SourceCredentialProvider, StaticCredentialProvider
from .service import ActionService
from .state_machine import (
    ALLOWED_TRANSITIONS,
    BeginExecution,
    Confirm,
    Finish,
    Reject,
    SideEffect,
    Transition,
    apply_event,
    can_act_on,
    open_record,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ActionService",
    "BeginExecution",
    "Confirm",
    "CredentialProvider",
    "Finish",
    "Reject",
    "SideEffect",
    "SourceCredentialProvider",
    "StaticCredentialProvider",
    "Transition",
    "apply_event",
    "can_act_on",
    "open_record",
]
