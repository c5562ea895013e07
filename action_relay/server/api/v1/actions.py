"""
Actions API Endpoints.

Submit tool actions on behalf of a principal, decide on actions that wait for
confirmation, repeat recorded actions and browse the audit trail.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from action_relay.audit import can_act_on
from action_relay.core.errors import ActionNotPermittedError
from action_relay.core.models import ActionOutcome, ActionRecord, ActionRequest, ActionStatus
from action_relay.server.deps import PassthroughTokenDep, PrincipalDep, ServicesDep
from action_relay.server.schemas import ExecuteActionRequest, RedoActionRequest

router = APIRouter()


@router.post(
    "",
    response_model=ActionOutcome,
    summary="Execute Action",
    description="Record a tool action and run it unless it needs confirmation first.",
    response_description="The action outcome.",
    responses={
        400: {"description": "Required arguments are missing"},
        401: {"description": "Credentials for the source are missing"},
        404: {"description": "Tool not found"},
        410: {"description": "Tool is no longer active"},
    },
)
async def execute_action(
    body: ExecuteActionRequest,
    services: ServicesDep,
    principal: PrincipalDep,
    passthrough_token: PassthroughTokenDep = None,
):
    """
    Execute an action.

    Dangerous tools come back with ``requiresConfirmation`` set and a pending
    record, unless ``confirmed`` was sent along.
    """
    request = ActionRequest(
        tool_id=body.tool_id,
        arguments=body.arguments,
        principal=principal,
        conversation_id=body.conversation_id,
    )
    return await services.actions.submit(request, confirmed=body.confirmed, passthrough_token=passthrough_token)


@router.get(
    "",
    response_model=List[ActionRecord],
    summary="List Actions",
    description="List recorded actions, newest first. Non-admin principals only see their own.",
    response_description="A list of action records.",
)
async def list_actions(
    services: ServicesDep,
    principal: PrincipalDep,
    status: Optional[ActionStatus] = None,
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    requested_by = None if principal.is_admin else principal.id
    return await services.actions.list_records(
        status=status,
        requested_by=requested_by,
        conversation_id=conversation_id,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{record_id}",
    response_model=ActionRecord,
    summary="Get Action",
    description="Retrieve a single action record.",
    responses={403: {"description": "Not the requester"}, 404: {"description": "Action not found"}},
)
async def get_action(record_id: str, services: ServicesDep, principal: PrincipalDep):
    record = await services.actions.get_record(record_id)
    if not can_act_on(principal, record):
        raise ActionNotPermittedError(principal.id, record_id, "read")
    return record


@router.post(
    "/{record_id}/confirm",
    response_model=ActionOutcome,
    summary="Confirm Action",
    description="Confirm a pending action and execute it.",
    response_description="The action outcome.",
    responses={
        403: {"description": "Not the requester"},
        404: {"description": "Action not found"},
        409: {"description": "Action is not pending confirmation"},
    },
)
async def confirm_action(
    record_id: str,
    services: ServicesDep,
    principal: PrincipalDep,
    passthrough_token: PassthroughTokenDep = None,
):
    """
    Confirm a pending action.

    Only one decision is ever recorded; a concurrent confirm or reject loses
    with 409.
    """
    return await services.actions.confirm(record_id, principal, passthrough_token=passthrough_token)


@router.post(
    "/{record_id}/reject",
    response_model=ActionRecord,
    summary="Reject Action",
    description="Reject a pending action. It is never executed.",
    responses={
        403: {"description": "Not the requester"},
        404: {"description": "Action not found"},
        409: {"description": "Action is not pending confirmation"},
    },
)
async def reject_action(record_id: str, services: ServicesDep, principal: PrincipalDep):
    return await services.actions.reject(record_id, principal)


@router.post(
    "/{record_id}/redo",
    response_model=ActionOutcome,
    summary="Redo Action",
    description="Repeat a recorded action as a new record with the same tool and arguments.",
    responses={403: {"description": "Not the requester"}, 404: {"description": "Action not found"}},
)
async def redo_action(
    record_id: str,
    services: ServicesDep,
    principal: PrincipalDep,
    body: Optional[RedoActionRequest] = None,
    passthrough_token: PassthroughTokenDep = None,
):
    confirmed = body.confirmed if body else False
    return await services.actions.redo(
        record_id, principal, confirmed=confirmed, passthrough_token=passthrough_token
    )
