"""
Action service.

Drives requests through the audit state machine: opens the record, executes
the tool (immediately, or after confirmation for dangerous tools) and
finalizes the record. Every status change is written with a conditional
update, so two concurrent confirmations of one record cannot both succeed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.database.repositories import ActionRecordRepository, RepoBundle, build_repos
from action_relay.core.errors import (
    ActionNotPermittedError,
    ActionRecordNotFoundError,
    ActionRelayError,
    ActionStateConflictError,
    CapabilitySourceNotFoundError,
    ToolInactiveError,
    ToolNotFoundError,
)
from action_relay.core.models import (
    ActionOutcome,
    ActionRecord,
    ActionRequest,
    ActionStatus,
    CapabilitySource,
    ExecutionResult,
    Principal,
    Tool,
)
from action_relay.executor import ActionExecutor, cap_response_body
from action_relay.pagination import infer_pagination

from .credentials import CredentialProvider, SourceCredentialProvider
from .state_machine import BeginExecution, Confirm, Finish, Reject, Transition, apply_event, can_act_on, open_record

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Execution interrupted before completion"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ActionService:
    """Entry point for running, confirming, rejecting and repeating actions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        executor: ActionExecutor,
        *,
        credentials: Optional[CredentialProvider] = None,
        max_response_bytes: int = 10 * 1024,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._executor = executor
        self._credentials = credentials or SourceCredentialProvider()
        self._max_response_bytes = max_response_bytes
        self._clock = clock

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _resolve_tool(self, repos: RepoBundle, tool_id: str) -> Tuple[Tool, CapabilitySource]:
        tool = await repos.tools.get_by_id(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        if not tool.is_active:
            raise ToolInactiveError(tool.id, tool.name)
        source = await repos.sources.get_by_id(tool.source_id)
        if source is None:
            raise CapabilitySourceNotFoundError(tool.source_id)
        return tool, source

    async def get_record(self, record_id: str) -> ActionRecord:
        async with self._session_factory() as session:
            record = await ActionRecordRepository(session).get_by_id(record_id)
        if record is None:
            raise ActionRecordNotFoundError(record_id)
        return record

    async def list_records(
        self,
        *,
        status: Optional[ActionStatus] = None,
        requested_by: Optional[str] = None,
        conversation_id: Optional[str] = None,
        limit: Optional[int] = 50,
        offset: Optional[int] = None,
    ) -> List[ActionRecord]:
        filters = {"status": status, "requested_by": requested_by, "conversation_id": conversation_id}
        async with self._session_factory() as session:
            return await ActionRecordRepository(session).list(limit=limit, offset=offset, filters=filters)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def submit(
        self,
        request: ActionRequest,
        *,
        confirmed: bool = False,
        passthrough_token: Optional[str] = None,
    ) -> ActionOutcome:
        """Record and (unless confirmation is needed) execute a request.

        Args:
            request: Tool, arguments and acting principal
            confirmed: The principal has already confirmed; a dangerous tool is
                recorded as pending and then confirmed in the same call
            passthrough_token: The principal's own token for passthrough sources

        Returns:
            The outcome; ``requires_confirmation`` is set when the record waits for a decision
        """
        return await self._submit(request, confirmed=confirmed, passthrough_token=passthrough_token)

    async def _submit(
        self,
        request: ActionRequest,
        *,
        confirmed: bool,
        passthrough_token: Optional[str],
        redo_of: Optional[str] = None,
    ) -> ActionOutcome:
        async with self._session_factory() as session:
            repos = build_repos(session)
            tool, source = await self._resolve_tool(repos, request.tool_id)
            opened = open_record(
                tool,
                url=self._executor.target_url(tool, source, request.arguments),
                arguments=request.arguments,
                principal=request.principal,
                at=self._clock(),
                conversation_id=request.conversation_id,
                redo_of=redo_of,
            )
            record = await repos.actions.create(opened.record)
        logger.info("Opened action %s for %s (%s)", record.id, tool.operation_key, record.status.value)

        if record.status is ActionStatus.pending_confirmation:
            if confirmed:
                return await self._confirm_and_run(record, tool, source, request.principal, passthrough_token)
            return ActionOutcome(requires_confirmation=True, record=record)
        return await self._run(record, tool, source, request.principal, passthrough_token)

    async def confirm(
        self, record_id: str, principal: Principal, *, passthrough_token: Optional[str] = None
    ) -> ActionOutcome:
        """Confirm a pending record and execute it.

        Raises:
            ActionRecordNotFoundError: Unknown record
            InvalidTransitionError: The record is not pending
            ActionNotPermittedError: The principal is neither the requester nor an administrator
            ActionStateConflictError: Another decision was recorded concurrently
            ToolInactiveError: The tool left the catalog while the record was pending
        """
        record = await self.get_record(record_id)
        async with self._session_factory() as session:
            tool, source = await self._resolve_tool(build_repos(session), record.tool_id)
        return await self._confirm_and_run(record, tool, source, principal, passthrough_token)

    async def reject(self, record_id: str, principal: Principal) -> ActionRecord:
        """Reject a pending record; it is never executed."""
        record = await self.get_record(record_id)
        rejected = apply_event(record, Reject(principal=principal, at=self._clock()))
        await self._persist(record, rejected, "Reject")
        logger.info("Action %s rejected by %s", record.id, principal.id)
        return rejected.record

    async def redo(
        self,
        record_id: str,
        principal: Principal,
        *,
        confirmed: bool = False,
        passthrough_token: Optional[str] = None,
    ) -> ActionOutcome:
        """Repeat a recorded action as a brand-new record.

        Confirmation is re-evaluated against the tool as it is now.
        """
        original = await self.get_record(record_id)
        if not can_act_on(principal, original):
            raise ActionNotPermittedError(principal.id, record_id, "redo")
        request = ActionRequest(
            tool_id=original.tool_id,
            arguments=original.arguments,
            principal=principal,
            conversation_id=original.conversation_id,
        )
        return await self._submit(
            request, confirmed=confirmed, passthrough_token=passthrough_token, redo_of=original.id
        )

    async def fail_interrupted(self, older_than: timedelta) -> int:
        """Finalize records left in ``executing`` by a crashed process.

        Returns:
            How many records were moved to ``failed``
        """
        cutoff = self._clock() - older_than
        async with self._session_factory() as session:
            stale = await ActionRecordRepository(session).list_stale_executing(cutoff)

        failed = 0
        for record in stale:
            result = ExecutionResult(url=record.url, status=0, error_message=INTERRUPTED_MESSAGE)
            transition = apply_event(record, Finish(result=result, at=self._clock()))
            try:
                await self._persist(record, transition, "Finish")
            except ActionStateConflictError:
                logger.info("Action %s finished while being swept", record.id)
                continue
            failed += 1
        if failed:
            logger.warning("Marked %d interrupted actions as failed", failed)
        return failed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _persist(self, before: ActionRecord, transition: Transition, event_name: str) -> None:
        async with self._session_factory() as session:
            moved = await ActionRecordRepository(session).apply_transition(before, transition.record)
        if not moved:
            raise ActionStateConflictError(before.id, before.status.value, event_name)

    async def _confirm_and_run(
        self,
        record: ActionRecord,
        tool: Tool,
        source: CapabilitySource,
        principal: Principal,
        passthrough_token: Optional[str],
    ) -> ActionOutcome:
        confirmed = apply_event(record, Confirm(principal=principal, at=self._clock()))
        await self._persist(record, confirmed, "Confirm")
        logger.info("Action %s confirmed by %s", record.id, principal.id)

        started = apply_event(confirmed.record, BeginExecution(at=self._clock()))
        await self._persist(confirmed.record, started, "BeginExecution")
        return await self._run(started.record, tool, source, principal, passthrough_token)

    async def _run(
        self,
        record: ActionRecord,
        tool: Tool,
        source: CapabilitySource,
        principal: Principal,
        passthrough_token: Optional[str],
    ) -> ActionOutcome:
        try:
            credentials = await self._credentials.get_active_credentials(principal, source)
        except ActionRelayError as e:
            logger.warning("Credential lookup for action %s failed: %s", record.id, e)
            result = ExecutionResult(url=record.url, status=0, error_message=str(e))
        except Exception as e:
            logger.error("Credential provider failed for action %s", record.id, exc_info=True)
            result = ExecutionResult(url=record.url, status=0, error_message=str(e) or type(e).__name__)
        else:
            result = await self._executor.execute(
                tool, source, record.arguments, credentials, passthrough_token=passthrough_token
            )

        stored = result.model_copy(update={"body": cap_response_body(result.body, self._max_response_bytes)})
        finished = apply_event(record, Finish(result=stored, at=self._clock()))
        await self._persist(record, finished, "Finish")

        pagination = infer_pagination(result.body, record.arguments) if result.ok else None
        return ActionOutcome(requires_confirmation=False, record=finished.record, result=result, pagination=pagination)
