"""
Capability Sources API Endpoints.

Register HTTP and protocol sources, synchronize their tool catalogs and
inspect live protocol sessions.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from action_relay.core.errors import InvalidDescriptionError
from action_relay.core.models import SessionStatus, SyncReport, Tool
from action_relay.server.deps import ServicesDep
from action_relay.server.schemas import RegisterSourceRequest, SourceView, SyncSourceRequest

router = APIRouter()


@router.post(
    "",
    response_model=SourceView,
    status_code=201,
    summary="Register Source",
    description="Register a capability source. Its catalog is empty until the first sync.",
)
async def register_source(body: RegisterSourceRequest, services: ServicesDep):
    source = await services.catalog.register_source(body.to_source())
    return SourceView.from_source(source)


@router.get(
    "",
    response_model=List[SourceView],
    summary="List Sources",
    description="List registered capability sources.",
)
async def list_sources(services: ServicesDep, active_only: bool = Query(default=False, alias="activeOnly")):
    return [SourceView.from_source(source) for source in await services.catalog.list_sources(active_only=active_only)]


@router.get(
    "/{source_id}",
    response_model=SourceView,
    summary="Get Source",
    responses={404: {"description": "Source not found"}},
)
async def get_source(source_id: str, services: ServicesDep):
    return SourceView.from_source(await services.catalog.get_source(source_id))


@router.post(
    "/{source_id}/sync",
    response_model=SyncReport,
    summary="Synchronize Source",
    description=(
        "Compile the source's capabilities into catalog tools. HTTP sources take an OpenAPI 3.x "
        "document in the body; protocol sources are listed over their live session."
    ),
    responses={
        400: {"description": "Invalid description or unsupported transport"},
        404: {"description": "Source not found"},
        502: {"description": "Protocol server unreachable"},
    },
)
async def sync_source(source_id: str, services: ServicesDep, body: Optional[SyncSourceRequest] = None):
    """
    Synchronize a source's catalog.

    The whole sync is applied atomically; an unchanged description is a no-op
    unless ``force`` is set.
    """
    body = body or SyncSourceRequest()
    source = await services.catalog.get_source(source_id)
    if source.transport.is_protocol:
        return await services.synchronizer.sync_protocol_source(source_id, force=body.force)
    if body.description is None:
        raise InvalidDescriptionError("an API description document is required for HTTP sources")
    return await services.synchronizer.sync_description(source_id, body.description, force=body.force)


@router.get(
    "/{source_id}/tools",
    response_model=List[Tool],
    summary="List Source Tools",
    responses={404: {"description": "Source not found"}},
)
async def list_source_tools(
    source_id: str,
    services: ServicesDep,
    include_inactive: bool = Query(default=False, alias="includeInactive"),
):
    return await services.catalog.list_tools(source_id, include_inactive=include_inactive)


@router.post(
    "/{source_id}/deactivate",
    response_model=SourceView,
    summary="Deactivate Source",
    description="Stop offering a source; its live protocol session, if any, is closed.",
    responses={404: {"description": "Source not found"}},
)
async def deactivate_source(source_id: str, services: ServicesDep):
    source = await services.catalog.deactivate_source(source_id)
    await services.protocol_sessions.disconnect(source_id)
    return SourceView.from_source(source)


@router.get(
    "/{source_id}/session",
    response_model=SessionStatus,
    summary="Get Protocol Session Status",
    responses={404: {"description": "Source not found"}},
)
async def get_session_status(source_id: str, services: ServicesDep):
    await services.catalog.get_source(source_id)
    return services.protocol_sessions.status(source_id)
