"""
Tools API Endpoints.

Read catalog tools and pin their risk level.
"""

from fastapi import APIRouter

from action_relay.core.models import Tool
from action_relay.server.deps import ServicesDep
from action_relay.server.schemas import RiskOverrideRequest

router = APIRouter()


@router.get(
    "/{tool_id}",
    response_model=Tool,
    summary="Get Tool",
    responses={404: {"description": "Tool not found"}},
)
async def get_tool(tool_id: str, services: ServicesDep):
    return await services.catalog.get_tool(tool_id)


@router.patch(
    "/{tool_id}/risk",
    response_model=Tool,
    summary="Override Tool Risk",
    description="Pin a tool's risk level. Later syncs keep the pinned value.",
    responses={404: {"description": "Tool not found"}},
)
async def override_tool_risk(tool_id: str, body: RiskOverrideRequest, services: ServicesDep):
    return await services.catalog.override_risk(tool_id, body.risk_level, body.requires_confirmation)
