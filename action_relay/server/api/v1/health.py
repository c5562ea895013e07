"""
Liveness and build information for the relay.

Neither route touches the database or any protocol session, so they answer
even while target systems are unreachable.
"""

from fastapi import APIRouter

from action_relay import __version__

router = APIRouter()


@router.get(
    "/health",
    summary="Liveness probe",
    description="Report that the relay process is accepting requests.",
    response_description="Status object.",
)
async def health_check():
    return {"status": "ok"}


@router.get(
    "/version",
    summary="Relay version",
    description="Package version and the API schema version served under /api/v1.",
    response_description="Version object.",
)
async def version():
    return {"version": __version__, "schema_version": "v1"}
