"""
Request dependencies.

Provides the service container, the acting principal and the passthrough
token to API endpoints.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from action_relay.core.models import Principal

from .container import RelayServices


def get_services(request: Request) -> RelayServices:
    return request.app.state.services


ServicesDep = Annotated[RelayServices, Depends(get_services)]


def get_principal(
    services: ServicesDep,
    x_principal_id: Annotated[str, Header(description="Identifier of the acting principal")],
    x_principal_role: Annotated[Optional[str], Header(description="Comma-separated roles")] = None,
) -> Principal:
    roles = [role.strip() for role in (x_principal_role or "").split(",") if role.strip()]
    admin_role = services.settings.admin_role
    return Principal(id=x_principal_id, roles=roles, is_admin=bool(admin_role) and admin_role in roles)


PrincipalDep = Annotated[Principal, Depends(get_principal)]

PassthroughTokenDep = Annotated[
    Optional[str],
    Header(alias="X-Passthrough-Token", description="The principal's own token for passthrough sources"),
]
