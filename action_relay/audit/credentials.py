"""
Credential collaborator.

The executor never stores secrets; it asks a CredentialProvider for the blob
to use for a principal and source at execution time.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, runtime_checkable

from action_relay.core.models import CapabilitySource, Principal


@runtime_checkable
class CredentialProvider(Protocol):
    async def get_active_credentials(self, principal: Principal, source: CapabilitySource) -> Optional[Dict[str, Any]]:
        """Return the credential blob for ``principal`` on ``source``, or None."""
        ...


class SourceCredentialProvider:
    """Use the source's own authentication configuration for every principal."""

    async def get_active_credentials(self, principal: Principal, source: CapabilitySource) -> Optional[Dict[str, Any]]:
        return dict(source.auth_config) or None


class StaticCredentialProvider:
    """Per-principal credentials held in memory, falling back to the source configuration."""

    def __init__(self, credentials: Optional[Mapping[Tuple[str, str], Mapping[str, Any]]] = None) -> None:
        self._credentials: Dict[Tuple[str, str], Dict[str, Any]] = {
            key: dict(value) for key, value in (credentials or {}).items()
        }

    def set(self, principal_id: str, source_id: str, credentials: Mapping[str, Any]) -> None:
        self._credentials[(principal_id, source_id)] = dict(credentials)

    async def get_active_credentials(self, principal: Principal, source: CapabilitySource) -> Optional[Dict[str, Any]]:
        found = self._credentials.get((principal.id, source.id))
        if found is not None:
            return {**source.auth_config, **found}
        return dict(source.auth_config) or None
