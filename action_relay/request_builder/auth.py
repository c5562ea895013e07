"""
Authentication header construction.

The credential blob comes from the credential collaborator; the source's own
authentication configuration fills in defaults such as the API key header
name. Passthrough mode forwards the acting principal's own token and fails
closed when none is supplied.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, Mapping, Optional

from action_relay.core.errors import MissingCredentialError, MissingPassthroughCredentialError
from action_relay.core.models import AuthMode, CapabilitySource

DEFAULT_API_KEY_HEADER = "X-API-Key"


def _require(source: CapabilitySource, credentials: Mapping[str, Any], *fields: str) -> None:
    missing = [name for name in fields if not credentials.get(name)]
    if missing:
        raise MissingCredentialError(source.name, source.auth_mode.value, missing)


def build_auth_headers(
    source: CapabilitySource,
    credentials: Optional[Mapping[str, Any]] = None,
    *,
    passthrough_token: Optional[str] = None,
) -> Dict[str, str]:
    """Return the headers that authenticate a request to ``source``.

    Args:
        source: Target capability source
        credentials: Credential blob for the acting principal
        passthrough_token: The principal's own token, used only in passthrough mode

    Returns:
        Header mapping, empty for sources without authentication

    Raises:
        MissingPassthroughCredentialError: Passthrough mode without a token
        MissingCredentialError: Any other mode without its credential fields
    """
    creds: Mapping[str, Any] = credentials or {}
    mode = source.auth_mode

    if mode is AuthMode.none:
        return {}

    if mode is AuthMode.passthrough:
        if not passthrough_token:
            raise MissingPassthroughCredentialError(source.name)
        return {"Authorization": f"Bearer {passthrough_token}"}

    if mode is AuthMode.bearer:
        _require(source, creds, "token")
        return {"Authorization": f"Bearer {creds['token']}"}

    if mode is AuthMode.api_key:
        _require(source, creds, "api_key")
        header_name = creds.get("header_name") or source.auth_config.get("header_name") or DEFAULT_API_KEY_HEADER
        return {header_name: str(creds["api_key"])}

    if mode is AuthMode.basic:
        _require(source, creds, "username", "password")
        encoded = base64.b64encode(f"{creds['username']}:{creds['password']}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    if mode is AuthMode.header:
        header_name = creds.get("header_name") or source.auth_config.get("header_name")
        if not header_name or not creds.get("header_value"):
            raise MissingCredentialError(source.name, mode.value, ["header_name", "header_value"])
        return {header_name: str(creds["header_value"])}

    return {}
