"""
Risk classification.

HTTP operations are classified purely by method. Tool-protocol tools have no
method, so they are classified by keywords in their name and description.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Tuple

from action_relay.core.models import RiskLevel

METHOD_RISK = {
    "GET": RiskLevel.safe,
    "HEAD": RiskLevel.safe,
    "OPTIONS": RiskLevel.safe,
    "POST": RiskLevel.moderate,
    "PUT": RiskLevel.dangerous,
    "PATCH": RiskLevel.dangerous,
    "DELETE": RiskLevel.dangerous,
}

DANGEROUS_KEYWORDS = (
    "delete", "remove", "destroy", "drop", "truncate", "clear", "purge", "wipe", "reset",
    "revoke", "terminate", "kill", "cancel", "disable", "deactivate", "suspend", "ban", "block",
)

SAFE_PREFIXES = (
    "get", "list", "read", "fetch", "query", "search", "find", "show", "describe", "inspect", "view", "check",
)

MODERATE_KEYWORDS = (
    "update", "modify", "edit", "change", "set", "patch", "write", "create", "insert", "add",
    "post", "put", "send", "execute", "run", "trigger", "invoke",
)

_TAG_CATEGORIES = {
    "file": ("file", "files", "directory", "folder", "path", "read", "write"),
    "database": ("database", "db", "sql", "query", "table", "record", "records"),
    "git": ("git", "commit", "branch", "repository", "repo"),
    "api": ("api", "http", "request", "response", "endpoint"),
    "auth": ("auth", "token", "credential", "credentials", "password", "login"),
    "search": ("search", "find", "query", "filter"),
    "notification": ("notify", "alert", "message", "email", "sms"),
}

RISK_OVERRIDE_EXTENSION = "x-risk-level"
CONFIRMATION_OVERRIDE_EXTENSION = "x-requires-confirmation"


def risk_for_method(method: str) -> RiskLevel:
    """Classify an HTTP method; unknown methods are moderate."""
    return METHOD_RISK.get(method.upper(), RiskLevel.moderate)


def requires_confirmation_for(risk: RiskLevel) -> bool:
    return risk is RiskLevel.dangerous


def _words(text: str) -> List[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", text)
    return [w for w in re.split(r"[^a-zA-Z0-9]+", spaced.lower()) if w]


def risk_for_protocol_tool(name: str, description: Optional[str] = None) -> RiskLevel:
    """Classify a tool-protocol tool by keywords.

    Destructive verbs anywhere in the name or description win; a read verb
    leading the name is safe; write verbs are moderate; anything else is safe.
    """
    name_words = _words(name)
    all_words = name_words + _words(description or "")

    if any(word in DANGEROUS_KEYWORDS for word in all_words):
        return RiskLevel.dangerous
    if name_words and name_words[0] in SAFE_PREFIXES:
        return RiskLevel.safe
    if any(word in MODERATE_KEYWORDS for word in name_words):
        return RiskLevel.moderate
    return RiskLevel.safe


def protocol_tool_tags(name: str, description: Optional[str] = None) -> List[str]:
    words = set(_words(name) + _words(description or ""))
    tags = [category for category, keywords in _TAG_CATEGORIES.items() if words.intersection(keywords)]
    if words.intersection(DANGEROUS_KEYWORDS):
        tags.append("destructive")
    return tags


def apply_override(operation: Mapping[str, Any], risk: RiskLevel) -> Tuple[RiskLevel, bool]:
    """Apply ``x-risk-level`` / ``x-requires-confirmation`` extensions.

    Returns the final risk level and confirmation flag. The flag follows the
    risk level unless ``x-requires-confirmation`` sets it explicitly.
    """
    declared = operation.get(RISK_OVERRIDE_EXTENSION)
    if isinstance(declared, str) and declared.lower() in RiskLevel._value2member_map_:
        risk = RiskLevel(declared.lower())
    confirm = requires_confirmation_for(risk)
    flag = operation.get(CONFIRMATION_OVERRIDE_EXTENSION)
    if isinstance(flag, bool):
        confirm = flag
    return risk, confirm
