"""
Schema compiler.

Turns API descriptions and tool-protocol listings into catalog tools, and
applies them to the stored catalog.
"""

from .catalog import CatalogService
from .openapi import compile_openapi, fingerprint_document, synthesize_operation_key
from .protocol_tools import compile_protocol_tools, humanize_name
from .risk import risk_for_method, risk_for_protocol_tool
from .sanitize import sanitize_schema
from .sync import CatalogSynchronizer, SyncPlan, plan_sync

__all__ = [
    "CatalogService",
    "CatalogSynchronizer",
    "SyncPlan",
    "compile_openapi",
    "compile_protocol_tools",
    "fingerprint_document",
    "humanize_name",
    "plan_sync",
    "risk_for_method",
    "risk_for_protocol_tool",
    "sanitize_schema",
    "synthesize_operation_key",
]
