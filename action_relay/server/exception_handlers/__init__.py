"""Exception handlers for the FastAPI application."""

from .domain_handler import domain_exception_handler, status_code_for
from .global_handler import global_exception_handler, setup_exception_handlers

__all__ = [
    "domain_exception_handler",
    "global_exception_handler",
    "setup_exception_handlers",
    "status_code_for",
]
