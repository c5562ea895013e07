"""Request builder: URL, headers and body for a tool invocation."""

from .auth import build_auth_headers
from .builder import build_request, build_request_body, build_url, validate_arguments
from .encoding import clean_arguments, encode_form_body

__all__ = [
    "build_auth_headers",
    "build_request",
    "build_request_body",
    "build_url",
    "clean_arguments",
    "encode_form_body",
    "validate_arguments",
]
