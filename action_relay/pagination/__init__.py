"""Pagination inference over heterogeneous response bodies."""

from .inference import extract_items, infer_pagination, locate_items
from .params import build_next_page_arguments, build_page_arguments, describe_pagination
from .strategies import STRATEGIES, PageContext

__all__ = [
    "STRATEGIES",
    "PageContext",
    "build_next_page_arguments",
    "build_page_arguments",
    "describe_pagination",
    "extract_items",
    "infer_pagination",
    "locate_items",
]
