"""Boundary parsing of store rows into the strict domain model.

This module provides:
- parse_tag_list / parse_availability: lenient list-column parsers
- RecordNormalizer: converts profile and need rows to Candidate / NeedRequest
"""

from .parsing import parse_availability, parse_flag, parse_optional_text, parse_tag_list
from .service import RecordNormalizer

__all__ = [
    "RecordNormalizer",
    "parse_tag_list",
    "parse_availability",
    "parse_optional_text",
    "parse_flag",
]
