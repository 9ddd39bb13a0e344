"""
HTTP surface for the compliance monitor.

The API module is imported lazily by the server entry point; this package
re-exports the payload helpers shared with dashboard clients.
"""

from .schema import get_check_output_schema, serialize_check_response, serialize_snapshot, to_api

__all__ = [
    "get_check_output_schema",
    "serialize_check_response",
    "serialize_snapshot",
    "to_api",
]
