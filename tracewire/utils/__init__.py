"""Utility functions for tracewire."""

from tracewire.utils.helpers import (
    MAX_ID,
    format_id,
    generate_id,
    parse_id,
)

__all__ = [
    "MAX_ID",
    "format_id",
    "generate_id",
    "parse_id",
]
