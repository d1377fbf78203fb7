"""Utility functions."""

from clinicdesk.utils.overrides import resolve_with_override
from clinicdesk.utils.time import ensure_utc, format_hhmm, get_zone, local_day_bounds, utc_now

__all__ = [
    "utc_now",
    "ensure_utc",
    "format_hhmm",
    "get_zone",
    "local_day_bounds",
    "resolve_with_override",
]
