"""
Formatting Helpers
==================
Small deterministic string helpers shared by the reporters.
"""
from typing import Optional


def format_duration(seconds: Optional[float]) -> str:
    """
    Human-readable duration.

    Examples
    --------
    >>> format_duration(0.045)
    '45ms'
    >>> format_duration(1.23)
    '1.2s'
    >>> format_duration(123)
    '2m 3s'
    """
    if seconds is None or seconds < 0:
        seconds = 0.0
    millis = int(round(seconds * 1000))
    if millis < 1000:
        return f"{millis}ms"
    if round(seconds, 1) < 60:
        return f"{seconds:.1f}s"
    whole = int(round(seconds))
    return f"{whole // 60}m {whole % 60}s"


def truncate(text: str, limit: int) -> str:
    """Collapse whitespace and cut to ``limit`` characters with an ellipsis."""
    flat = " ".join((text or "").split())
    if limit <= 0 or len(flat) <= limit:
        return flat
    return flat[: max(limit - 3, 0)].rstrip() + "..."
