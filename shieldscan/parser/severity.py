"""
Severity Classification
=======================
Maps heterogeneous scanner severities into the canonical three levels.

Inputs handled:
    - Free-text levels (semgrep ERROR/WARNING/INFO, advisory CRITICAL/HIGH/...)
    - CVSS-like numeric scores, as numbers or numeric strings
    - Anything else, including None

Classification Strategy:
    1. EXPLICIT TABLE FIRST — case-insensitive label lookup
    2. SCORE BANDS SECOND — numeric values
    3. FALLBACK — WARNING, never INFO, so unknown findings are not buried

Score Bands (half-open, so every score in [0.1, 10.0] lands in a band):
    7.0 <= s <= 10.0  → ERROR
    4.0 <= s <  7.0   → WARNING
    0.1 <= s <  4.0   → INFO
    anything else     → WARNING
"""
from enum import Enum
from typing import Any, Optional

from shieldscan.models.severity import Severity

DEFAULT_SEVERITY = Severity.WARNING

# ---------------------------------------------------------------------------
# 1. Explicit label table
# ---------------------------------------------------------------------------
_LABEL_MAP: dict[str, Severity] = {
    "critical": Severity.ERROR,
    "high":     Severity.ERROR,
    "error":    Severity.ERROR,
    "medium":   Severity.WARNING,
    "moderate": Severity.WARNING,
    "warning":  Severity.WARNING,
    "low":      Severity.INFO,
    "info":     Severity.INFO,
}

# ---------------------------------------------------------------------------
# 2. Score bands: (inclusive lower, exclusive upper, severity)
# ---------------------------------------------------------------------------
_SCORE_BANDS: list[tuple[float, float, Severity]] = [
    (7.0, 10.0, Severity.ERROR),
    (4.0, 7.0,  Severity.WARNING),
    (0.1, 4.0,  Severity.INFO),
]


def classify_score(score: float) -> Severity:
    """Map a CVSS-like score through the band table."""
    for low, high, severity in _SCORE_BANDS:
        # The top band includes 10.0 itself
        if low <= score < high or (high == 10.0 and score == 10.0):
            return severity
    return DEFAULT_SEVERITY


def _as_score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def classify(raw: Any) -> Severity:
    """
    Classify a raw severity label or score.

    Parameters
    ----------
    raw : Any
        Label ("HIGH", "moderate", "ERROR"), score (7.5, "4.0"), an existing
        Severity, or None.

    Returns
    -------
    Severity
        Always one of ERROR / WARNING / INFO.
    """
    if isinstance(raw, Severity):
        return raw
    if isinstance(raw, Enum):
        raw = raw.value
    if raw is None:
        return DEFAULT_SEVERITY

    if isinstance(raw, str):
        label = _LABEL_MAP.get(raw.strip().lower())
        if label is not None:
            return label

    score = _as_score(raw)
    if score is not None:
        return classify_score(score)

    return DEFAULT_SEVERITY
