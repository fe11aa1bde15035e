"""
Severity Model
==============
The canonical three-level severity every scanner-specific rating is mapped into.

Ordinal (lower = more severe):
    ERROR   — 0
    WARNING — 1
    INFO    — 2
"""
from enum import Enum


class Severity(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]


_ORDINALS = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}

# Rank given to anything that is not a canonical severity when sorting raw data.
UNRANKED_ORDINAL = 3
