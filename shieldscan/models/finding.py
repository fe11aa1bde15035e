"""
Finding Model
=============
Pydantic model for one normalized security issue.
This is the contract between the scanner adapters and every reporter.

Fields:
    category        — which scanner family produced it (sast / sca / iac)
    title           — short human label
    severity        — canonical Severity (ERROR / WARNING / INFO)
    file_path       — file the issue was reported in (manifest name for SCA)
    line            — 1-based line, None when the scanner gives no line
    description     — full explanation; display layers truncate, persistence keeps it whole
    rule_id         — semgrep check_id or vulnerability id
    extra_metadata  — scanner-specific payload, kept opaque
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from shieldscan.core.constants import CATEGORY_ICONS, CATEGORY_LABELS, UNKNOWN_LINE
from shieldscan.models.severity import Severity
from shieldscan.parser.severity import classify


class ScanCategory(str, Enum):
    SAST = "sast"
    SCA = "sca"
    IAC = "iac"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.value]

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self.value]


# Fixed display and execution order.
CATEGORY_ORDER = (ScanCategory.SAST, ScanCategory.SCA, ScanCategory.IAC)


class Finding(BaseModel):
    category: ScanCategory
    title: str
    severity: Severity = Severity.WARNING
    file_path: str = ""
    line: Optional[int] = None
    description: str = ""
    rule_id: str = ""
    extra_metadata: Dict[str, Any] = {}

    @field_validator("severity", mode="before")
    @classmethod
    def _canonical_severity(cls, value: Any) -> Severity:
        return classify(value)

    @field_validator("line", mode="before")
    @classmethod
    def _known_line(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        try:
            line = int(value)
        except (TypeError, ValueError):
            return None
        return line if line >= 1 else None

    @property
    def location(self) -> str:
        line = self.line if self.line is not None else UNKNOWN_LINE
        return f"{self.file_path or 'unknown'}:{line}"
