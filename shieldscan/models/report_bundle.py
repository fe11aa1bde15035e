"""
Report Bundle Model
===================
All ScanReports of one run plus timing metadata.

Invariants:
    - Only categories enabled for the run are present.
    - An enabled category with zero findings is an empty ScanReport, never absent.
    - The severity summary is derived on demand, never stored.
"""
from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, Field

from shieldscan.models.finding import CATEGORY_ORDER, Finding, ScanCategory
from shieldscan.models.scan_report import ScanReport
from shieldscan.models.severity import Severity


class SeveritySummary(BaseModel):
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    @property
    def total(self) -> int:
        return self.error_count + self.warning_count + self.info_count


def summarize(findings: List[Finding]) -> SeveritySummary:
    summary = SeveritySummary()
    for finding in findings:
        if finding.severity == Severity.ERROR:
            summary.error_count += 1
        elif finding.severity == Severity.INFO:
            summary.info_count += 1
        else:
            summary.warning_count += 1
    return summary


class ReportBundle(BaseModel):
    reports: Dict[ScanCategory, ScanReport] = {}
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    execution_time: float = 0.0

    def ordered_reports(self) -> List[ScanReport]:
        """Reports in the fixed SAST, SCA, IaC order."""
        return [self.reports[c] for c in CATEGORY_ORDER if c in self.reports]

    def all_findings(self) -> List[Finding]:
        findings: List[Finding] = []
        for report in self.ordered_reports():
            findings.extend(report.findings)
        return findings

    @property
    def total_issues(self) -> int:
        return sum(len(r.findings) for r in self.reports.values())

    @property
    def is_clean(self) -> bool:
        return self.total_issues == 0

    def severity_summary(self) -> SeveritySummary:
        return summarize(self.all_findings())
