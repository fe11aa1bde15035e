"""
Ranking
=======
Severity ordering for findings, within a category and across all of them.

Sort key is the canonical severity ordinal (ERROR=0, WARNING=1, INFO=2,
anything unrecognized=3). Python's sort is stable, so findings of equal
severity keep scanner emission order.
"""
from typing import Any, List, Sequence, Tuple

from shieldscan.models.finding import Finding
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.severity import UNRANKED_ORDINAL, Severity


def severity_rank(value: Any) -> int:
    """Ordinal for a Severity or a raw severity string."""
    if isinstance(value, Severity):
        return value.ordinal
    if isinstance(value, str):
        try:
            return Severity(value.strip().upper()).ordinal
        except ValueError:
            return UNRANKED_ORDINAL
    return UNRANKED_ORDINAL


def sort_findings(findings: Sequence[Finding]) -> List[Finding]:
    return sorted(findings, key=lambda f: severity_rank(f.severity))


def sort_bundle(bundle: ReportBundle) -> ReportBundle:
    """Sort every category of the bundle in place and return it."""
    for report in bundle.reports.values():
        report.findings = sort_findings(report.findings)
    return bundle


def rank_all(bundle: ReportBundle) -> List[Finding]:
    """
    Flatten all categories (SAST, SCA, IaC order) into one severity-ranked list.

    Each Finding carries its own category, so the unified view stays tagged.
    """
    return sort_findings(bundle.all_findings())


def top_findings(findings: Sequence[Finding], limit: int) -> Tuple[List[Finding], int]:
    """Return the first ``limit`` severity-ranked findings and how many were cut."""
    ranked = sort_findings(findings)
    limit = max(limit, 0)
    return ranked[:limit], max(len(ranked) - limit, 0)
