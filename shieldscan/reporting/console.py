"""
Console Reporter
================
Renders a ReportBundle as the interactive terminal summary.

DETERMINISM CONTRACT:
  - Never calls an LLM. Verdicts are computed beforehand and passed in.
  - Given the same bundle and verdicts, returns the exact same string.

LAYOUT:
  Clean bundle (zero findings):
      ✅ No security issues found. (scan completed in 1.2s)

  Otherwise, per enabled category in SAST → SCA → IaC order:
      <icon> <label>: 8 issues, showing top 5
        🔴 [ERROR] <title> <verdict>
           <file>:<line>
           <description, truncated>
        ...and 3 more

  followed by:
      Total: 8 issues (3 errors, 5 warnings, 0 info)
      Scan completed in 1.2s
"""
from typing import List, Mapping, Optional

from shieldscan.core.config import CONSOLE_TOP_N
from shieldscan.core.constants import DESCRIPTION_PREVIEW_CHARS, SEVERITY_ICONS
from shieldscan.models.finding import Finding
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import ScanReport
from shieldscan.models.severity import Severity
from shieldscan.models.verdict import Verdict
from shieldscan.parser.ranking import top_findings
from shieldscan.utils.formatting import format_duration, truncate

CLEAN_SCAN_LINE = "✅ No security issues found."

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_SEVERITY_COLORS = {
    Severity.ERROR: "\x1b[31m",
    Severity.WARNING: "\x1b[33m",
    Severity.INFO: "\x1b[36m",
}

VERDICT_LABELS = {
    Verdict.LIKELY_FALSE_POSITIVE: "⚠️ (Possible False Positive)",
    Verdict.LIKELY_TRUE_POSITIVE: "🛡️ (Verified by AI)",
}
_VERDICT_COLORS = {
    Verdict.LIKELY_FALSE_POSITIVE: "\x1b[33m",
    Verdict.LIKELY_TRUE_POSITIVE: "\x1b[36m",
}


def _paint(text: str, code: str, color: bool) -> str:
    return f"{code}{text}{_RESET}" if color else text


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_header(report: ScanReport, top_n: int) -> str:
    count = len(report.findings)
    header = f"{report.category.icon} {report.category.label}: {_plural(count, 'issue')}"
    if count > top_n:
        header += f", showing top {top_n}"
    return header


def format_verdict(verdict: Optional[Verdict], color: bool = False) -> str:
    """Annotation suffix for a finding; empty for uncertain or missing verdicts."""
    if verdict is None or verdict not in VERDICT_LABELS:
        return ""
    return " " + _paint(VERDICT_LABELS[verdict], _VERDICT_COLORS[verdict], color)


def format_finding(finding: Finding, verdict: Optional[Verdict] = None, color: bool = False) -> List[str]:
    icon = SEVERITY_ICONS.get(finding.severity.value, "")
    tag = _paint(f"[{finding.severity.value}]", _SEVERITY_COLORS[finding.severity], color)
    lines = [f"  {icon} {tag} {finding.title}{format_verdict(verdict, color)}"]
    lines.append(f"     {finding.location}")
    description = truncate(finding.description, DESCRIPTION_PREVIEW_CHARS)
    if description and description != finding.title:
        lines.append(f"     {description}")
    return lines


def format_summary_line(bundle: ReportBundle) -> str:
    summary = bundle.severity_summary()
    return (
        f"Total: {_plural(bundle.total_issues, 'issue')} "
        f"({_plural(summary.error_count, 'error')}, "
        f"{_plural(summary.warning_count, 'warning')}, "
        f"{summary.info_count} info)"
    )


def _failure_line(report: ScanReport) -> str:
    return f"  ⚠️  {report.category.name} scan did not complete: {report.status.message or 'unknown error'}"


def format_console_report(
    bundle: ReportBundle,
    annotations: Optional[Mapping[int, Verdict]] = None,
    top_n: int = CONSOLE_TOP_N,
    color: bool = False,
) -> str:
    """
    Build the console summary.

    Parameters
    ----------
    bundle : ReportBundle
        Sorted or unsorted; findings are ranked here for display.
    annotations : Mapping[int, Verdict] or None
        Verdicts keyed by ``id(finding)`` for the rendered subset.
    top_n : int
        Findings shown per category.
    color : bool
        Emit ANSI colors.

    Returns
    -------
    str
        The full report text, without a trailing newline.
    """
    annotations = annotations or {}
    reports = bundle.ordered_reports()
    duration = format_duration(bundle.execution_time)

    if bundle.is_clean:
        clean = [_paint(f"{CLEAN_SCAN_LINE} (scan completed in {duration})", "\x1b[32m", color)]
        clean.extend(_failure_line(r) for r in reports if not r.succeeded)
        return "\n".join(clean)

    lines: List[str] = []
    for report in reports:
        lines.append("")
        lines.append(_paint(format_header(report, top_n), _BOLD, color))
        if not report.succeeded:
            lines.append(_failure_line(report))
        if not report.findings:
            if report.succeeded:
                lines.append("  No issues found.")
            continue

        shown, remaining = top_findings(report.findings, top_n)
        for finding in shown:
            lines.extend(format_finding(finding, annotations.get(id(finding)), color))
        if remaining:
            lines.append(f"  ...and {remaining} more")

    lines.append("")
    lines.append(_paint(format_summary_line(bundle), _BOLD, color))
    lines.append(f"Scan completed in {duration}")
    return "\n".join(lines)


def rendered_findings(bundle: ReportBundle, top_n: int = CONSOLE_TOP_N) -> List[Finding]:
    """The findings the console will actually show; the annotator works on these only."""
    shown: List[Finding] = []
    for report in bundle.ordered_reports():
        subset, _ = top_findings(report.findings, top_n)
        shown.extend(subset)
    return shown
