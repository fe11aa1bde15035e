"""
PDF Report
==========
Formatted PDF rendering of a ReportBundle using reportlab's platypus layer.

Layout:
    - Title and generation metadata
    - Summary table (total issues, errors / warnings / info, scan duration)
    - One section per enabled category with a severity-sorted finding table

Any failure inside reportlab (fonts, layout, I/O) is wrapped in RenderError
so callers can report it without crashing.
"""
import logging
from pathlib import Path
from typing import List, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from shieldscan.core.constants import VERSION
from shieldscan.core.errors import RenderError
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import ScanReport
from shieldscan.models.severity import Severity
from shieldscan.parser.ranking import sort_findings
from shieldscan.utils.formatting import format_duration, truncate

logger = logging.getLogger(__name__)

_PDF_DESCRIPTION_CHARS = 400
_COLUMN_WIDTHS = [22 * mm, 50 * mm, 40 * mm, 68 * mm]

_SEVERITY_FILL = {
    Severity.ERROR: colors.HexColor("#f8d7da"),
    Severity.WARNING: colors.HexColor("#fff3cd"),
    Severity.INFO: colors.HexColor("#d1ecf1"),
}

_HEADER_FILL = colors.HexColor("#343a40")


def _styles():
    base = getSampleStyleSheet()
    cell = ParagraphStyle("Cell", parent=base["BodyText"], fontSize=8, leading=10)
    return base, cell


def _summary_table(bundle: ReportBundle) -> Table:
    summary = bundle.severity_summary()
    rows = [
        ["Total issues", str(bundle.total_issues)],
        ["Errors", str(summary.error_count)],
        ["Warnings", str(summary.warning_count)],
        ["Info", str(summary.info_count)],
        ["Scan duration", format_duration(bundle.execution_time)],
    ]
    table = Table(rows, colWidths=[45 * mm, 40 * mm], hAlign="LEFT")
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#e9ecef")),
    ]))
    return table


def _findings_table(report: ScanReport, cell: ParagraphStyle) -> Table:
    header = ["Severity", "Title", "Location", "Description"]
    rows: List[list] = [header]
    findings = sort_findings(report.findings)
    for finding in findings:
        rows.append([
            finding.severity.value,
            Paragraph(escape(finding.title), cell),
            Paragraph(escape(finding.location), cell),
            Paragraph(escape(truncate(finding.description, _PDF_DESCRIPTION_CHARS)), cell),
        ])

    table = Table(rows, colWidths=_COLUMN_WIDTHS, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_FILL),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ]
    for row_index, finding in enumerate(findings, start=1):
        style.append(("BACKGROUND", (0, row_index), (0, row_index), _SEVERITY_FILL[finding.severity]))
    table.setStyle(TableStyle(style))
    return table


def build_story(bundle: ReportBundle) -> list:
    """Platypus flowables for the whole document."""
    base, cell = _styles()
    story: list = [
        Paragraph("ShieldScan Security Report", base["Title"]),
        Paragraph(
            escape(f"Generated {bundle.generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')} "
                   f"by shieldscan {VERSION}"),
            base["Normal"],
        ),
        Spacer(1, 6 * mm),
        Paragraph("Summary", base["Heading2"]),
        _summary_table(bundle),
    ]

    for report in bundle.ordered_reports():
        story.append(Spacer(1, 6 * mm))
        story.append(Paragraph(
            escape(f"{report.category.label} ({len(report.findings)} issues)"),
            base["Heading2"],
        ))
        if not report.succeeded:
            story.append(Paragraph(
                escape(f"Scan did not complete: {report.status.message}"), base["Italic"]
            ))
        if report.findings:
            story.append(_findings_table(report, cell))
        elif report.succeeded:
            story.append(Paragraph("No issues found.", base["Normal"]))

    return story


def write_pdf_report(bundle: ReportBundle, output_path: Union[str, Path]) -> Path:
    """
    Render the PDF report.

    Raises
    ------
    RenderError
        Wrapping whatever reportlab or the filesystem raised.
    """
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        doc = SimpleDocTemplate(
            str(path),
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=15 * mm,
            bottomMargin=15 * mm,
            title="ShieldScan Security Report",
        )
        doc.build(build_story(bundle))
    except Exception as exc:
        logger.error("Failed to render PDF report to %s: %s", path, exc, exc_info=True)
        raise RenderError("pdf", exc) from exc

    logger.info("PDF report written to %s", path.resolve())
    return path
