"""
JSON Report
===========
Structured report document built from a ReportBundle.

Document shape:
    {
      "generated_at": "2026-10-17T09:30:00+00:00",
      "scan_duration": "1.2s",
      "total_issues": 8,
      "severity_summary": {"error_count": 3, "warning_count": 5, "info_count": 0},
      "top_findings": [<finding>, ...],
      "reports": {"sast": [<finding>, ...], "sca": [...], "iac": [...]}
    }

Findings are full (untruncated) and severity-sorted per category.
"top_findings" is the cross-category ranking (SAST, SCA, IaC ties in that
order), cut to TOP_FINDINGS_LIMIT; each entry keeps its "category".
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from shieldscan.core.constants import TOP_FINDINGS_LIMIT
from shieldscan.core.errors import RenderError
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.parser.ranking import rank_all, sort_findings
from shieldscan.utils.formatting import format_duration

logger = logging.getLogger(__name__)


def build_report(bundle: ReportBundle) -> Dict[str, Any]:
    return {
        "generated_at": bundle.generated_at.isoformat(),
        "scan_duration": format_duration(bundle.execution_time),
        "total_issues": bundle.total_issues,
        "severity_summary": bundle.severity_summary().model_dump(),
        "top_findings": [
            f.model_dump(mode="json") for f in rank_all(bundle)[:TOP_FINDINGS_LIMIT]
        ],
        "reports": {
            report.category.value: [
                f.model_dump(mode="json") for f in sort_findings(report.findings)
            ]
            for report in bundle.ordered_reports()
        },
    }


def write_json_report(bundle: ReportBundle, output_path: Union[str, Path]) -> Path:
    """
    Write the JSON report.

    Raises
    ------
    RenderError
        If the document cannot be serialized or written.
    """
    path = Path(output_path)
    try:
        document = json.dumps(build_report(bundle), indent=2, ensure_ascii=False)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Failed to write JSON report to %s: %s", path, exc)
        raise RenderError("json", exc) from exc

    logger.info("JSON report written to %s", path.resolve())
    return path
