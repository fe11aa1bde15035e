"""
POST /api/scan
==============
Runs the selected scanners against a local path, persists the snapshot and
returns a summary of the bundle.

Request:
    {"path": "/abs/or/relative/project", "sast": true, "sca": false, "iac": false}
    Leaving every flag false runs all three scanners.

Errors:
    400 — path does not exist, or a required scanner binary is missing
"""
import logging
import os
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from shieldscan.core.config import load_scanner_settings
from shieldscan.core.errors import ToolMissingError
from shieldscan.models.report_bundle import ReportBundle, SeveritySummary
from shieldscan.reporting.snapshot import SnapshotStore
from shieldscan.scanners.aggregator import Aggregator, ScanSelection, check_tools
from shieldscan.utils.formatting import format_duration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Scan"])


def get_snapshot_store() -> SnapshotStore:
    return SnapshotStore()


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class ScanRequest(BaseModel):
    path: str = "."
    sast: bool = False
    sca: bool = False
    iac: bool = False


class CategorySummary(BaseModel):
    issues: int
    succeeded: bool
    error_kind: Optional[str] = None
    message: str = ""


class ScanResponse(BaseModel):
    path: str
    generated_at: str
    scan_duration: str
    total_issues: int
    severity_summary: SeveritySummary
    reports: Dict[str, CategorySummary]
    snapshot: str


def summarize_bundle(bundle: ReportBundle, path: str, snapshot: str) -> ScanResponse:
    reports = {
        report.category.value: CategorySummary(
            issues=len(report.findings),
            succeeded=report.succeeded,
            error_kind=report.status.error_kind.value if report.status.error_kind else None,
            message=report.status.message,
        )
        for report in bundle.ordered_reports()
    }
    return ScanResponse(
        path=path,
        generated_at=bundle.generated_at.isoformat(),
        scan_duration=format_duration(bundle.execution_time),
        total_issues=bundle.total_issues,
        severity_summary=bundle.severity_summary(),
        reports=reports,
        snapshot=snapshot,
    )


@router.post("/scan", response_model=ScanResponse)
async def scan(
    request: ScanRequest,
    store: SnapshotStore = Depends(get_snapshot_store),
) -> ScanResponse:
    target = os.path.abspath(request.path)
    if not os.path.exists(target):
        raise HTTPException(status_code=400, detail=f"Path not found: {request.path}")

    selection = ScanSelection(sast=request.sast, sca=request.sca, iac=request.iac).with_defaults()
    try:
        check_tools(selection)
    except ToolMissingError as exc:
        logger.warning("Scan request rejected: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    settings = load_scanner_settings(target if os.path.isdir(target) else os.path.dirname(target))
    bundle = await Aggregator(settings=settings).run(selection, target)
    snapshot_path = store.save(bundle)

    return summarize_bundle(bundle, target, str(snapshot_path))
