"""
Snapshot Store
==============
Persists the most recent ReportBundle: the only state that survives the
process and the required input for report generation.

File layout (one per working directory, overwritten every run):

    <SHIELDSCAN_OUTPUT_DIR>/last_scan.json
    {
      "reports": {"sast": {"results": [...], "status": {...}}, ...},
      "execution_time": 12.34,
      "generated_at": "2026-10-17T09:30:00+00:00"
    }

Writes are atomic: the document goes to a temp file in the same directory
and is moved over the old snapshot with os.replace, so an interrupted run
leaves either the previous snapshot or the new one, never a partial file.
"""
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from shieldscan.core.config import SHIELDSCAN_OUTPUT_DIR, SNAPSHOT_FILENAME
from shieldscan.core.errors import SnapshotMissingError
from shieldscan.models.finding import Finding, ScanCategory
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import InvocationStatus, ScanReport

logger = logging.getLogger(__name__)


def bundle_to_snapshot(bundle: ReportBundle) -> Dict[str, Any]:
    reports: Dict[str, Any] = {}
    for report in bundle.ordered_reports():
        reports[report.category.value] = {
            "results": [f.model_dump(mode="json") for f in report.findings],
            "status": report.status.model_dump(mode="json"),
        }
    return {
        "reports": reports,
        "execution_time": bundle.execution_time,
        "generated_at": bundle.generated_at.isoformat(),
    }


def bundle_from_snapshot(data: Dict[str, Any]) -> ReportBundle:
    """
    Rebuild a ReportBundle from a snapshot document.

    Raises
    ------
    ValueError
        If the document does not have the snapshot shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("reports"), dict):
        raise ValueError("missing 'reports' mapping")

    reports: Dict[ScanCategory, ScanReport] = {}
    for key, entry in data["reports"].items():
        category = ScanCategory(key)
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ValueError(f"report entry for '{key}' is not a mapping")
        findings = []
        for record in entry.get("results") or []:
            if not isinstance(record, dict):
                raise ValueError(f"finding in '{key}' is not a mapping")
            record = dict(record)
            record.setdefault("category", category.value)
            findings.append(Finding.model_validate(record))
        status = InvocationStatus.model_validate(entry.get("status") or {})
        reports[category] = ScanReport(category=category, findings=findings, status=status)

    generated_raw = data.get("generated_at")
    if generated_raw and not isinstance(generated_raw, str):
        raise ValueError("'generated_at' is not an ISO timestamp")
    generated_at = (
        datetime.fromisoformat(generated_raw) if generated_raw else datetime.now(timezone.utc)
    )
    return ReportBundle(
        reports=reports,
        generated_at=generated_at,
        execution_time=float(data.get("execution_time") or 0.0),
    )


class SnapshotStore:
    """
    Load/store for the latest scan snapshot.

    Usage:
        store = SnapshotStore()
        store.save(bundle)
        bundle = store.load()   # raises SnapshotMissingError if never saved
    """

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = Path(directory or SHIELDSCAN_OUTPUT_DIR)

    @property
    def path(self) -> Path:
        return self.directory / SNAPSHOT_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, bundle: ReportBundle) -> Path:
        """Atomically overwrite the snapshot with ``bundle``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        document = json.dumps(bundle_to_snapshot(bundle), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.directory), prefix=".last_scan.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(document)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info("Scan snapshot saved to %s", self.path.resolve())
        return self.path

    def load(self) -> ReportBundle:
        if not self.exists():
            raise SnapshotMissingError(str(self.path))
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
            return bundle_from_snapshot(data)
        except (json.JSONDecodeError, ValueError, TypeError, ValidationError) as exc:
            logger.warning("Snapshot %s is unreadable: %s", self.path, exc)
            reason = (str(exc).splitlines() or [type(exc).__name__])[0]
            raise SnapshotMissingError(str(self.path), reason=reason) from exc
