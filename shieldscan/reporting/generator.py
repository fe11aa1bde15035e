"""
Report Generator
================
Turns the most recent scan snapshot into a JSON or PDF report file.

Flow:
    snapshot (SnapshotStore.load) → severity sort → JSON / PDF writer

Errors surfaced to the caller:
    SnapshotMissingError — no scan has been persisted yet
    RenderError          — the writer failed (cause attached)
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from shieldscan.core.config import SHIELDSCAN_OUTPUT_DIR
from shieldscan.parser.ranking import sort_bundle
from shieldscan.reporting.json_report import write_json_report
from shieldscan.reporting.pdf_report import write_pdf_report
from shieldscan.reporting.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("json", "pdf")

_WRITERS = {
    "json": write_json_report,
    "pdf": write_pdf_report,
}


def default_output_path(fmt: str, directory: Optional[str] = None) -> Path:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = Path(directory or SHIELDSCAN_OUTPUT_DIR) / "reports"
    return base / f"shieldscan_report_{stamp}.{fmt}"


def generate_report(
    fmt: str = "json",
    output: Optional[Union[str, Path]] = None,
    store: Optional[SnapshotStore] = None,
) -> Path:
    """
    Generate a report from the latest snapshot.

    Parameters
    ----------
    fmt : str
        "json" or "pdf".
    output : str | Path | None
        Destination file; a timestamped file under the output dir by default.
    store : SnapshotStore | None
        Snapshot location (default store if not provided).

    Returns
    -------
    Path
        The written report.
    """
    fmt = fmt.lower()
    if fmt not in _WRITERS:
        raise ValueError(f"Unsupported report format '{fmt}' (choose from {', '.join(REPORT_FORMATS)})")

    store = store or SnapshotStore()
    bundle = sort_bundle(store.load())
    logger.info("Generating %s report from snapshot of %s", fmt.upper(), bundle.generated_at.isoformat())

    path = Path(output) if output else default_output_path(fmt, str(store.directory))
    return _WRITERS[fmt](bundle, path)
