"""
GET /api/report, GET /api/report/pdf
====================================
Serve reports built from the latest scan snapshot.

Errors:
    404 — no snapshot has been saved yet (run POST /api/scan first)
    500 — the PDF writer failed; detail carries the cause
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from shieldscan.api.scan import get_snapshot_store
from shieldscan.core.errors import RenderError, SnapshotMissingError
from shieldscan.parser.ranking import sort_bundle
from shieldscan.reporting.generator import default_output_path
from shieldscan.reporting.json_report import build_report
from shieldscan.reporting.pdf_report import write_pdf_report
from shieldscan.reporting.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Report"])


def _load_bundle(store: SnapshotStore):
    try:
        return sort_bundle(store.load())
    except SnapshotMissingError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/report")
async def get_report(store: SnapshotStore = Depends(get_snapshot_store)):
    return build_report(_load_bundle(store))


@router.get("/report/pdf")
async def get_pdf_report(store: SnapshotStore = Depends(get_snapshot_store)):
    bundle = _load_bundle(store)
    output = default_output_path("pdf", str(store.directory))
    try:
        path = write_pdf_report(bundle, output)
    except RenderError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return FileResponse(str(path), media_type="application/pdf", filename=path.name)
