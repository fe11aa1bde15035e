"""
API Tests
=========
FastAPI endpoints via TestClient. Scanners are never executed: the
Aggregator and the tool check are patched, and the snapshot store points at
tmp_path through a dependency override.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from main import app
from shieldscan.api.scan import get_snapshot_store
from shieldscan.core.errors import RenderError, ToolMissingError
from shieldscan.models.finding import Finding, ScanCategory
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import ErrorKind, ScanReport
from shieldscan.reporting.snapshot import SnapshotStore


def _bundle():
    sast = ScanReport(category=ScanCategory.SAST, findings=[
        Finding(category=ScanCategory.SAST, title="SQL injection", severity="ERROR",
                file_path="db.py", line=7, description="Raw SQL", rule_id="sqli"),
        Finding(category=ScanCategory.SAST, title="Debug enabled", severity="WARNING",
                file_path="settings.py", line=1, description="DEBUG=True", rule_id="debug"),
    ])
    sca = ScanReport.failure(ScanCategory.SCA, ErrorKind.INVOCATION_FAILURE, "osv-scanner general error")
    return ReportBundle(reports={ScanCategory.SAST: sast, ScanCategory.SCA: sca}, execution_time=0.5)


@pytest.fixture
def store(tmp_path):
    store = SnapshotStore(str(tmp_path / ".shieldscan"))
    app.dependency_overrides[get_snapshot_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    return TestClient(app)


def _patched_aggregator(bundle):
    aggregator = MagicMock()
    aggregator.return_value.run = AsyncMock(return_value=bundle)
    return aggregator


# ===================================================================
# Health
# ===================================================================
def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ===================================================================
# POST /api/scan
# ===================================================================
class TestScanEndpoint:

    def test_scan_saves_snapshot_and_summarizes(self, client, store, tmp_path):
        aggregator = _patched_aggregator(_bundle())
        with patch("shieldscan.api.scan.check_tools"), \
             patch("shieldscan.api.scan.Aggregator", aggregator):
            resp = client.post("/api/scan", json={"path": str(tmp_path), "sast": True, "sca": True})

        assert resp.status_code == 200
        data = resp.json()
        assert data["total_issues"] == 2
        assert data["severity_summary"] == {"error_count": 1, "warning_count": 1, "info_count": 0}
        assert data["scan_duration"] == "500ms"
        assert data["reports"]["sast"]["issues"] == 2
        assert data["reports"]["sca"]["succeeded"] is False
        assert data["reports"]["sca"]["error_kind"] == "invocation_failure"
        assert store.exists()

        selection = aggregator.return_value.run.call_args.args[0]
        assert (selection.sast, selection.sca, selection.iac) == (True, True, False)

    def test_no_flags_runs_everything(self, client, tmp_path):
        aggregator = _patched_aggregator(ReportBundle())
        with patch("shieldscan.api.scan.check_tools"), \
             patch("shieldscan.api.scan.Aggregator", aggregator):
            resp = client.post("/api/scan", json={"path": str(tmp_path)})

        assert resp.status_code == 200
        selection = aggregator.return_value.run.call_args.args[0]
        assert (selection.sast, selection.sca, selection.iac) == (True, True, True)

    def test_missing_tool_is_400(self, client, tmp_path):
        error = ToolMissingError({"semgrep": "pip install semgrep"})
        with patch("shieldscan.api.scan.check_tools", side_effect=error):
            resp = client.post("/api/scan", json={"path": str(tmp_path), "sast": True})

        assert resp.status_code == 400
        assert "semgrep" in resp.json()["detail"]

    def test_missing_path_is_400(self, client, tmp_path):
        resp = client.post("/api/scan", json={"path": str(tmp_path / "does-not-exist")})
        assert resp.status_code == 400


# ===================================================================
# GET /api/report, /api/report/pdf
# ===================================================================
class TestReportEndpoints:

    def test_report_404_without_snapshot(self, client):
        resp = client.get("/api/report")
        assert resp.status_code == 404
        assert "shieldscan scan" in resp.json()["detail"]

    def test_pdf_404_without_snapshot(self, client):
        assert client.get("/api/report/pdf").status_code == 404

    def test_malformed_snapshot_is_404(self, client, store):
        store.directory.mkdir(parents=True)
        store.path.write_text('{"reports": {"sast": ["oops"]}}', encoding="utf-8")
        resp = client.get("/api/report")
        assert resp.status_code == 404
        assert "unreadable" in resp.json()["detail"]

    def test_json_report(self, client, store):
        store.save(_bundle())
        resp = client.get("/api/report")

        assert resp.status_code == 200
        data = resp.json()
        assert data["total_issues"] == 2
        assert [f["severity"] for f in data["reports"]["sast"]] == ["ERROR", "WARNING"]

    def test_pdf_report(self, client, store):
        store.save(_bundle())
        resp = client.get("/api/report/pdf")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    def test_pdf_render_failure_is_500(self, client, store):
        store.save(_bundle())
        with patch(
            "shieldscan.api.report.write_pdf_report",
            side_effect=RenderError("pdf", RuntimeError("font missing")),
        ):
            resp = client.get("/api/report/pdf")

        assert resp.status_code == 500
        assert "font missing" in resp.json()["detail"]
