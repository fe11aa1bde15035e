"""
Unit Tests — SCA Adapter (osv-scanner)
======================================
Exit-code table, fixed-version and severity fallback chains, manifest
mapping, and tolerant JSON location.
"""
import json

import pytest

from shieldscan.core.config import ScannerSettings
from shieldscan.executor.command_runner import CommandResult
from shieldscan.models.finding import ScanCategory
from shieldscan.models.scan_report import ErrorKind
from shieldscan.models.severity import Severity
from shieldscan.scanners.sca import (
    ScaAdapter,
    determine_severity,
    extract_fixed_version,
    manifest_for,
    sca_exit_code_rule,
)


def _osv_output(vulnerabilities, groups=None, ecosystem="npm", name="lodash", version="4.17.15"):
    return {
        "results": [
            {
                "source": {"path": "/repo/package-lock.json", "type": "lockfile"},
                "packages": [
                    {
                        "package": {"name": name, "version": version, "ecosystem": ecosystem},
                        "vulnerabilities": vulnerabilities,
                        "groups": groups or [],
                    }
                ],
            }
        ]
    }


LODASH_VULN = {
    "id": "GHSA-p6mc-m468-83gw",
    "aliases": ["CVE-2020-8203"],
    "summary": "Prototype pollution in lodash",
    "affected": [
        {"ranges": [{"type": "SEMVER", "events": [{"introduced": "0"}, {"fixed": "4.17.19"}]}]}
    ],
    "database_specific": {"severity": "HIGH"},
}


def _runner(exit_code, stdout="", stderr=""):
    def runner(command, timeout=None):
        return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)
    return runner


# ===================================================================
# Exit code table
# ===================================================================
class TestExitCodeTable:

    def test_zero_is_clean_without_parsing(self):
        rule = sca_exit_code_rule(0, "")
        assert not rule.parse and not rule.error

    def test_one_means_vulnerabilities(self):
        rule = sca_exit_code_rule(1, "{}")
        assert rule.parse and not rule.error

    def test_128_no_packages_is_not_an_error(self):
        rule = sca_exit_code_rule(128, "")
        assert not rule.parse and not rule.error

    @pytest.mark.parametrize("code", [2, 50, 126])
    def test_vulnerability_error_range_parses_partial_results(self, code):
        assert sca_exit_code_rule(code, "").parse

    def test_vulnerability_error_range_strict(self):
        rule = sca_exit_code_rule(5, "", partial_results_on_error=False)
        assert not rule.parse and rule.error

    def test_127_with_results_document(self):
        rule = sca_exit_code_rule(127, 'warning\n{\n  "results": []\n}')
        assert rule.parse

    def test_127_without_results_is_error(self):
        rule = sca_exit_code_rule(127, "fatal: something broke")
        assert not rule.parse and rule.error

    def test_other_codes_are_errors(self):
        rule = sca_exit_code_rule(200, "")
        assert not rule.parse and rule.error


# ===================================================================
# Invocation
# ===================================================================
class TestScaInvoke:

    def test_command(self):
        assert ScaAdapter().build_command("/repo") == ["osv-scanner", "scan", "--format", "json", "/repo"]

    def test_clean_exit_gives_empty_success(self):
        report = ScaAdapter(runner=_runner(0)).invoke("/repo")
        assert report.succeeded
        assert report.findings == []
        assert report.status.exit_code == 0

    def test_128_gives_empty_success(self):
        report = ScaAdapter(runner=_runner(128, stderr="No package sources found")).invoke("/repo")
        assert report.succeeded
        assert report.findings == []

    def test_127_without_marker_is_invocation_failure(self):
        report = ScaAdapter(runner=_runner(127, stdout="", stderr="crash")).invoke("/repo")
        assert not report.succeeded
        assert report.status.error_kind == ErrorKind.INVOCATION_FAILURE
        assert report.status.exit_code == 127

    def test_strict_setting_for_vulnerability_errors(self):
        settings = ScannerSettings(sca_partial_results_on_error=False)
        report = ScaAdapter(settings=settings, runner=_runner(3, stdout="{}")).invoke("/repo")
        assert report.status.error_kind == ErrorKind.INVOCATION_FAILURE

    def test_findings_from_exit_one(self):
        stdout = "Scanning dir /repo\n" + json.dumps(_osv_output([LODASH_VULN]))
        report = ScaAdapter(runner=_runner(1, stdout=stdout)).invoke("/repo")

        assert report.succeeded
        assert len(report.findings) == 1
        finding = report.findings[0]
        assert finding.category == ScanCategory.SCA
        assert finding.title == "GHSA-p6mc-m468-83gw: lodash"
        assert finding.severity == Severity.ERROR
        assert finding.file_path == "package.json"
        assert finding.line is None
        assert finding.location == "package.json:?"
        assert finding.rule_id == "GHSA-p6mc-m468-83gw"
        assert finding.description == "Prototype pollution in lodash"

        package = finding.extra_metadata["package"]
        assert package == {
            "name": "lodash",
            "ecosystem": "npm",
            "vulnerable_version": "4.17.15",
            "fixed_version": "4.17.19",
        }
        assert finding.extra_metadata["aliases"] == ["CVE-2020-8203"]
        assert finding.extra_metadata["source"] == "/repo/package-lock.json"

    def test_malformed_record_does_not_drop_valid_ones(self):
        good = {"id": "GOOD-1", "summary": "Good one", "database_specific": {"severity": "HIGH"}}
        bad = {"id": "BAD-1", "summary": "Bad one", "affected": [{"ranges": ["oops"]}],
               "aliases": 7}
        stdout = json.dumps(_osv_output([good, bad]))
        report = ScaAdapter(runner=_runner(1, stdout=stdout)).invoke("/repo")

        assert report.succeeded
        assert [f.rule_id for f in report.findings] == ["GOOD-1"]

    def test_non_mapping_package_info(self):
        document = _osv_output([LODASH_VULN])
        document["results"][0]["packages"][0]["package"] = "lodash@4.17.15"
        report = ScaAdapter(runner=_runner(1, stdout=json.dumps(document))).invoke("/repo")

        assert report.succeeded
        assert report.findings[0].title == "GHSA-p6mc-m468-83gw: unknown"
        assert report.findings[0].file_path == "dependencies"

    def test_no_json_in_output_is_parse_failure(self):
        report = ScaAdapter(runner=_runner(1, stdout="no json here")).invoke("/repo")
        assert report.status.error_kind == ErrorKind.PARSE_FAILURE


# ===================================================================
# Fixed version fallback chain
# ===================================================================
class TestFixedVersion:

    def test_fixed_event(self):
        assert extract_fixed_version(LODASH_VULN) == "4.17.19"

    def test_last_affected(self):
        vuln = {"affected": [{"ranges": [], "database_specific": {"last_affected": "2.0.1"}}]}
        assert extract_fixed_version(vuln) == "> 2.0.1"

    def test_advisory_level_fixed_version(self):
        vuln = {"affected": [], "database_specific": {"fixed_version": "1.2.3"}}
        assert extract_fixed_version(vuln) == "1.2.3"

    def test_not_specified(self):
        assert extract_fixed_version({"id": "X"}) == "Not specified"

    def test_non_mapping_ranges_skipped(self):
        vuln = {"affected": [{"ranges": ["oops", {"events": [{"fixed": "1.0.1"}]}]}]}
        assert extract_fixed_version(vuln) == "1.0.1"


# ===================================================================
# Severity fallback chain
# ===================================================================
class TestScaSeverity:

    def test_database_label_wins(self):
        vuln = {"id": "A", "database_specific": {"severity": "MODERATE"}}
        groups = {"groups": [{"ids": ["A"], "max_severity": "9.8"}]}
        assert determine_severity(vuln, groups) == Severity.WARNING

    def test_group_score(self):
        vuln = {"id": "A"}
        assert determine_severity(vuln, {"groups": [{"ids": ["A"], "max_severity": "9.8"}]}) == Severity.ERROR
        assert determine_severity(vuln, {"groups": [{"ids": ["A"], "max_severity": "2.1"}]}) == Severity.INFO

    def test_first_group_when_id_not_listed(self):
        vuln = {"id": "A"}
        assert determine_severity(vuln, {"groups": [{"ids": ["B"], "max_severity": "5.0"}]}) == Severity.WARNING

    def test_default_warning(self):
        assert determine_severity({"id": "A"}, {}) == Severity.WARNING


# ===================================================================
# Manifest mapping
# ===================================================================
class TestManifest:

    @pytest.mark.parametrize("ecosystem, manifest", [
        ("npm", "package.json"),
        ("PyPI", "requirements.txt"),
        ("RubyGems", "Gemfile"),
        ("Maven", "pom.xml"),
        ("Go", "go.mod"),
        ("crates.io", "Cargo.toml"),
    ])
    def test_known_ecosystems(self, ecosystem, manifest):
        assert manifest_for(ecosystem) == manifest

    def test_unknown_ecosystem(self):
        assert manifest_for("Hackage") == "dependencies"
        assert manifest_for(None) == "dependencies"
