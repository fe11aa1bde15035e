"""
SCA Adapter
===========
Software composition analysis with osv-scanner.

osv-scanner reports vulnerabilities nested per source → package → vuln:

    {
      "results": [
        {
          "source": {"path": "/repo/package-lock.json", "type": "lockfile"},
          "packages": [
            {
              "package": {"name": "lodash", "version": "4.17.15", "ecosystem": "npm"},
              "vulnerabilities": [{"id": "GHSA-...", "summary": "...", "affected": [...],
                                   "database_specific": {"severity": "HIGH"}}],
              "groups": [{"ids": ["GHSA-...", "CVE-..."], "max_severity": "7.4"}]
            }
          ]
        }
      ]
    }

Each (package, vulnerability) pair becomes one Finding.

EXIT CODE CONTRACT (reproduced exactly; see SCA_EXIT_CODES):
    0        clean, nothing to parse
    1        vulnerabilities found
    2-126    vulnerability error, parsed for partial results (policy switch)
    127      general error, parsed only if a results document is present
    128      no packages to scan, not an error
    other    non-result error
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from shieldscan.core.constants import FIXED_VERSION_UNKNOWN, UNKNOWN_FILE
from shieldscan.models.finding import Finding, ScanCategory
from shieldscan.models.severity import Severity
from shieldscan.parser.severity import DEFAULT_SEVERITY, classify
from shieldscan.scanners.base import ExitCodeRule, OutputParseError, ScannerAdapter, safe_target

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit code table
# ---------------------------------------------------------------------------
SCA_EXIT_CODES: Dict[int, ExitCodeRule] = {
    0:   ExitCodeRule(parse=False, error=False, reason="no vulnerabilities found"),
    1:   ExitCodeRule(parse=True,  error=False, reason="vulnerabilities found"),
    128: ExitCodeRule(parse=False, error=False, reason="no packages to scan"),
}
VULN_ERROR_RANGE = range(2, 127)
VULN_ERROR_PARTIAL = ExitCodeRule(parse=True, error=False, reason="vulnerability error, partial results")
VULN_ERROR_STRICT = ExitCodeRule(parse=False, error=True, reason="vulnerability error")
GENERAL_ERROR_CODE = 127
GENERAL_ERROR_WITH_RESULTS = ExitCodeRule(parse=True, error=False, reason="general error, results present")
GENERAL_ERROR = ExitCodeRule(parse=False, error=True, reason="general error")
NON_RESULT_ERROR = ExitCodeRule(parse=False, error=True, reason="non-result error")

# Recognizable start of a results document, pretty-printed or compact
_RESULTS_MARKER_RE = re.compile(r'\{\s*"results"\s*:')


def sca_exit_code_rule(exit_code: int, stdout: str, partial_results_on_error: bool = True) -> ExitCodeRule:
    """Look up what an osv-scanner exit code means."""
    rule = SCA_EXIT_CODES.get(exit_code)
    if rule is not None:
        return rule
    if exit_code in VULN_ERROR_RANGE:
        return VULN_ERROR_PARTIAL if partial_results_on_error else VULN_ERROR_STRICT
    if exit_code == GENERAL_ERROR_CODE:
        if _RESULTS_MARKER_RE.search(stdout or ""):
            return GENERAL_ERROR_WITH_RESULTS
        return GENERAL_ERROR
    return NON_RESULT_ERROR


# ---------------------------------------------------------------------------
# Ecosystem → manifest file
# ---------------------------------------------------------------------------
ECOSYSTEM_MANIFESTS: Dict[str, str] = {
    "npm":        "package.json",
    "nodejs":     "package.json",
    "pip":        "requirements.txt",
    "pypi":       "requirements.txt",
    "rubygems":   "Gemfile",
    "maven":      "pom.xml",
    "gradle":     "build.gradle",
    "composer":   "composer.json",
    "packagist":  "composer.json",
    "nuget":      "packages.config",
    "cargo":      "Cargo.toml",
    "crates.io":  "Cargo.toml",
    "go":         "go.mod",
}


def manifest_for(ecosystem: Optional[str]) -> str:
    return ECOSYSTEM_MANIFESTS.get((ecosystem or "").strip().lower(), UNKNOWN_FILE)


# ---------------------------------------------------------------------------
# Field resolution
# ---------------------------------------------------------------------------
def extract_fixed_version(vuln: Dict[str, Any]) -> str:
    """
    Walk affected ranges for a "fixed" event.

    Fallbacks, in order: "> <last_affected>" from an affected entry's
    database_specific, the advisory-level database_specific.fixed_version,
    then "Not specified".
    """
    affected_list = vuln.get("affected")
    if isinstance(affected_list, list):
        for affected in affected_list:
            if not isinstance(affected, dict):
                continue
            for version_range in affected.get("ranges") or []:
                if not isinstance(version_range, dict):
                    continue
                for event in version_range.get("events") or []:
                    if isinstance(event, dict) and event.get("fixed"):
                        return str(event["fixed"])

            db_specific = affected.get("database_specific")
            if isinstance(db_specific, dict) and db_specific.get("last_affected"):
                return f"> {db_specific['last_affected']}"

    db_specific = vuln.get("database_specific")
    if isinstance(db_specific, dict) and db_specific.get("fixed_version"):
        return str(db_specific["fixed_version"])

    return FIXED_VERSION_UNKNOWN


def _group_for(vuln_id: str, groups: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for group in groups:
        if isinstance(group, dict) and vuln_id in (group.get("ids") or []):
            return group
    first = groups[0] if groups else None
    return first if isinstance(first, dict) else None


def determine_severity(vuln: Dict[str, Any], package_data: Dict[str, Any]) -> Severity:
    """
    Severity fallback chain:
      1. advisory database_specific.severity label
      2. the package group's max_severity score, through the score bands
      3. WARNING
    """
    db_specific = vuln.get("database_specific")
    if isinstance(db_specific, dict) and db_specific.get("severity"):
        return classify(db_specific["severity"])

    group = _group_for(vuln.get("id") or "", package_data.get("groups") or [])
    if group is not None:
        max_severity = group.get("max_severity")
        if max_severity not in (None, ""):
            return classify(max_severity)

    return DEFAULT_SEVERITY


def _locate_json(stdout: str) -> Dict[str, Any]:
    """osv-scanner may print text before the JSON document; start at the first '{'."""
    start = (stdout or "").find("{")
    if start == -1:
        raise OutputParseError("no JSON document in output")
    try:
        data = json.loads(stdout[start:])
    except json.JSONDecodeError as exc:
        raise OutputParseError(f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise OutputParseError("expected a JSON object")
    return data


class ScaAdapter(ScannerAdapter):
    category = ScanCategory.SCA
    tool = "osv-scanner"
    install_hint = "go install github.com/google/osv-scanner/cmd/osv-scanner@v1"

    def build_command(self, target_path: str) -> List[str]:
        return ["osv-scanner", "scan", "--format", "json", safe_target(target_path)]

    def exit_code_rule(self, exit_code: int, stdout: str) -> ExitCodeRule:
        return sca_exit_code_rule(
            exit_code, stdout,
            partial_results_on_error=self.settings.sca_partial_results_on_error,
        )

    def parse_output(self, stdout: str) -> List[Finding]:
        data = _locate_json(stdout)
        findings: List[Finding] = []

        for scan_result in data.get("results") or []:
            if not isinstance(scan_result, dict):
                continue
            source_info = scan_result.get("source")
            source = source_info.get("path", "") if isinstance(source_info, dict) else ""
            for package_data in scan_result.get("packages") or []:
                if not isinstance(package_data, dict):
                    continue
                for vuln in package_data.get("vulnerabilities") or []:
                    if not isinstance(vuln, dict):
                        continue
                    try:
                        findings.append(self.to_finding(vuln, package_data, source))
                    except (AttributeError, TypeError, ValueError) as exc:
                        logger.warning("Skipping malformed vulnerability %r: %s", vuln.get("id"), exc)

        return findings

    def to_finding(self, vuln: Dict[str, Any], package_data: Dict[str, Any], source: str = "") -> Finding:
        package_info = package_data.get("package")
        if not isinstance(package_info, dict):
            package_info = {}
        package_name = package_info.get("name") or "unknown"
        package_version = package_info.get("version") or "unknown"
        ecosystem = package_info.get("ecosystem") or "unknown"

        vuln_id = vuln.get("id") or "unknown"
        summary = vuln.get("summary") or vuln.get("details") or "No description available"
        fixed_version = extract_fixed_version(vuln)
        group = _group_for(vuln_id, package_data.get("groups") or [])

        return Finding(
            category=self.category,
            title=f"{vuln_id}: {package_name}",
            severity=determine_severity(vuln, package_data),
            file_path=manifest_for(ecosystem),
            line=None,
            description=summary,
            rule_id=vuln_id,
            extra_metadata={
                "category": "security",
                "subcategory": "vulnerable-dependencies",
                "vulnerability_id": vuln_id,
                "aliases": list(vuln.get("aliases") or []),
                "max_severity": (group or {}).get("max_severity"),
                "source": source,
                "message": f"Vulnerable dependency: {package_name} ({package_version}) - {vuln_id}",
                "package": {
                    "name": package_name,
                    "ecosystem": ecosystem,
                    "vulnerable_version": package_version,
                    "fixed_version": fixed_version,
                },
            },
        )
