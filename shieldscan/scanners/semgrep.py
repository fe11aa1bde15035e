"""
Semgrep Output Parsing
======================
Shared by the SAST and IaC adapters, which only differ in rule sets.

Semgrep JSON shape (the parts we read):

    {
      "results": [
        {
          "check_id": "python.lang.security.audit.exec-detected",
          "path": "app/main.py",
          "start": {"line": 12, "col": 5},
          "extra": {
            "message": "Detected exec(). ...",
            "severity": "WARNING",
            "metadata": {"category": "security", "owasp": [...], "cwe": [...]}
          }
        }
      ],
      "errors": [...]
    }

Exit codes: 0 = ran, 1 = ran and reported blocking findings; anything else
is a semgrep failure and the output is not trusted.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from shieldscan.models.finding import Finding
from shieldscan.scanners.base import ExitCodeRule, OutputParseError, ScannerAdapter

logger = logging.getLogger(__name__)

SEMGREP_EXIT_CODES: Dict[int, ExitCodeRule] = {
    0: ExitCodeRule(parse=True, error=False, reason="scan completed"),
    1: ExitCodeRule(parse=True, error=False, reason="scan completed with blocking findings"),
}
_SEMGREP_FAILURE = ExitCodeRule(parse=False, error=True, reason="scan failed")

# A period that ends a sentence: followed by whitespace or end of text.
# "os.system" and "1.2.3" do not match.
_SENTENCE_END_RE = re.compile(r"\.(?=\s|$)")
_WHITESPACE_RE = re.compile(r"\s+")


def derive_title(message: str, fallback: str = "") -> str:
    """Message text up to its first sentence-terminating period."""
    text = _WHITESPACE_RE.sub(" ", message or "").strip()
    if not text:
        return fallback or "Untitled finding"
    match = _SENTENCE_END_RE.search(text)
    if match and match.start() > 0:
        return text[:match.start()].strip()
    return text


def load_json_document(stdout: str) -> Dict[str, Any]:
    """Parse stdout as one JSON object or raise OutputParseError."""
    if not stdout or not stdout.strip():
        raise OutputParseError("empty output")
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise OutputParseError(f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise OutputParseError("expected a JSON object")
    return data


def _line_of(result: Dict[str, Any]) -> Optional[int]:
    start = result.get("start")
    if isinstance(start, dict):
        return start.get("line")
    return None


class SemgrepAdapter(ScannerAdapter):
    """Common semgrep handling; subclasses choose rule sets and exclusions."""

    tool = "semgrep"
    install_hint = "pip install semgrep"

    def exit_code_rule(self, exit_code: int, stdout: str) -> ExitCodeRule:
        return SEMGREP_EXIT_CODES.get(exit_code, _SEMGREP_FAILURE)

    def parse_output(self, stdout: str) -> List[Finding]:
        data = load_json_document(stdout)
        results = data.get("results") or []
        if not isinstance(results, list):
            raise OutputParseError("'results' is not a list")

        errors = data.get("errors") or []
        if errors:
            logger.debug("semgrep reported %d non-fatal errors", len(errors))

        findings: List[Finding] = []
        for result in results:
            if not isinstance(result, dict):
                logger.debug("semgrep: skipping non-object result %r", result)
                continue
            findings.append(self.to_finding(result))
        return findings

    def to_finding(self, result: Dict[str, Any]) -> Finding:
        extra = result.get("extra") or {}
        metadata = extra.get("metadata") or {}
        check_id = result.get("check_id") or ""
        message = extra.get("message") or check_id or "N/A"

        return Finding(
            category=self.category,
            title=derive_title(message, fallback=check_id),
            severity=extra.get("severity"),
            file_path=result.get("path") or "",
            line=_line_of(result),
            description=message,
            rule_id=check_id,
            extra_metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )

    def _config_args(self, rulesets: List[str]) -> List[str]:
        args: List[str] = []
        for ruleset in rulesets:
            args.append(f"--config={ruleset}")
        return args
