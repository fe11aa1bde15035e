"""
Configuration
=============
Loads environment variables from .env file using python-dotenv, plus an
optional per-project ``shieldscan.yml`` overriding scanner rule sets.

Environment Variables:
    GEMINI_API_KEY                — Enables the false-positive annotator (Google Gemini)
    GEMINI_MODEL                  — Model used by the annotator (default: gemini-2.5-flash)
    GEMINI_BASE_URL               — Gemini REST base URL
    SCANNER_TIMEOUT               — Max seconds a single scanner process may run (default: 600)
    ANNOTATOR_TIMEOUT             — HTTP timeout for one annotation call (default: 20)
    SHIELDSCAN_OUTPUT_DIR         — Directory holding the scan snapshot (default: .shieldscan)
    CONSOLE_TOP_N                 — Findings shown per category on the console (default: 5)
    SCA_PARTIAL_RESULTS_ON_ERROR  — Parse osv-scanner output on exit codes 2-126 (default: true)
    SHIELDSCAN_LOG_LEVEL          — Logging level (default: INFO)
    SHIELDSCAN_LOG_FILE           — Optional log file path
    DEBUG                         — Any non-empty value forces DEBUG logging

Timeout Philosophy:
    Scanners have no timeout of their own. SCANNER_TIMEOUT is the external
    ceiling that keeps one hung scanner from stalling the whole run; the
    process is killed and its category is recorded as failed.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)

SCANNER_TIMEOUT = float(os.getenv("SCANNER_TIMEOUT", 600))
ANNOTATOR_TIMEOUT = float(os.getenv("ANNOTATOR_TIMEOUT", 20))

SHIELDSCAN_OUTPUT_DIR = os.getenv("SHIELDSCAN_OUTPUT_DIR", ".shieldscan")
SNAPSHOT_FILENAME = "last_scan.json"

CONSOLE_TOP_N = int(os.getenv("CONSOLE_TOP_N", 5))

SCA_PARTIAL_RESULTS_ON_ERROR = _env_bool("SCA_PARTIAL_RESULTS_ON_ERROR", True)

LOG_LEVEL = "DEBUG" if os.getenv("DEBUG") else os.getenv("SHIELDSCAN_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("SHIELDSCAN_LOG_FILE")

PROJECT_CONFIG_FILENAME = "shieldscan.yml"

# ---------------------------------------------------------------------------
# Default scanner rule sets
# ---------------------------------------------------------------------------
DEFAULT_SAST_RULESETS: List[str] = ["p/security-audit", "p/owasp-top-ten", "p/secrets"]

# Test and vendored code is excluded from SAST only.
DEFAULT_SAST_EXCLUDES: List[str] = [
    "test", "tests", "spec", "__tests__", "*_test.go", "test_*.py",
    "vendor", "node_modules", "third_party",
]

DEFAULT_IAC_RULESETS: List[str] = ["r/terraform", "r/kubernetes", "r/docker", "r/yaml"]


@dataclass
class ScannerSettings:
    """Effective scanner configuration for one run."""
    sast_rulesets: List[str] = field(default_factory=lambda: list(DEFAULT_SAST_RULESETS))
    sast_excludes: List[str] = field(default_factory=lambda: list(DEFAULT_SAST_EXCLUDES))
    iac_rulesets: List[str] = field(default_factory=lambda: list(DEFAULT_IAC_RULESETS))
    timeout: Optional[float] = SCANNER_TIMEOUT
    sca_partial_results_on_error: bool = SCA_PARTIAL_RESULTS_ON_ERROR


def _string_list(value, key: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    logger.warning("Ignoring '%s' in %s: expected a list of strings", key, PROJECT_CONFIG_FILENAME)
    return None


def load_scanner_settings(project_dir: Optional[str] = None) -> ScannerSettings:
    """
    Build ScannerSettings from defaults and an optional shieldscan.yml.

    The file is looked up in ``project_dir`` (default: current directory).
    Malformed files are logged and ignored; defaults always apply.

    Example shieldscan.yml::

        sast:
          rulesets: [p/python]
          exclude: [tests, migrations]
        iac:
          rulesets: [r/terraform]
        timeout: 300
    """
    settings = ScannerSettings()
    path = Path(project_dir or ".") / PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return settings

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return settings

    if not isinstance(data, dict):
        logger.warning("%s does not contain a mapping; using defaults", path)
        return settings

    sast = data.get("sast") or {}
    iac = data.get("iac") or {}
    if isinstance(sast, dict):
        settings.sast_rulesets = _string_list(sast.get("rulesets"), "sast.rulesets") or settings.sast_rulesets
        excludes = _string_list(sast.get("exclude"), "sast.exclude")
        if excludes is not None:
            settings.sast_excludes = excludes
    if isinstance(iac, dict):
        settings.iac_rulesets = _string_list(iac.get("rulesets"), "iac.rulesets") or settings.iac_rulesets

    timeout = data.get("timeout")
    if timeout is not None:
        try:
            settings.timeout = float(timeout)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric timeout %r in %s", timeout, path)

    logger.info("Loaded scanner settings from %s", path.resolve())
    return settings
