"""
Constants
Centralised display labels, icons, and sentinels shared by scanners and reporters.
"""
VERSION = "0.4.0"

CATEGORY_LABELS = {
    "sast": "SAST (Static Analysis)",
    "sca": "SCA (Dependency Vulnerabilities)",
    "iac": "IaC (Infrastructure as Code)",
}

CATEGORY_ICONS = {
    "sast": "🔍",
    "sca": "📦",
    "iac": "☁️",
}

SEVERITY_ICONS = {
    "ERROR": "🔴",
    "WARNING": "🟡",
    "INFO": "🔵",
}

FIXED_VERSION_UNKNOWN = "Not specified"
UNKNOWN_FILE = "dependencies"
UNKNOWN_LINE = "?"

DESCRIPTION_PREVIEW_CHARS = 120
TOP_FINDINGS_LIMIT = 10
