"""
Errors
======
User-facing failures that abort a command before any report is produced.

Per-scanner problems (bad exit code, unparsable output, timeouts) are NOT
exceptions: they are recorded on the ScanReport's InvocationStatus so the
rest of the run completes. Annotator failures never leave the annotator.
"""
from typing import Dict, Optional


class ShieldScanError(Exception):
    """Base class for errors shown to the user."""


class ToolMissingError(ShieldScanError):
    """One or more required scanner binaries are not on PATH."""

    def __init__(self, missing: Dict[str, str]) -> None:
        self.missing = missing
        lines = [f"  - {tool}: {hint}" for tool, hint in missing.items()]
        super().__init__("Required scanners not found:\n" + "\n".join(lines))


class SnapshotMissingError(ShieldScanError):
    """Report generation was requested before any scan was persisted."""

    def __init__(self, path: str, reason: Optional[str] = None) -> None:
        self.path = path
        self.reason = reason
        if reason:
            message = f"Scan results at {path} are unreadable ({reason}). Run 'shieldscan scan' again."
        else:
            message = f"No scan results found at {path}. Run 'shieldscan scan' first."
        super().__init__(message)


class RenderError(ShieldScanError):
    """A report writer failed; carries the underlying cause."""

    def __init__(self, fmt: str, cause: Optional[BaseException] = None) -> None:
        self.fmt = fmt
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to generate {fmt.upper()} report{detail}")
