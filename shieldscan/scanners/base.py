"""
Scanner Adapter
===============
One abstraction over every external scanner.

OUTPUT CONTRACT:
  invoke(target_path, cancel_event=None) -> ScanReport

Each concrete adapter supplies three things:
  build_command(target)       — argv list (never a shell string)
  exit_code_rule(code, out)   — explicit table lookup: parse? error?
  parse_output(stdout)        — raw JSON → List[Finding]

The shared ``invoke`` template turns every failure mode (missing binary,
timeout, bad exit code, malformed JSON) into a failed-but-valid ScanReport.
Adapters hold no shared mutable state.
"""
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from shieldscan.core.config import ScannerSettings
from shieldscan.executor.command_runner import CommandResult, run_command
from shieldscan.models.finding import Finding, ScanCategory
from shieldscan.models.scan_report import ErrorKind, InvocationStatus, ScanReport

logger = logging.getLogger(__name__)

# stderr kept on failed reports is capped; scanners can be very chatty
_STDERR_LIMIT = 4000


class OutputParseError(ValueError):
    """Scanner stdout was not the JSON document we expected."""


@dataclass(frozen=True)
class ExitCodeRule:
    """What to do with a given exit code."""
    parse: bool
    error: bool
    reason: str


def safe_target(target_path: str) -> str:
    """Keep a path that starts with '-' from being read as an option."""
    return f"./{target_path}" if target_path.startswith("-") else target_path


class ScannerAdapter(ABC):
    """
    Base class for SAST / SCA / IaC adapters.

    Parameters
    ----------
    settings : ScannerSettings or None
        Rule sets, exclusions and timeout (defaults if not provided).
    runner : callable or None
        Process runner, ``run_command`` by default.
    """

    category: ScanCategory
    tool: str
    install_hint: str = ""

    def __init__(
        self,
        settings: Optional[ScannerSettings] = None,
        runner: Optional[Callable[..., CommandResult]] = None,
    ) -> None:
        self.settings = settings or ScannerSettings()
        self._runner = runner or run_command

    # -------------------------------------------------------------------
    # Adapter-specific hooks
    # -------------------------------------------------------------------
    @abstractmethod
    def build_command(self, target_path: str) -> List[str]:
        pass

    @abstractmethod
    def exit_code_rule(self, exit_code: int, stdout: str) -> ExitCodeRule:
        pass

    @abstractmethod
    def parse_output(self, stdout: str) -> List[Finding]:
        pass

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    def invoke(self, target_path: str, cancel_event: Optional[threading.Event] = None) -> ScanReport:
        name = self.category.name
        command = self.build_command(str(target_path))
        logger.info("Running %s scan with %s on %s ...", name, self.tool, target_path)

        if cancel_event is None:
            result = self._runner(command, timeout=self.settings.timeout)
        else:
            result = self._runner(command, timeout=self.settings.timeout, cancel_event=cancel_event)

        if result.not_found:
            message = f"{self.tool} not found on PATH"
            if self.install_hint:
                message += f" ({self.install_hint})"
            return ScanReport.failure(self.category, ErrorKind.TOOL_MISSING, message)

        if result.timed_out:
            return ScanReport.failure(
                self.category, ErrorKind.TIMEOUT,
                result.error or f"{self.tool} timed out",
                stderr=_trim(result.stderr),
            )

        if result.exit_code is None:
            return ScanReport.failure(
                self.category, ErrorKind.INVOCATION_FAILURE,
                result.error or f"{self.tool} did not run",
            )

        rule = self.exit_code_rule(result.exit_code, result.stdout)
        logger.debug("%s exit code %d: %s", self.tool, result.exit_code, rule.reason)

        if not rule.parse:
            if rule.error:
                logger.warning(
                    "%s scan failed (exit code %d): %s",
                    name, result.exit_code, rule.reason,
                )
                return ScanReport.failure(
                    self.category, ErrorKind.INVOCATION_FAILURE,
                    f"{self.tool} {rule.reason} (exit code {result.exit_code})",
                    exit_code=result.exit_code,
                    stderr=_trim(result.stderr),
                )
            return ScanReport(
                category=self.category,
                status=InvocationStatus(exit_code=result.exit_code, message=rule.reason),
            )

        try:
            findings = self.parse_output(result.stdout)
        except OutputParseError as exc:
            logger.warning("Failed to parse %s output: %s", self.tool, exc)
            return ScanReport.failure(
                self.category, ErrorKind.PARSE_FAILURE,
                f"Could not parse {self.tool} output: {exc}",
                exit_code=result.exit_code,
                stderr=_trim(result.stderr),
            )

        logger.info("%s analysis finished: %d findings", name, len(findings))
        status = InvocationStatus(
            success=not rule.error,
            exit_code=result.exit_code,
            stderr=_trim(result.stderr) if rule.error else "",
            error_kind=ErrorKind.INVOCATION_FAILURE if rule.error else None,
            message=rule.reason,
        )
        return ScanReport(category=self.category, findings=findings, status=status)


def _trim(stderr: str) -> str:
    stderr = (stderr or "").strip()
    if len(stderr) <= _STDERR_LIMIT:
        return stderr
    return stderr[-_STDERR_LIMIT:]
