"""
Scan Report Model
=================
Per-category result of one scanner invocation.

Fields:
    category    — scanner family
    findings    — Findings in scanner emission order (sorted later by the ranker)
    status      — how the invocation went (exit code, stderr, failure kind)

A failed invocation is still a ScanReport: empty findings plus a status
whose error_kind says what went wrong. It never aborts the run.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from shieldscan.models.finding import Finding, ScanCategory


class ErrorKind(str, Enum):
    TOOL_MISSING = "tool_missing"
    INVOCATION_FAILURE = "invocation_failure"
    PARSE_FAILURE = "parse_failure"
    TIMEOUT = "timeout"


class InvocationStatus(BaseModel):
    success: bool = True
    exit_code: Optional[int] = None
    stderr: str = ""
    error_kind: Optional[ErrorKind] = None
    message: str = ""


class ScanReport(BaseModel):
    category: ScanCategory
    findings: List[Finding] = []
    status: InvocationStatus = Field(default_factory=InvocationStatus)

    @classmethod
    def failure(
        cls,
        category: ScanCategory,
        kind: ErrorKind,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> "ScanReport":
        """Empty report flagged as failed."""
        return cls(
            category=category,
            findings=[],
            status=InvocationStatus(
                success=False,
                exit_code=exit_code,
                stderr=stderr,
                error_kind=kind,
                message=message,
            ),
        )

    @property
    def succeeded(self) -> bool:
        return self.status.success
