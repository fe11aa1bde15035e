"""
Command Runner
==============
Runs one external scanner process and returns a structured result.

BOUNDARY RULES:
    - Commands are argv lists; shell=True is never used, so a target path
      can never be interpolated into a shell command line.
    - The runner ONLY observes execution. It never parses scanner output
      and never decides whether an exit code means success.
    - A timeout or a set cancel event kills the child process; the result
      reports which one through ``timed_out`` / ``cancelled``.
"""
import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

CANCEL_POLL_SECONDS = 0.2


@dataclass
class CommandResult:
    """
    Structured output from a single process execution.

    Fields
    ------
    exit_code : int | None
        Process exit code, None when the process never finished.
    stdout : str
    stderr : str
    duration_seconds : float
    timed_out : bool
        True if the process was killed by the external timeout.
    cancelled : bool
        True if the process was killed because the caller cancelled the scan.
    not_found : bool
        True if the executable does not exist.
    error : str | None
        Infrastructure error message (not scanner findings).
    """
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0
    timed_out: bool = False
    cancelled: bool = False
    not_found: bool = False
    error: Optional[str] = None


def run_command(
    command: Sequence[str],
    timeout: Optional[float] = None,
    cwd: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> CommandResult:
    """
    Execute ``command`` without a shell, capturing stdout and stderr.

    Parameters
    ----------
    command : Sequence[str]
        argv list, executable first.
    timeout : float | None
        Seconds before the process is killed. None waits forever.
    cwd : str | None
        Working directory for the child.
    cancel_event : threading.Event | None
        Polled every CANCEL_POLL_SECONDS; once set, the process is killed.

    Returns
    -------
    CommandResult
        Never raises for missing executables, timeouts or cancellation.
    """
    argv: List[str] = [str(part) for part in command]
    logger.debug("Executing: %s", argv)
    start = time.monotonic()

    try:
        proc = subprocess.Popen(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            cwd=cwd,
            shell=False,
        )
    except FileNotFoundError:
        logger.warning("%s not installed or not on PATH", argv[0])
        return CommandResult(
            duration_seconds=time.monotonic() - start,
            not_found=True,
            error=f"{argv[0]} not found",
        )
    except OSError as exc:
        logger.warning("%s could not be started: %s", argv[0], exc)
        return CommandResult(
            duration_seconds=time.monotonic() - start,
            error=str(exc),
        )

    deadline = None if timeout is None else start + timeout
    while True:
        wait = None if cancel_event is None else CANCEL_POLL_SECONDS
        if deadline is not None:
            remaining = max(deadline - time.monotonic(), 0.0)
            wait = remaining if wait is None else min(wait, remaining)
        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            if cancel_event is not None and cancel_event.is_set():
                stdout, stderr = _kill(proc)
                logger.warning("%s cancelled, process killed", argv[0])
                return CommandResult(
                    stdout=stdout or "",
                    stderr=stderr or "",
                    duration_seconds=time.monotonic() - start,
                    cancelled=True,
                    error=f"{argv[0]} cancelled",
                )
            if deadline is not None and time.monotonic() >= deadline:
                stdout, stderr = _kill(proc)
                logger.warning("%s timed out after %.0fs, process killed", argv[0], timeout)
                return CommandResult(
                    stdout=stdout or "",
                    stderr=stderr or "",
                    duration_seconds=time.monotonic() - start,
                    timed_out=True,
                    error=f"{argv[0]} timed out after {timeout:.0f}s",
                )

    duration = time.monotonic() - start
    logger.debug("%s exited with %d in %.2fs", argv[0], proc.returncode, duration)
    return CommandResult(
        exit_code=proc.returncode,
        stdout=stdout or "",
        stderr=stderr or "",
        duration_seconds=duration,
    )


def _kill(proc: subprocess.Popen) -> Tuple[str, str]:
    proc.kill()
    return proc.communicate()
