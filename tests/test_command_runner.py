"""
Unit Tests — Command Runner & Formatting Helpers
=================================================
subprocess.Popen is mocked except for the real-process tests, which run the
current interpreter so no scanner needs to be installed.
"""
import subprocess
import sys
import threading
from unittest.mock import MagicMock, patch

from shieldscan.executor.command_runner import CommandResult, run_command
from shieldscan.utils.formatting import format_duration, truncate

POPEN = "shieldscan.executor.command_runner.subprocess.Popen"


def _proc(returncode=0, stdout="", stderr="", communicate=None):
    proc = MagicMock(returncode=returncode)
    if communicate is not None:
        proc.communicate.side_effect = communicate
    else:
        proc.communicate.return_value = (stdout, stderr)
    return proc


# ===================================================================
# run_command
# ===================================================================
class TestRunCommand:

    def test_captures_output_and_exit_code(self):
        proc = _proc(returncode=1, stdout='{"results": []}', stderr="warn")
        with patch(POPEN, return_value=proc) as mock_popen:
            result = run_command(["semgrep", "scan", "."], timeout=30)

        assert result.exit_code == 1
        assert result.stdout == '{"results": []}'
        assert result.stderr == "warn"
        assert not result.timed_out
        assert not result.cancelled
        assert not result.not_found

        assert mock_popen.call_args.kwargs["shell"] is False
        assert mock_popen.call_args.args[0] == ["semgrep", "scan", "."]
        assert 0 < proc.communicate.call_args.kwargs["timeout"] <= 30

    def test_missing_executable(self):
        with patch(POPEN, side_effect=FileNotFoundError("nope")):
            result = run_command(["osv-scanner", "scan"])

        assert result.not_found is True
        assert result.exit_code is None
        assert "osv-scanner" in result.error

    def test_timeout_is_reported(self):
        expired = subprocess.TimeoutExpired(["semgrep"], 0)
        proc = _proc(communicate=[expired, ("partial", "")])
        with patch(POPEN, return_value=proc):
            result = run_command(["semgrep"], timeout=0)

        assert result.timed_out is True
        assert result.exit_code is None
        assert result.stdout == "partial"
        proc.kill.assert_called_once()

    def test_set_cancel_event_kills_process(self):
        expired = subprocess.TimeoutExpired(["semgrep"], 0.2)
        proc = _proc(communicate=[expired, ("", "")])
        event = threading.Event()
        event.set()
        with patch(POPEN, return_value=proc):
            result = run_command(["semgrep"], cancel_event=event)

        assert result.cancelled is True
        assert not result.timed_out
        assert result.exit_code is None
        proc.kill.assert_called_once()

    def test_os_error_is_reported(self):
        with patch(POPEN, side_effect=PermissionError("denied")):
            result = run_command(["semgrep"])

        assert result.exit_code is None
        assert result.error == "denied"

    def test_real_process_is_killed_on_timeout(self):
        result = run_command([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5)
        assert result.timed_out is True
        assert result.duration_seconds < 10

    def test_real_process_is_killed_on_cancel(self):
        event = threading.Event()
        timer = threading.Timer(0.3, event.set)
        timer.start()
        try:
            result = run_command(
                [sys.executable, "-c", "import time; time.sleep(10)"], cancel_event=event,
            )
        finally:
            timer.cancel()
        assert result.cancelled is True
        assert result.duration_seconds < 10

    def test_real_process_output(self):
        result = run_command([sys.executable, "-c", "print('hello')"])
        assert isinstance(result, CommandResult)
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"


# ===================================================================
# Formatting helpers
# ===================================================================
class TestFormatDuration:

    def test_milliseconds(self):
        assert format_duration(0.045) == "45ms"

    def test_seconds(self):
        assert format_duration(1.23) == "1.2s"

    def test_minutes(self):
        assert format_duration(123) == "2m 3s"

    def test_rounding_boundary_is_not_1000ms(self):
        assert format_duration(0.9996) != "1000ms"

    def test_rounding_boundary_is_not_60s(self):
        assert format_duration(59.96) == "1m 0s"
        assert format_duration(59.94) == "59.9s"

    def test_none_and_negative(self):
        assert format_duration(None) == "0ms"
        assert format_duration(-3) == "0ms"


class TestTruncate:

    def test_short_text_untouched(self):
        assert truncate("short", 120) == "short"

    def test_long_text_cut_with_ellipsis(self):
        out = truncate("x" * 200, 120)
        assert len(out) == 120
        assert out.endswith("...")

    def test_whitespace_collapsed(self):
        assert truncate("a\n  b\tc", 120) == "a b c"
