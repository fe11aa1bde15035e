"""
Command Line Interface
======================
    shieldscan scan [PATH] [-s] [-c] [-i] [--no-ai]
    shieldscan report [-f json|pdf] [-o OUTPUT]
    shieldscan --version

Exit codes:
    0 — success (findings do not change the exit code)
    1 — user-facing error: missing scanner, no snapshot, report render failure
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from shieldscan.core.config import LOG_FILE, LOG_LEVEL, load_scanner_settings
from shieldscan.core.constants import VERSION
from shieldscan.core.errors import ShieldScanError
from shieldscan.llm.annotator import FalsePositiveAnnotator
from shieldscan.reporting.console import format_console_report, rendered_findings
from shieldscan.reporting.generator import REPORT_FORMATS, generate_report
from shieldscan.reporting.snapshot import SnapshotStore
from shieldscan.scanners.aggregator import ScanSelection, check_tools, run_scan
from shieldscan.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shieldscan",
        description="Run SAST, SCA and IaC scanners and report their findings in one place.",
    )
    parser.add_argument("--version", action="version", version=f"shieldscan {VERSION}")
    subparsers = parser.add_subparsers(dest="command")

    scan = subparsers.add_parser("scan", help="Scan a project directory.")
    scan.add_argument("path", nargs="?", default=".", help="Project directory (default: current directory).")
    scan.add_argument("-s", "--sast", action="store_true", help="Static application security testing (semgrep).")
    scan.add_argument("-c", "--sca", action="store_true", help="Dependency vulnerabilities (osv-scanner).")
    scan.add_argument("-i", "--iac", action="store_true", help="Infrastructure as code checks (semgrep).")
    scan.add_argument("--no-ai", action="store_true", help="Skip the AI false-positive annotation.")

    report = subparsers.add_parser("report", help="Generate a report from the last scan.")
    report.add_argument("-f", "--format", choices=REPORT_FORMATS, default="json", help="Report format.")
    report.add_argument("-o", "--output", help="Output file (default: timestamped file under the output dir).")

    return parser


def handle_scan(args: argparse.Namespace) -> int:
    target = os.path.abspath(args.path)
    if not os.path.isdir(target):
        print(f"Error: '{args.path}' is not a directory.", file=sys.stderr)
        return 1

    selection = ScanSelection(sast=args.sast, sca=args.sca, iac=args.iac).with_defaults()
    check_tools(selection)

    bundle = run_scan(selection, target, settings=load_scanner_settings(target))
    SnapshotStore().save(bundle)

    annotations = {}
    annotator = FalsePositiveAnnotator()
    if annotator.enabled and not args.no_ai and not bundle.is_clean:
        annotations = asyncio.run(annotator.annotate(rendered_findings(bundle)))

    print(format_console_report(bundle, annotations=annotations, color=sys.stdout.isatty()))
    return 0


def handle_report(args: argparse.Namespace) -> int:
    path = generate_report(args.format, output=args.output)
    print(f"{args.format.upper()} report saved to: {path.resolve()}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=LOG_LEVEL, log_file=LOG_FILE)

    if args.command is None:
        parser.print_help()
        return 0

    handlers = {"scan": handle_scan, "report": handle_report}
    try:
        return handlers[args.command](args)
    except ShieldScanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
