"""
Aggregator
==========
Runs the enabled scanner adapters and assembles one ReportBundle.

Execution Model:
    - Adapters are independent, so they run concurrently (one worker thread
      each, awaited with asyncio.gather).
    - Results are merged in the fixed order SAST → SCA → IaC regardless of
      which finished first, so console layout is deterministic.
    - execution_time is the wall-clock duration of the whole run.
    - Cancelling the awaiting task sets a shared cancel event; every running
      scanner process is killed by its runner on the next poll.

Fault Tolerance:
    - An adapter never aborts the run. Anything escaping an adapter is
      recorded as an empty, failed ScanReport for that category.

Defaults:
    - ScanSelection with every flag False is a valid input and produces an
      empty bundle. Expanding "nothing selected" into "everything" is the
      caller's job (ScanSelection.with_defaults()).
"""
import asyncio
import logging
import shutil
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shieldscan.core.config import ScannerSettings
from shieldscan.core.errors import ToolMissingError
from shieldscan.models.finding import CATEGORY_ORDER, ScanCategory
from shieldscan.models.report_bundle import ReportBundle
from shieldscan.models.scan_report import ErrorKind, ScanReport
from shieldscan.parser.ranking import sort_bundle
from shieldscan.scanners.base import ScannerAdapter
from shieldscan.scanners.iac import IacAdapter
from shieldscan.scanners.sast import SastAdapter
from shieldscan.scanners.sca import ScaAdapter

logger = logging.getLogger(__name__)

ADAPTER_TYPES: Dict[ScanCategory, type] = {
    ScanCategory.SAST: SastAdapter,
    ScanCategory.SCA: ScaAdapter,
    ScanCategory.IAC: IacAdapter,
}


@dataclass
class ScanSelection:
    """Which scanner categories a run should execute."""
    sast: bool = False
    sca: bool = False
    iac: bool = False

    @property
    def any(self) -> bool:
        return self.sast or self.sca or self.iac

    def with_defaults(self) -> "ScanSelection":
        """Nothing selected means everything selected."""
        if self.any:
            return ScanSelection(self.sast, self.sca, self.iac)
        return ScanSelection(sast=True, sca=True, iac=True)

    def categories(self) -> List[ScanCategory]:
        flags = {
            ScanCategory.SAST: self.sast,
            ScanCategory.SCA: self.sca,
            ScanCategory.IAC: self.iac,
        }
        return [c for c in CATEGORY_ORDER if flags[c]]


def build_adapters(settings: Optional[ScannerSettings] = None) -> Dict[ScanCategory, ScannerAdapter]:
    settings = settings or ScannerSettings()
    return {category: cls(settings=settings) for category, cls in ADAPTER_TYPES.items()}


def check_tools(
    selection: ScanSelection,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> None:
    """
    Verify every scanner binary the selection needs is on PATH.

    Raises
    ------
    ToolMissingError
        Before any scan starts, listing each missing tool with an install hint.
    """
    missing: Dict[str, str] = {}
    for category in selection.categories():
        adapter_cls = ADAPTER_TYPES[category]
        if adapter_cls.tool not in missing and which(adapter_cls.tool) is None:
            missing[adapter_cls.tool] = adapter_cls.install_hint
    if missing:
        raise ToolMissingError(missing)


class Aggregator:
    """
    Runs adapters and collects their reports.

    Usage:
        aggregator = Aggregator()
        bundle = await aggregator.run(ScanSelection(sast=True), "/path/to/project")
    """

    def __init__(
        self,
        adapters: Optional[Dict[ScanCategory, ScannerAdapter]] = None,
        settings: Optional[ScannerSettings] = None,
    ) -> None:
        self.adapters = adapters if adapters is not None else build_adapters(settings)

    async def run(self, selection: ScanSelection, target_path: str) -> ReportBundle:
        categories = selection.categories()
        logger.info(
            "Starting scan of %s (%s)",
            target_path, ", ".join(c.name for c in categories) or "no scanners",
        )

        start = time.monotonic()
        cancel_event = threading.Event()
        try:
            reports = await asyncio.gather(
                *(self._invoke(category, target_path, cancel_event) for category in categories)
            )
        except asyncio.CancelledError:
            logger.warning("Scan of %s cancelled, stopping running scanners", target_path)
            cancel_event.set()
            raise
        elapsed = time.monotonic() - start

        bundle = ReportBundle(
            reports={category: report for category, report in zip(categories, reports)},
            execution_time=elapsed,
        )
        sort_bundle(bundle)

        failed = [r.category.name for r in bundle.ordered_reports() if not r.succeeded]
        logger.info(
            "Scan complete in %.2fs: %d issues%s",
            elapsed, bundle.total_issues,
            f" (failed: {', '.join(failed)})" if failed else "",
        )
        return bundle

    async def _invoke(
        self, category: ScanCategory, target_path: str, cancel_event: threading.Event
    ) -> ScanReport:
        adapter = self.adapters.get(category)
        if adapter is None:
            return ScanReport.failure(
                category, ErrorKind.INVOCATION_FAILURE, f"No adapter registered for {category.name}"
            )
        try:
            return await asyncio.to_thread(adapter.invoke, target_path, cancel_event)
        except Exception as exc:
            logger.error("%s scan crashed: %s", category.name, exc, exc_info=True)
            return ScanReport.failure(category, ErrorKind.INVOCATION_FAILURE, f"{category.name} scan crashed: {exc}")


def run_scan(
    selection: ScanSelection,
    target_path: str,
    settings: Optional[ScannerSettings] = None,
) -> ReportBundle:
    """Synchronous entry point for callers without an event loop."""
    return asyncio.run(Aggregator(settings=settings).run(selection, target_path))
