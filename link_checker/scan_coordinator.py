"""
Batched, cancellable health scan over the link store.
"""
import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .checker import Checker
from .classifier import ClassifierConfig, classify
from .config import Config
from .link_store import LinkStore
from .logging_config import get_logger
from .models import LinkRecord, LinkStatus, ProbeOutcome, ScanProgress, ScanState
from .status_tracker import StatusTracker

logger = get_logger("scan_coordinator")

ProgressCallback = Callable[[ScanProgress], None]
RecordCallback = Callable[[LinkRecord], None]


class CancellationToken:
    """Cooperative stop request, checked between batches"""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ScanCoordinator:
    """
    Drives a scan over every link in the store:
    - links are probed in fixed-size batches, one batch at a time
    - members of a batch are probed concurrently
    - results are classified and written back as soon as each probe finishes
    - a stop request takes effect before the next batch starts
    """

    def __init__(
        self,
        store: LinkStore,
        checker: Checker,
        batch_size: int = 12,
        probe_timeout_ms: int = 5000,
        classifier_config: Optional[ClassifierConfig] = None,
        max_retries: int = 3,
        retry_probes: bool = False,
        status_tracker: Optional[StatusTracker] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_update: Optional[RecordCallback] = None,
    ):
        """
        Initialize the scan coordinator.

        Args:
            store: Link store to scan and update
            checker: Probe implementation
            batch_size: Number of links probed concurrently
            probe_timeout_ms: Timeout passed to every probe
            classifier_config: Classification thresholds (defaults derive from probe_timeout_ms)
            max_retries: Extra attempts for probes that got no response
            retry_probes: Whether to retry at all
            status_tracker: Optional tracker fed with progress and results
            on_progress: Called with a progress snapshot at start and after every batch
            on_update: Called with each record right after its result is stored
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.store = store
        self.checker = checker
        self.batch_size = batch_size
        self.probe_timeout_ms = probe_timeout_ms
        self.classifier_config = classifier_config or ClassifierConfig(probe_timeout_ms=probe_timeout_ms)
        self.max_retries = max_retries
        self.retry_probes = retry_probes
        self.status_tracker = status_tracker
        self.on_progress = on_progress
        self.on_update = on_update

        self._state = ScanState.IDLE
        self._progress = ScanProgress()
        self._token: Optional[CancellationToken] = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        store: LinkStore,
        checker: Checker,
        config: Config,
        **kwargs,
    ) -> "ScanCoordinator":
        """Build a coordinator from application settings."""
        return cls(
            store,
            checker,
            batch_size=config.scan.batch_size,
            probe_timeout_ms=config.scan.probe_timeout_ms,
            classifier_config=config.classifier_config(),
            max_retries=config.scan.max_retries,
            retry_probes=config.scan.retry_probes,
            **kwargs,
        )

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def progress(self) -> ScanProgress:
        return replace(self._progress)

    @property
    def is_running(self) -> bool:
        if self._state is not ScanState.IDLE:
            return True
        return self._task is not None and not self._task.done()

    def start(self) -> Optional[asyncio.Task]:
        """Schedule a scan on the running event loop and return immediately.

        Calling this while a scan is active returns the active task, or None
        when that scan was started by awaiting run() directly.
        """
        if self._task is not None and not self._task.done():
            return self._task
        if self._state is not ScanState.IDLE:
            logger.debug("Scan already in progress; ignoring start request")
            return None
        token = CancellationToken()
        self._token = token
        self._task = asyncio.create_task(self.run(token))
        return self._task

    def stop(self) -> bool:
        """Request cancellation. Returns False if there was nothing to stop."""
        token = self._token
        if token is None or token.cancelled:
            return False
        token.cancel()
        if self._state is ScanState.SCANNING:
            self._state = ScanState.CANCELLED
        logger.info("Stop requested; letting the current batch finish")
        return True

    async def run(self, token: Optional[CancellationToken] = None) -> Optional[ScanProgress]:
        """Run a full scan and return the final progress.

        Returns None without doing anything if a scan is already running.
        """
        if self._state is not ScanState.IDLE:
            logger.debug("Scan already in progress; ignoring start request")
            return None

        token = token or CancellationToken()
        self._token = token
        self._state = ScanState.SCANNING

        try:
            self.store.reset_for_scan()
            records = self.store.all()
            total = len(records)
            self._progress = ScanProgress(completed=0, total=total, running=True)
            if self.status_tracker:
                self.status_tracker.start_scan(total)

            logger.info("Scanning %d links in batches of %d", total, self.batch_size)
            self._emit_progress()

            batches = self.batches(records, self.batch_size)
            for number, batch in enumerate(batches, 1):
                if token.cancelled:
                    logger.info(
                        "Scan cancelled after %d/%d links", self._progress.completed, total
                    )
                    break

                await self._run_batch(batch)

                self._progress.completed += len(batch)
                if self._progress.completed == total:
                    self._progress.running = False
                logger.info(
                    "Batch %d/%d done: %d/%d links (%d%%)",
                    number, len(batches), self._progress.completed, total, self._progress.percent,
                )
                self._emit_progress()
        finally:
            self._release_unfinished()
            cancelled = self._progress.completed < self._progress.total
            if self._progress.running:
                self._progress.running = False
                self._emit_progress()
            self._state = ScanState.IDLE
            self._token = None
            if self.status_tracker:
                self.status_tracker.finish_scan(replace(self._progress), cancelled=cancelled)

        if not cancelled:
            logger.info("Scan complete: %s", self._summary())
        return replace(self._progress)

    async def wait(self) -> Optional[ScanProgress]:
        """Wait for the task created by start() to finish."""
        if self._task is None:
            return None
        return await self._task

    @staticmethod
    def batches(records: Sequence[LinkRecord], size: int) -> List[List[LinkRecord]]:
        """Partition records into consecutive batches of at most ``size``."""
        return [list(records[i:i + size]) for i in range(0, len(records), size)]

    async def _run_batch(self, batch: List[LinkRecord]):
        """Probe every member of a batch concurrently and store each result."""
        self.store.mark_checking(record.id for record in batch)
        if self.status_tracker:
            self.status_tracker.mark_checking(batch)

        results: asyncio.Queue = asyncio.Queue()
        tasks = [
            asyncio.create_task(self._probe_worker(record, results))
            for record in batch
        ]

        try:
            for _ in range(len(tasks)):
                link_id, outcome = await results.get()
                self._apply_result(link_id, outcome)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise
        finally:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _probe_worker(self, record: LinkRecord, results: asyncio.Queue):
        """Probe one record and report the outcome on the results queue."""
        try:
            outcome = await self._probe_with_retries(record.url)
        except Exception as e:
            logger.error("Checker raised for %s: %s", record.url, e)
            outcome = ProbeOutcome(succeeded=False, latency_ms=0, error=str(e))
        await results.put((record.id, outcome))

    async def _probe_with_retries(self, url: str) -> ProbeOutcome:
        attempts = 1 + (self.max_retries if self.retry_probes else 0)
        outcome = None
        for attempt in range(1, attempts + 1):
            outcome = await self.checker.probe(url, self.probe_timeout_ms)
            no_response = outcome.timed_out or (not outcome.succeeded and outcome.http_code == 0)
            if not no_response:
                break
            if attempt < attempts:
                logger.debug("Retrying %s (attempt %d/%d)", url, attempt + 1, attempts)
        return outcome

    def _apply_result(self, link_id: str, outcome: ProbeOutcome):
        status, latency, code = classify(outcome, self.classifier_config)
        record = self.store.update_status(link_id, status, latency, code, datetime.now())
        logger.debug("%s -> %s (%dms, HTTP %d)", record.url, status.value, latency, code)

        if self.status_tracker:
            self.status_tracker.record_result(record)
        if self.on_update:
            self.on_update(record)

    def _release_unfinished(self):
        """Return records left in checking (after a hard task cancel) to idle."""
        for record in self.store.all():
            if record.status is LinkStatus.CHECKING:
                self.store.update_status(record.id, LinkStatus.IDLE)

    def _emit_progress(self):
        snapshot = replace(self._progress)
        if self.status_tracker:
            self.status_tracker.update_progress(snapshot)
        if self.on_progress:
            self.on_progress(snapshot)

    def _summary(self) -> str:
        stats = self.store.stats()
        return ", ".join(
            f"{stats[status.value]} {status.value}"
            for status in LinkStatus
            if stats[status.value] and status is not LinkStatus.IDLE
        )


async def run_scan(
    store: LinkStore,
    checker: Checker,
    config: Optional[Config] = None,
    **kwargs,
) -> ScanProgress:
    """
    Convenience function to run one scan to completion.

    Args:
        store: Link store to scan
        checker: Probe implementation
        config: Settings (defaults when omitted)
        **kwargs: Observers forwarded to ScanCoordinator

    Returns:
        Final scan progress
    """
    coordinator = ScanCoordinator.from_config(store, checker, config or Config(), **kwargs)
    return await coordinator.run()
