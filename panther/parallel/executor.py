"""
Parallel probe execution infrastructure.
Checks many source records concurrently with a bounded worker pool.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional

from loguru import logger

from panther.core.errors import describe_exception
from panther.modules.base import ProbeOutcome, ProbeStatus, SourceRecord
from panther.modules.http_probe import ProbeConfig, ProbeExecutor
from panther.report.aggregator import ResultAggregator
from panther.report.models import AvailabilityReport
from panther.utils.network import url_syntax_error

ProgressCallback = Callable[[int, int], None]


@dataclass
class SchedulerConfig:
    """Configuration for parallel probe execution."""
    max_concurrency: int = 10
    per_probe_timeout: float = 10.0
    run_timeout: Optional[float] = None  # Whole-run deadline, None for no limit

    def __post_init__(self):
        if isinstance(self.max_concurrency, bool) or not isinstance(self.max_concurrency, int):
            raise ValueError(f"max_concurrency must be an integer, got {self.max_concurrency!r}")
        if self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if self.per_probe_timeout <= 0:
            raise ValueError(f"per_probe_timeout must be positive, got {self.per_probe_timeout}")
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ValueError(f"run_timeout must be positive, got {self.run_timeout}")


class ProbeScheduler:
    """
    Probe source records in parallel and build the availability report.

    A fixed set of ``max_concurrency`` workers pulls records from a pending
    queue, so no more than that many probes are ever in flight. Each worker
    posts ``(index, outcome)`` to a result queue read only by the aggregator.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None, prober=None):
        """
        Initialize the scheduler.

        Args:
            config: Scheduler configuration
            prober: Object with an async ``probe(location, timeout)`` method;
                defaults to an HTTP ProbeExecutor using the same timeout
        """
        self.config = config or SchedulerConfig()
        self.prober = prober or ProbeExecutor(ProbeConfig(timeout=self.config.per_probe_timeout))
        self.in_flight = 0
        self.peak_in_flight = 0
        self._stopping = False

    def run(
        self,
        records: Iterable[SourceRecord],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AvailabilityReport:
        """
        Probe all records and return the report (blocking).

        Args:
            records: Source records in catalog order
            progress_callback: Optional callback for progress updates (completed, total)

        Returns:
            AvailabilityReport with one outcome per record
        """
        return asyncio.run(self.run_async(records, progress_callback))

    async def run_async(
        self,
        records: Iterable[SourceRecord],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AvailabilityReport:
        """Async variant of run()."""
        records = list(records)
        total = len(records)
        aggregator = ResultAggregator(records)
        completed = 0
        self.in_flight = 0
        self.peak_in_flight = 0
        self._stopping = False

        def record_outcome(index: int, outcome: ProbeOutcome) -> None:
            nonlocal completed
            aggregator.add(index, outcome)
            completed += 1
            if progress_callback:
                progress_callback(completed, total)

        pending: asyncio.Queue = asyncio.Queue()
        results: asyncio.Queue = asyncio.Queue()

        # Malformed locations never reach the network phase
        for index, record in enumerate(records):
            error = url_syntax_error(record.location)
            if error:
                record_outcome(index, ProbeOutcome.malformed(record.location, error))
            else:
                pending.put_nowait((index, record))

        network_total = pending.qsize()
        if network_total == 0:
            return aggregator.build()

        worker_count = min(self.config.max_concurrency, network_total)
        logger.info(
            f"Probing {network_total} source(s) with {worker_count} worker(s) "
            f"(timeout {self.config.per_probe_timeout:g}s)"
        )
        workers = [
            asyncio.create_task(self._worker(pending, results))
            for _ in range(worker_count)
        ]

        loop = asyncio.get_running_loop()
        deadline = None
        if self.config.run_timeout is not None:
            deadline = loop.time() + self.config.run_timeout

        received = 0
        try:
            while received < network_total:
                if deadline is None:
                    index, outcome = await results.get()
                else:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        break
                    try:
                        index, outcome = await asyncio.wait_for(results.get(), timeout=remaining)
                    except asyncio.TimeoutError:
                        break
                record_outcome(index, outcome)
                received += 1
        finally:
            self._stopping = True
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        # Outcomes posted between the deadline and cancellation still count
        while not results.empty():
            index, outcome = results.get_nowait()
            record_outcome(index, outcome)

        missing = aggregator.missing_indices()
        if missing:
            logger.warning(
                f"Run timeout of {self.config.run_timeout:g}s reached, "
                f"{len(missing)} outstanding probe(s) marked as timed out"
            )
            for index in missing:
                record_outcome(
                    index,
                    ProbeOutcome(
                        location=records[index].location,
                        status=ProbeStatus.TIMED_OUT,
                        detail=f"Run deadline of {self.config.run_timeout:g}s exceeded",
                    ),
                )

        logger.info(f"Completed {completed}/{total} probe(s), peak concurrency {self.peak_in_flight}")
        return aggregator.build()

    async def _worker(self, pending: asyncio.Queue, results: asyncio.Queue) -> None:
        """Pull records until the pending queue is empty."""
        while True:
            try:
                index, record = pending.get_nowait()
            except asyncio.QueueEmpty:
                return

            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                outcome = await self._probe_one(record)
            except asyncio.CancelledError:
                # Only the collector stops workers
                if self._stopping:
                    raise
                logger.error(f"Probe of {record.location} ({record.owner_id}) was cancelled")
                outcome = ProbeOutcome(
                    location=record.location,
                    status=ProbeStatus.UNREACHABLE,
                    detail="Probe failed: cancelled (CancelledError)",
                )
            finally:
                self.in_flight -= 1

            results.put_nowait((index, outcome))

    async def _probe_one(self, record: SourceRecord) -> ProbeOutcome:
        """Execute one probe, converting timeouts and stray exceptions to outcomes."""
        timeout = self.config.per_probe_timeout
        try:
            return await asyncio.wait_for(
                self.prober.probe(record.location, timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.debug(f"{record.location} ({record.owner_id}) timed out after {timeout:g}s")
            return ProbeOutcome.timed_out(record.location, timeout)
        except Exception as e:
            logger.error(f"Probe of {record.location} ({record.owner_id}) failed: {type(e).__name__}: {e}")
            return ProbeOutcome(
                location=record.location,
                status=ProbeStatus.UNREACHABLE,
                detail=f"Probe failed: {describe_exception(e)}",
            )


def check_sources(
    records: Iterable[SourceRecord],
    config: Optional[SchedulerConfig] = None,
    probe_config: Optional[ProbeConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> AvailabilityReport:
    """
    Convenience wrapper: probe records over HTTP and return the report.

    Args:
        records: Source records in catalog order
        config: Scheduler configuration
        probe_config: HTTP probe policy; its timeout is aligned with the scheduler's

    Returns:
        AvailabilityReport
    """
    config = config or SchedulerConfig()
    if probe_config is None:
        probe_config = ProbeConfig(timeout=config.per_probe_timeout)
    elif probe_config.timeout != config.per_probe_timeout:
        probe_config = replace(probe_config, timeout=config.per_probe_timeout)
    scheduler = ProbeScheduler(config, ProbeExecutor(probe_config))
    return scheduler.run(records, progress_callback)


def records_for_urls(urls: Iterable[str], owner_id: Optional[str] = None) -> List[SourceRecord]:
    """Build source records for ad-hoc URLs; each URL is its own owner unless owner_id is given."""
    return [SourceRecord(owner_id=owner_id or url, location=url) for url in urls]

