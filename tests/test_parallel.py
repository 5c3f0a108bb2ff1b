"""Tests for parallel probe execution infrastructure."""
import asyncio
import time

import httpx
import pytest

from panther.modules.base import ProbeOutcome, ProbeStatus, SourceRecord
from panther.modules.http_probe import ProbeConfig, ProbeExecutor
from panther.parallel.executor import ProbeScheduler, SchedulerConfig, check_sources, records_for_urls


class InstrumentedProber:
    """Fake prober that records how many probes are in flight at once."""

    def __init__(self, delays=None, default_delay=0.02, fail_for=(), cancel_for=()):
        self.delays = delays or {}
        self.default_delay = default_delay
        self.fail_for = set(fail_for)
        self.cancel_for = set(cancel_for)
        self.current = 0
        self.peak = 0
        self.calls = []

    async def probe(self, location: str, timeout=None) -> ProbeOutcome:
        self.calls.append(location)
        self.current += 1
        self.peak = max(self.peak, self.current)
        try:
            await asyncio.sleep(self.delays.get(location, self.default_delay))
        finally:
            self.current -= 1
        if location in self.fail_for:
            raise RuntimeError(f"boom for {location}")
        if location in self.cancel_for:
            raise asyncio.CancelledError()
        return ProbeOutcome(
            location=location,
            status=ProbeStatus.REACHABLE,
            detail="HTTP 200",
            status_code=200,
        )


def _records(owner: str, count: int, prefix: str = "https://site"):
    return [SourceRecord(owner_id=owner, location=f"{prefix}{i}.example/") for i in range(count)]


@pytest.fixture
def scheduler_config():
    """Create a scheduler configuration."""
    return SchedulerConfig(max_concurrency=2, per_probe_timeout=1.0)


class TestSchedulerConfig:
    """Test SchedulerConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        config = SchedulerConfig()
        assert config.max_concurrency == 10
        assert config.per_probe_timeout == 10.0
        assert config.run_timeout is None

    def test_custom_config(self):
        """Test custom configuration values."""
        config = SchedulerConfig(max_concurrency=5, per_probe_timeout=2.5, run_timeout=60)
        assert config.max_concurrency == 5
        assert config.per_probe_timeout == 2.5
        assert config.run_timeout == 60

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_concurrency": 0},
            {"max_concurrency": -3},
            {"max_concurrency": 2.5},
            {"per_probe_timeout": 0},
            {"per_probe_timeout": -1.0},
            {"run_timeout": 0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        """Invalid values are rejected, not clamped."""
        with pytest.raises(ValueError):
            SchedulerConfig(**kwargs)


class TestProbeScheduler:
    """Test ProbeScheduler."""

    def test_init_default_config(self):
        """Test scheduler initialization with default config."""
        scheduler = ProbeScheduler()
        assert scheduler.config.max_concurrency == 10
        assert isinstance(scheduler.prober, ProbeExecutor)
        assert scheduler.prober.config.timeout == scheduler.config.per_probe_timeout

    def test_empty_input(self, scheduler_config):
        report = ProbeScheduler(scheduler_config, InstrumentedProber()).run([])
        assert len(report) == 0
        assert report.total_outcomes == 0

    def test_completeness(self, scheduler_config):
        """Every record yields exactly one outcome."""
        records = _records("a", 4) + _records("b", 3, prefix="https://other") + [
            SourceRecord(owner_id="c", location="not a url"),
        ]
        prober = InstrumentedProber()

        report = ProbeScheduler(scheduler_config, prober).run(records)

        assert report.total_outcomes == len(records)
        assert report.owner_ids() == ["a", "b", "c"]
        assert len(report["a"]) == 4
        assert len(report["b"]) == 3
        assert len(report["c"]) == 1

    def test_ordering_preserved_despite_completion_order(self):
        """Outcomes follow input order even when later probes finish first."""
        records = [
            SourceRecord(owner_id="ext", location="https://a.example"),
            SourceRecord(owner_id="ext", location="https://b.example"),
            SourceRecord(owner_id="ext", location="https://c.example"),
        ]
        prober = InstrumentedProber(
            delays={
                "https://a.example": 0.3,
                "https://b.example": 0.15,
                "https://c.example": 0.0,
            }
        )

        report = ProbeScheduler(SchedulerConfig(max_concurrency=3, per_probe_timeout=2), prober).run(records)

        assert [o.location for o in report["ext"]] == [
            "https://a.example",
            "https://b.example",
            "https://c.example",
        ]

    def test_interleaved_owners_keep_their_own_order(self, scheduler_config):
        records = [
            SourceRecord(owner_id="x", location="https://x1.example"),
            SourceRecord(owner_id="y", location="https://y1.example"),
            SourceRecord(owner_id="x", location="https://x2.example"),
            SourceRecord(owner_id="y", location="https://y2.example"),
        ]
        prober = InstrumentedProber(delays={"https://x1.example": 0.1})

        report = ProbeScheduler(scheduler_config, prober).run(records)

        assert report.owner_ids() == ["x", "y"]
        assert [o.location for o in report["x"]] == ["https://x1.example", "https://x2.example"]
        assert [o.location for o in report["y"]] == ["https://y1.example", "https://y2.example"]

    @pytest.mark.parametrize("max_concurrency", [1, 3, 5])
    def test_bounded_concurrency(self, max_concurrency):
        """No more than max_concurrency probes are ever in flight."""
        records = _records("ext", 20)
        prober = InstrumentedProber(default_delay=0.02)
        scheduler = ProbeScheduler(
            SchedulerConfig(max_concurrency=max_concurrency, per_probe_timeout=2), prober
        )

        report = scheduler.run(records)

        assert report.total_outcomes == 20
        assert prober.peak <= max_concurrency
        assert prober.peak == max_concurrency
        assert scheduler.peak_in_flight <= max_concurrency
        assert scheduler.in_flight == 0

    def test_malformed_short_circuit(self, scheduler_config):
        """Malformed locations never reach the prober."""
        records = [
            SourceRecord(owner_id="ext", location="not a url"),
            SourceRecord(owner_id="ext", location="https://fine.example"),
            SourceRecord(owner_id="ext", location="mailto:someone@example.org"),
        ]
        prober = InstrumentedProber()

        report = ProbeScheduler(scheduler_config, prober).run(records)

        assert prober.calls == ["https://fine.example"]
        assert [o.status for o in report["ext"]] == [
            ProbeStatus.MALFORMED,
            ProbeStatus.REACHABLE,
            ProbeStatus.MALFORMED,
        ]

    def test_all_malformed_owner_is_reported(self, scheduler_config):
        records = [SourceRecord(owner_id="broken", location="::::")]
        report = ProbeScheduler(scheduler_config, InstrumentedProber()).run(records)
        assert "broken" in report
        assert report["broken"][0].status == ProbeStatus.MALFORMED

    def test_timeout_isolation(self):
        """A hanging probe times out without delaying its siblings."""
        records = [SourceRecord(owner_id="ext", location="https://hang.example")] + _records("other", 6)
        prober = InstrumentedProber(delays={"https://hang.example": 30}, default_delay=0.01)
        scheduler = ProbeScheduler(SchedulerConfig(max_concurrency=2, per_probe_timeout=0.3), prober)

        start = time.monotonic()
        report = scheduler.run(records)
        elapsed = time.monotonic() - start

        assert report["ext"][0].status == ProbeStatus.TIMED_OUT
        assert all(o.status == ProbeStatus.REACHABLE for o in report["other"])
        assert 0.25 <= elapsed < 2.0

    def test_exception_is_contained(self, scheduler_config):
        """A prober that raises yields UNREACHABLE for that record only."""
        records = _records("ext", 4)
        prober = InstrumentedProber(fail_for={records[1].location})

        report = ProbeScheduler(scheduler_config, prober).run(records)

        statuses = [o.status for o in report["ext"]]
        assert statuses == [
            ProbeStatus.REACHABLE,
            ProbeStatus.UNREACHABLE,
            ProbeStatus.REACHABLE,
            ProbeStatus.REACHABLE,
        ]
        assert "RuntimeError" in report["ext"][1].detail

    def test_cancelled_probe_does_not_stall_the_run(self, scheduler_config):
        """A prober raising CancelledError yields UNREACHABLE and the run still completes."""
        records = _records("ext", 3)
        prober = InstrumentedProber(cancel_for={records[0].location})

        async def main():
            return await asyncio.wait_for(
                ProbeScheduler(scheduler_config, prober).run_async(records),
                timeout=3,
            )

        report = asyncio.run(main())

        assert [o.status for o in report["ext"]] == [
            ProbeStatus.UNREACHABLE,
            ProbeStatus.REACHABLE,
            ProbeStatus.REACHABLE,
        ]
        assert "CancelledError" in report["ext"][0].detail

    def test_cancelled_probe_with_single_worker(self):
        """The same worker keeps pulling records after a prober cancels itself."""
        records = _records("ext", 3)
        prober = InstrumentedProber(cancel_for={records[1].location})
        scheduler = ProbeScheduler(SchedulerConfig(max_concurrency=1, per_probe_timeout=1), prober)

        report = scheduler.run(records)

        assert report.total_outcomes == 3
        assert report["ext"][1].status == ProbeStatus.UNREACHABLE
        assert scheduler.in_flight == 0

    def test_run_timeout_marks_outstanding_as_timed_out(self):
        """Hitting the run deadline still yields one outcome per record."""
        records = _records("ext", 6)
        prober = InstrumentedProber(
            delays={records[0].location: 0.0},
            default_delay=30,
        )
        scheduler = ProbeScheduler(
            SchedulerConfig(max_concurrency=2, per_probe_timeout=10, run_timeout=0.3),
            prober,
        )

        start = time.monotonic()
        report = scheduler.run(records)
        elapsed = time.monotonic() - start

        outcomes = report["ext"]
        assert len(outcomes) == 6
        assert outcomes[0].status == ProbeStatus.REACHABLE
        assert all(o.status == ProbeStatus.TIMED_OUT for o in outcomes[1:])
        assert "Run deadline" in outcomes[-1].detail
        assert elapsed < 2.0
        assert scheduler.in_flight == 0

    def test_progress_callback(self, scheduler_config):
        """Progress is reported once per outcome, ending at (total, total)."""
        records = _records("ext", 3) + [SourceRecord(owner_id="ext", location="bad url")]
        progress_calls = []

        def progress_callback(completed: int, total: int):
            progress_calls.append((completed, total))

        ProbeScheduler(scheduler_config, InstrumentedProber()).run(records, progress_callback)

        assert len(progress_calls) == 4
        assert progress_calls[-1] == (4, 4)
        assert [c for c, _ in progress_calls] == [1, 2, 3, 4]

    def test_run_async(self, scheduler_config):
        """run_async can be awaited from an existing event loop."""
        records = _records("ext", 3)

        async def main():
            return await ProbeScheduler(scheduler_config, InstrumentedProber()).run_async(records)

        report = asyncio.run(main())
        assert report.total_outcomes == 3


class TestScenario:
    """End-to-end scenario through the real HTTP probe with a faked network."""

    def test_mixed_catalog(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "valid.example":
                return httpx.Response(200)
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

        records = [
            SourceRecord(owner_id="ext1", location="https://valid.example/ok"),
            SourceRecord(owner_id="ext1", location="not a url"),
            SourceRecord(owner_id="ext2", location="https://unreachable.invalid"),
        ]
        prober = ProbeExecutor(ProbeConfig(timeout=2), transport=httpx.MockTransport(handler))

        report = ProbeScheduler(SchedulerConfig(max_concurrency=2, per_probe_timeout=2), prober).run(records)

        assert [o.status for o in report["ext1"]] == [ProbeStatus.REACHABLE, ProbeStatus.MALFORMED]
        assert report["ext2"][0].status in (ProbeStatus.UNREACHABLE, ProbeStatus.TIMED_OUT)


class TestHelpers:
    """Test module-level helpers."""

    def test_records_for_urls(self):
        records = records_for_urls(["https://a.example", "https://b.example"])
        assert [r.owner_id for r in records] == ["https://a.example", "https://b.example"]

        grouped = records_for_urls(["https://a.example", "https://b.example"], owner_id="adhoc")
        assert {r.owner_id for r in grouped} == {"adhoc"}

    def test_check_sources_only_malformed(self):
        """check_sources returns without touching the network when nothing is probeable."""
        report = check_sources(
            [SourceRecord(owner_id="ext", location="nope")],
            SchedulerConfig(max_concurrency=1, per_probe_timeout=1),
        )
        assert report["ext"][0].status == ProbeStatus.MALFORMED
