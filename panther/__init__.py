"""
Panther - Extension Catalog Source Availability Checker
"""

from panther.__version__ import __version__

from panther.core.config import AppConfig
from panther.modules.base import ProbeOutcome, ProbeStatus, SourceRecord
from panther.modules.http_probe import ProbeConfig, ProbeExecutor
from panther.parallel.executor import ProbeScheduler, SchedulerConfig, check_sources
from panther.report.aggregator import ResultAggregator
from panther.report.models import AvailabilityReport

__all__ = [
    "AppConfig",
    "AvailabilityReport",
    "ProbeConfig",
    "ProbeExecutor",
    "ProbeOutcome",
    "ProbeScheduler",
    "ProbeStatus",
    "ResultAggregator",
    "SchedulerConfig",
    "SourceRecord",
    "check_sources",
    "__version__",
]
