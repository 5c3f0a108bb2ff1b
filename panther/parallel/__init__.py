"""
Parallel probe execution.
"""

from panther.parallel.executor import ProbeScheduler, SchedulerConfig, check_sources, records_for_urls

__all__ = [
    "ProbeScheduler",
    "SchedulerConfig",
    "check_sources",
    "records_for_urls",
]
