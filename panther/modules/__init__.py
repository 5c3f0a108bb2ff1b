"""
Probe modules.
"""

from panther.modules.base import ProbeOutcome, ProbeStatus, SourceRecord
from panther.modules.http_probe import ProbeConfig, ProbeExecutor

__all__ = [
    "ProbeConfig",
    "ProbeExecutor",
    "ProbeOutcome",
    "ProbeStatus",
    "SourceRecord",
]
