"""
Report building components.
"""

from panther.report.aggregator import ResultAggregator, summarize
from panther.report.models import AvailabilityReport, OwnerReport

__all__ = [
    "AvailabilityReport",
    "OwnerReport",
    "ResultAggregator",
    "summarize",
]
