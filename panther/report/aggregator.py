"""
Fold probe outcomes back into a per-owner availability report.
"""

from typing import Dict, List, Sequence

from panther.modules.base import ProbeOutcome, ProbeStatus, SourceRecord
from panther.report.models import AvailabilityReport, OwnerReport


class ResultAggregator:
    """
    Collect (input index, outcome) messages in any order and build the report.

    The input index is the position of the record in the sequence handed to
    the scheduler; it is what restores per-owner order regardless of which
    probe finished first.
    """

    def __init__(self, records: Sequence[SourceRecord]):
        self._records = list(records)
        self._outcomes: Dict[int, ProbeOutcome] = {}

    def add(self, index: int, outcome: ProbeOutcome) -> None:
        if not 0 <= index < len(self._records):
            raise IndexError(f"No source record at index {index}")
        if index in self._outcomes:
            raise ValueError(f"Outcome for record {index} ({self._records[index].location}) already recorded")
        self._outcomes[index] = outcome

    def missing_indices(self) -> List[int]:
        return [i for i in range(len(self._records)) if i not in self._outcomes]

    @property
    def complete(self) -> bool:
        return len(self._outcomes) == len(self._records)

    def build(self) -> AvailabilityReport:
        """
        Build the final report.

        Raises:
            ValueError: if any record is still without an outcome
        """
        missing = self.missing_indices()
        if missing:
            raise ValueError(f"{len(missing)} source record(s) have no outcome: indices {missing[:10]}")

        grouped: Dict[str, List[ProbeOutcome]] = {}
        for index, record in enumerate(self._records):
            grouped.setdefault(record.owner_id, []).append(self._outcomes[index])

        return AvailabilityReport(
            owners=tuple(
                OwnerReport(owner_id=owner_id, outcomes=tuple(outcomes))
                for owner_id, outcomes in grouped.items()
            )
        )


def summarize(report: AvailabilityReport) -> Dict[str, int]:
    """
    Get summary counts for a report.

    Returns:
        Dictionary with per-status counts and owner totals
    """
    summary = {status.value: 0 for status in ProbeStatus}
    for _owner_id, outcome in report.iter_outcomes():
        summary[outcome.status.value] += 1

    summary["total"] = report.total_outcomes
    summary["owners"] = len(report)
    summary["owners_without_reachable_source"] = sum(
        1 for owner in report.owners if not owner.any_reachable
    )
    return summary
