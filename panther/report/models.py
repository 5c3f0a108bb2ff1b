"""
Availability report models.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from panther.modules.base import ProbeOutcome


class OwnerReport(BaseModel):
    """Outcomes for every source of one extension, in catalog order."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    outcomes: Tuple[ProbeOutcome, ...] = ()

    @property
    def any_reachable(self) -> bool:
        return any(not o.status.is_failure for o in self.outcomes)


class AvailabilityReport(BaseModel):
    """
    Per-owner availability report.

    Owners are kept in the order they were first seen in the input, and each
    owner's outcomes in the order its sources were supplied.
    """

    model_config = ConfigDict(frozen=True)

    owners: Tuple[OwnerReport, ...] = ()

    def __getitem__(self, owner_id: str) -> Tuple[ProbeOutcome, ...]:
        for owner in self.owners:
            if owner.owner_id == owner_id:
                return owner.outcomes
        raise KeyError(owner_id)

    def __contains__(self, owner_id: object) -> bool:
        return any(owner.owner_id == owner_id for owner in self.owners)

    def __len__(self) -> int:
        return len(self.owners)

    def get(self, owner_id: str, default: Optional[Tuple[ProbeOutcome, ...]] = None):
        try:
            return self[owner_id]
        except KeyError:
            return default

    def owner_ids(self) -> List[str]:
        return [owner.owner_id for owner in self.owners]

    def items(self) -> Iterator[Tuple[str, Tuple[ProbeOutcome, ...]]]:
        for owner in self.owners:
            yield owner.owner_id, owner.outcomes

    def iter_outcomes(self) -> Iterator[Tuple[str, ProbeOutcome]]:
        """Yield (owner_id, outcome) pairs in report order."""
        for owner in self.owners:
            for outcome in owner.outcomes:
                yield owner.owner_id, outcome

    def failures(self) -> Iterator[Tuple[str, ProbeOutcome]]:
        """Yield (owner_id, outcome) pairs for every non-reachable source."""
        for owner_id, outcome in self.iter_outcomes():
            if outcome.status.is_failure:
                yield owner_id, outcome

    @property
    def total_outcomes(self) -> int:
        return sum(len(owner.outcomes) for owner in self.owners)

    def as_mapping(self) -> Dict[str, List[ProbeOutcome]]:
        return {owner.owner_id: list(owner.outcomes) for owner in self.owners}

    def to_json_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """JSON-ready mapping of owner_id to serialized outcomes."""
        return {
            owner.owner_id: [o.model_dump(mode="json") for o in owner.outcomes]
            for owner in self.owners
        }
