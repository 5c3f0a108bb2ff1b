"""
Source record and probe outcome models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProbeStatus(str, Enum):
    """Classified result of a single probe."""

    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"
    MALFORMED = "malformed"
    TIMED_OUT = "timed_out"

    @property
    def is_failure(self) -> bool:
        return self is not ProbeStatus.REACHABLE


class SourceRecord(BaseModel):
    """One checkable (owner, location) pair taken from the catalog."""

    model_config = ConfigDict(frozen=True)

    owner_id: str
    location: str


class ProbeOutcome(BaseModel):
    """Probe outcome model."""

    model_config = ConfigDict(frozen=True)

    location: str
    status: ProbeStatus
    detail: Optional[str] = None
    status_code: Optional[int] = None
    method: Optional[str] = None  # 'HEAD' or 'GET', None when no response
    duration: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def malformed(cls, location: str, detail: str) -> "ProbeOutcome":
        return cls(location=location, status=ProbeStatus.MALFORMED, detail=detail)

    @classmethod
    def timed_out(cls, location: str, timeout: float, duration: Optional[float] = None) -> "ProbeOutcome":
        return cls(
            location=location,
            status=ProbeStatus.TIMED_OUT,
            detail=f"No response within {timeout:g}s",
            duration=timeout if duration is None else duration,
        )
