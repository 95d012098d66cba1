"""Audit records of reviewer decisions."""

from datetime import datetime
from enum import Enum
from typing import Optional

from dataclasses import dataclass, field

from .agent import Role
from .util import get_tzaware_utc_now, coerce_datetime


class Decision(Enum):
    """Outcome recorded by a reviewer."""

    APPROVED = 'approved'
    REJECTED = 'rejected'
    REVISION_REQUIRED = 'revision_required'


@dataclass
class ReviewEvent:
    """
    A reviewer's decision on a paper.

    Review events are append-only: once written they are never changed, and
    they say nothing about the current status of the paper.
    """

    paper_id: str
    reviewer_id: str
    reviewer_role: Role
    decision: Decision
    comments: Optional[str] = field(default=None)
    created: datetime = field(default_factory=get_tzaware_utc_now)
    event_id: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        self.reviewer_role = Role(self.reviewer_role)
        self.decision = Decision(self.decision)
        self.created = coerce_datetime(self.created)
