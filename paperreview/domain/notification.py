"""Inbox notifications generated by the workflow."""

from datetime import datetime
from enum import Enum
from typing import Optional

from dataclasses import dataclass, field

from .util import get_tzaware_utc_now, coerce_datetime


class Kind(Enum):
    """Kinds of notification, used by clients to pick an icon."""

    SUBMISSION = 'submission'
    APPROVAL = 'approval'
    REVIEW_REQUEST = 'review_request'
    REJECTION = 'rejection'
    REVISION = 'revision'


@dataclass
class Notice:
    """A message for one user about one paper."""

    recipient_id: str
    paper_id: str
    kind: Kind
    title: str
    message: str
    read: bool = field(default=False)
    created: datetime = field(default_factory=get_tzaware_utc_now)
    notice_id: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        self.recipient_id = str(self.recipient_id)
        self.kind = Kind(self.kind)
        self.created = coerce_datetime(self.created)
