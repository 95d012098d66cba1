"""Data structures for research papers."""

import re
from datetime import datetime
from enum import Enum
from typing import Optional, List, Union

import bleach
from dataclasses import dataclass, field

from .agent import Role
from .util import coerce_datetime


class Status(Enum):
    """
    Disposition of a paper within the review pipeline.

    The values are stored and sent over the wire as-is; readers should treat
    them as a closed set.
    """

    PENDING_FACULTY = 'pending_faculty'
    """Awaiting review by the assigned faculty member."""

    PENDING = 'pending'
    """Awaiting first review; no faculty member was assigned (legacy)."""

    PENDING_EDITOR = 'pending_editor'
    """Awaiting review by an editor (staff)."""

    PENDING_ADMIN = 'pending_admin'
    """Awaiting final approval by an administrator."""

    UNDER_REVIEW = 'under_review'
    """Legacy name for the final approval stage."""

    REVISION_REQUIRED = 'revision_required'
    """A reviewer has sent the paper back to its author."""

    APPROVED = 'approved'
    REJECTED = 'rejected'


@dataclass
class Content:
    """Reference to the stored paper artifact; we never read its bytes."""

    url: str
    name: str = field(default_factory=str)
    size: Optional[int] = field(default=None)


@dataclass
class PaperMetadata:
    """Descriptive metadata supplied by the author."""

    REQUIRED = ['title', 'abstract', 'category']

    title: Optional[str] = None
    abstract: Optional[str] = None
    category: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    co_authors: Optional[str] = None
    department: Optional[str] = None

    def __post_init__(self) -> None:
        """Perform some light cleanup on the provided values."""
        if isinstance(self.keywords, str):
            self.keywords = [k.strip() for k in self.keywords.split(',')]
        self.keywords = [k for k in (self.keywords or []) if k]
        if self.title:
            self.title = self.cleanup_title(self.title)
        if self.abstract:
            self.abstract = self.cleanup_abstract(self.abstract)
        if self.category:
            self.category = self.category.strip()

    @property
    def missing(self) -> List[str]:
        """Names of required fields that have no value."""
        return [key for key in self.REQUIRED if not getattr(self, key)]

    @staticmethod
    def cleanup_title(value: str) -> str:
        """Strip markup and surrounding whitespace from the title."""
        value = bleach.clean(value, tags=[], strip=True)
        return re.sub(r"\s+", " ", value).strip()

    @staticmethod
    def cleanup_abstract(value: str) -> str:
        """Perform some light tidying on the abstract."""
        value = value.strip()
        # Paragraphs are separated by a blank line; other runs of whitespace
        # collapse to one space.
        value = re.sub(r"[ \t]+\n", "\n", value)
        value = re.sub(r"\n{2,}", "\n\n", value)
        value = re.sub(r"(\S)\n(\S)", r"\g<1> \g<2>", value)
        value = re.sub(r"[ \t]{2,}", " ", value)
        return value


@dataclass
class Draft:
    """What an author sends when submitting or resubmitting a paper."""

    metadata: PaperMetadata = field(default_factory=PaperMetadata)
    content: Optional[Content] = field(default=None)
    assigned_faculty_id: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.metadata, dict):
            self.metadata = PaperMetadata(**self.metadata)
        if isinstance(self.content, dict):
            self.content = Content(**self.content)
        if self.assigned_faculty_id is not None:
            self.assigned_faculty_id = str(self.assigned_faculty_id) or None


@dataclass
class Paper:
    """
    Represents a research paper moving through review.

    ``last_reviewer_role`` and ``previous_status`` are set only while the
    paper is in :attr:`Status.REVISION_REQUIRED`; they tell us where to send
    the paper when its author resubmits.
    """

    author_id: str
    status: Status
    metadata: PaperMetadata = field(default_factory=PaperMetadata)
    paper_id: Optional[str] = field(default=None)
    content: Optional[Content] = field(default=None)
    assigned_faculty_id: Optional[str] = field(default=None)

    last_reviewer_role: Optional[Role] = field(default=None)
    """Role of the reviewer who asked for the current revision."""

    previous_status: Optional[Status] = field(default=None)
    """Status held just before the current revision was requested."""

    revision_notes: Optional[str] = field(default=None)
    rejection_reason: Optional[str] = field(default=None)

    created: Optional[datetime] = field(default=None)
    updated: Optional[datetime] = field(default=None)
    published: Optional[datetime] = field(default=None)
    """When the paper received final approval."""

    view_count: int = field(default=0)
    download_count: int = field(default=0)

    def __post_init__(self) -> None:
        """Make sure that enums, dates and nested data look right."""
        self.status = Status(self.status)
        if self.last_reviewer_role is not None:
            self.last_reviewer_role = Role(self.last_reviewer_role)
        if self.previous_status is not None:
            self.previous_status = Status(self.previous_status)
        if isinstance(self.metadata, dict):
            self.metadata = PaperMetadata(**self.metadata)
        if isinstance(self.content, dict):
            self.content = Content(**self.content)
        self.created = coerce_datetime(self.created)
        self.updated = coerce_datetime(self.updated)
        self.published = coerce_datetime(self.published)

    @property
    def title(self) -> Optional[str]:
        return self.metadata.title

    @property
    def in_revision(self) -> bool:
        return self.status is Status.REVISION_REQUIRED

    @property
    def has_faculty(self) -> bool:
        return bool(self.assigned_faculty_id)


Patch = dict
"""Field name to new value, as applied by the paper store."""


def as_status(value: Union[str, Status, None]) -> Optional[Status]:
    """Coerce a raw status filter to :class:`.Status`."""
    if value is None or isinstance(value, Status):
        return value
    return Status(value)


@dataclass
class Category:
    """A research area that authors file their papers under."""

    name: str
    category_id: Optional[int] = field(default=None)
    description: Optional[str] = field(default=None)
