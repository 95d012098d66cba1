"""SQLAlchemy ORM classes for the paper record store."""

from typing import Any, Dict, Optional
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, \
    String, Text
from sqlalchemy.orm import relationship, declarative_base

from ... import domain
from ...domain.util import get_tzaware_utc_now
from .util import FriendlyJSON

Base = declarative_base()


def _value(obj: Any) -> Any:
    """Unwrap enums for storage."""
    return getattr(obj, 'value', obj)


class User(Base):    # type: ignore
    """
    A member of the organization.

    Accounts are managed by the authentication service; we only read them to
    find reviewers by role and to put names in messages.
    """

    __tablename__ = 'users'

    user_id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255))
    role = Column(String(16), nullable=False, index=True)
    department = Column(String(255))
    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)

    def to_user(self) -> domain.User:
        return domain.User(native_id=self.user_id,
                           role=domain.Role(self.role),
                           email=self.email or '',
                           name=self.full_name or '',
                           department=self.department)


class Paper(Base):    # type: ignore
    """Represents a research paper and its current place in review."""

    __tablename__ = 'research_papers'

    paper_id = Column(String(36), primary_key=True)
    author_id = Column(
        ForeignKey('users.user_id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False,
        index=True
    )
    faculty_id = Column(
        ForeignKey('users.user_id', ondelete='SET NULL', onupdate='CASCADE'),
        index=True
    )
    """The faculty member assigned as first reviewer, if any."""

    status = Column(String(32), nullable=False, index=True)
    last_reviewer_role = Column(String(16))
    previous_status = Column(String(32))
    revision_notes = Column(Text)
    rejection_reason = Column(Text)

    title = Column(Text)
    abstract = Column(Text)
    category = Column(String(255), index=True)
    keywords = Column(FriendlyJSON)
    co_authors = Column(Text)
    department = Column(String(255))

    file_url = Column(Text)
    file_name = Column(String(255))
    file_size = Column(Integer)

    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)
    updated = Column(DateTime(timezone=True), default=get_tzaware_utc_now)
    published = Column(DateTime(timezone=True))

    view_count = Column(Integer, nullable=False, default=0)
    download_count = Column(Integer, nullable=False, default=0)

    author = relationship('User', foreign_keys=[author_id])
    review_events = relationship('ReviewEvent', back_populates='paper',
                                 cascade='all, delete-orphan',
                                 passive_deletes=True)

    # Domain field names that map onto a single column of the same name.
    SIMPLE_FIELDS = ['status', 'last_reviewer_role', 'previous_status',
                     'revision_notes', 'rejection_reason', 'published']

    @classmethod
    def columns_for(cls, patch: domain.Patch) -> Dict[str, Any]:
        """Translate a domain patch into column values."""
        values: Dict[str, Any] = {}
        for key, value in patch.items():
            if key in cls.SIMPLE_FIELDS:
                values[key] = _value(value)
            elif key == 'assigned_faculty_id':
                values['faculty_id'] = value
            elif key == 'metadata':
                values.update(cls._metadata_columns(value))
            elif key == 'content':
                values.update(cls._content_columns(value))
            else:
                raise KeyError(f'Cannot patch field {key}')
        return values

    @staticmethod
    def _metadata_columns(metadata: domain.PaperMetadata) -> Dict[str, Any]:
        return {
            'title': metadata.title,
            'abstract': metadata.abstract,
            'category': metadata.category,
            'keywords': list(metadata.keywords),
            'co_authors': metadata.co_authors,
            'department': metadata.department,
        }

    @staticmethod
    def _content_columns(content: Optional[domain.Content]) -> Dict[str, Any]:
        if content is None:
            return {}
        return {'file_url': content.url, 'file_name': content.name,
                'file_size': content.size}

    def update_from_paper(self, paper: domain.Paper) -> 'Paper':
        """Set the fields on this row from a domain :class:`.Paper`."""
        self.paper_id = paper.paper_id
        self.author_id = paper.author_id
        self.faculty_id = paper.assigned_faculty_id
        self.status = paper.status.value
        self.last_reviewer_role = _value(paper.last_reviewer_role)
        self.previous_status = _value(paper.previous_status)
        self.revision_notes = paper.revision_notes
        self.rejection_reason = paper.rejection_reason
        self.published = paper.published
        for key, value in self._metadata_columns(paper.metadata).items():
            setattr(self, key, value)
        for key, value in self._content_columns(paper.content).items():
            setattr(self, key, value)
        if paper.created is not None:
            self.created = paper.created
        return self

    def to_paper(self) -> domain.Paper:
        """Generate a domain :class:`.Paper` from this row."""
        content: Optional[domain.Content] = None
        if self.file_url:
            content = domain.Content(url=self.file_url,
                                     name=self.file_name or '',
                                     size=self.file_size)
        return domain.Paper(
            paper_id=self.paper_id,
            author_id=self.author_id,
            status=domain.Status(self.status),
            assigned_faculty_id=self.faculty_id,
            last_reviewer_role=self.last_reviewer_role,
            previous_status=self.previous_status,
            revision_notes=self.revision_notes,
            rejection_reason=self.rejection_reason,
            metadata=domain.PaperMetadata(
                title=self.title,
                abstract=self.abstract,
                category=self.category,
                keywords=self.keywords or [],
                co_authors=self.co_authors,
                department=self.department
            ),
            content=content,
            created=self.created,
            updated=self.updated,
            published=self.published,
            view_count=self.view_count or 0,
            download_count=self.download_count or 0
        )


class ReviewEvent(Base):    # type: ignore
    """Audit record of a reviewer decision. Rows are only ever inserted."""

    __tablename__ = 'approval_workflow'

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    paper_id = Column(
        ForeignKey('research_papers.paper_id', ondelete='CASCADE',
                   onupdate='CASCADE'),
        nullable=False,
        index=True
    )
    reviewer_id = Column(String(36), nullable=False)
    reviewer_role = Column(String(16), nullable=False)
    decision = Column(String(32), nullable=False)
    comments = Column(Text)
    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)

    paper = relationship('Paper', back_populates='review_events')

    @classmethod
    def from_event(cls, event: domain.ReviewEvent) -> 'ReviewEvent':
        return cls(paper_id=event.paper_id,
                   reviewer_id=event.reviewer_id,
                   reviewer_role=event.reviewer_role.value,
                   decision=event.decision.value,
                   comments=event.comments,
                   created=event.created)

    def to_event(self) -> domain.ReviewEvent:
        return domain.ReviewEvent(paper_id=self.paper_id,
                                  reviewer_id=self.reviewer_id,
                                  reviewer_role=self.reviewer_role,
                                  decision=self.decision,
                                  comments=self.comments,
                                  created=self.created,
                                  event_id=self.event_id)


class Notification(Base):    # type: ignore
    """A message in a user's inbox."""

    __tablename__ = 'notifications'

    notification_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        ForeignKey('users.user_id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False,
        index=True
    )
    paper_id = Column(
        ForeignKey('research_papers.paper_id', ondelete='CASCADE',
                   onupdate='CASCADE'),
        index=True
    )
    kind = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    read = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)

    @classmethod
    def from_notice(cls, notice: domain.Notice) -> 'Notification':
        return cls(user_id=notice.recipient_id,
                   paper_id=notice.paper_id,
                   kind=notice.kind.value,
                   title=notice.title,
                   message=notice.message,
                   read=notice.read,
                   created=notice.created)

    def to_notice(self) -> domain.Notice:
        return domain.Notice(recipient_id=self.user_id,
                             paper_id=self.paper_id,
                             kind=self.kind,
                             title=self.title,
                             message=self.message or '',
                             read=bool(self.read),
                             created=self.created,
                             notice_id=self.notification_id)


class Category(Base):    # type: ignore
    """A research area that papers can be filed under."""

    __tablename__ = 'research_categories'

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)

    def to_category(self) -> domain.Category:
        return domain.Category(name=self.name,
                               category_id=self.category_id,
                               description=self.description)


class PaperView(Base):    # type: ignore
    """One user opening one paper."""

    __tablename__ = 'paper_views'

    view_id = Column(Integer, primary_key=True, autoincrement=True)
    paper_id = Column(
        ForeignKey('research_papers.paper_id', ondelete='CASCADE',
                   onupdate='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = Column(
        ForeignKey('users.user_id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False
    )
    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)


class PaperDownload(Base):    # type: ignore
    """One user downloading one paper."""

    __tablename__ = 'paper_downloads'

    download_id = Column(Integer, primary_key=True, autoincrement=True)
    paper_id = Column(
        ForeignKey('research_papers.paper_id', ondelete='CASCADE',
                   onupdate='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = Column(
        ForeignKey('users.user_id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False
    )
    created = Column(DateTime(timezone=True), default=get_tzaware_utc_now)
