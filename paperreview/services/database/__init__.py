"""
Persistence for papers, review events, notifications, access counts,
categories and the user directory.

Every function here assumes that the caller controls the transaction scope,
using :func:`.util.transaction`. Reads are retried a few times if the
database is flaky; writes are not.

Status changes are conditional: :func:`update_paper` accepts the status that
the caller last saw, and only writes if the row still has it. This keeps two
reviewers acting on the same paper at the same moment from both winning.
"""

import logging
import uuid
from functools import wraps
from typing import List, Optional, Callable, Any, Iterable

from flask import Flask
from retry import retry
from sqlalchemy import or_
from sqlalchemy.exc import OperationalError

from ...domain import Paper, Patch, ReviewEvent, Notice, Role, Status, User, \
    Category
from ...domain.util import get_tzaware_utc_now
from . import models
from .models import Base
from .exceptions import DatabaseBaseException, NoSuchPaper, \
    NoSuchNotification, TransactionFailed, Unavailable, ConsistencyError
from .util import transaction, current_session, db

logger = logging.getLogger(__name__)


def handle_operational_errors(func: Callable) -> Callable:
    """Catch SQLAlchemy OperationalErrors and raise :class:`.Unavailable`."""
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            raise Unavailable('Paper store unavailable') from e
    return inner


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_paper(paper_id: str) -> Paper:
    """
    Get the current state of a paper.

    Parameters
    ----------
    paper_id : str

    Returns
    -------
    :class:`.domain.Paper`

    Raises
    ------
    :class:`.exceptions.NoSuchPaper`
        Raised when there is no paper with the provided ID.

    """
    return _load(paper_id).to_paper()


@handle_operational_errors
def create_paper(paper: Paper) -> Paper:
    """
    Store a new paper, assigning its identifier.

    Returns the paper as stored; the passed instance is not changed.
    """
    session = current_session()
    now = get_tzaware_utc_now()
    db_paper = models.Paper().update_from_paper(paper)
    db_paper.paper_id = paper.paper_id or str(uuid.uuid4())
    db_paper.created = paper.created or now
    db_paper.updated = now
    session.add(db_paper)
    session.flush()     # Push the INSERT so that errors surface here.
    logger.debug('Created paper %s with status %s', db_paper.paper_id,
                 db_paper.status)
    return db_paper.to_paper()


@handle_operational_errors
def update_paper(paper_id: str, patch: Patch,
                 expected_status: Optional[Status] = None) -> Paper:
    """
    Apply a patch to a paper.

    Parameters
    ----------
    paper_id : str
    patch : dict
        Domain field names to new values; see
        :meth:`.models.Paper.columns_for`.
    expected_status : :class:`.domain.Status`
        If provided, the update only goes through if the paper still has this
        status.

    Returns
    -------
    :class:`.domain.Paper`
        The state of the paper after the update.

    Raises
    ------
    :class:`.exceptions.NoSuchPaper`
    :class:`.exceptions.ConsistencyError`
        The paper no longer has ``expected_status``.

    """
    session = current_session()
    values = models.Paper.columns_for(patch)
    values['updated'] = get_tzaware_utc_now()
    query = session.query(models.Paper) \
        .filter(models.Paper.paper_id == paper_id)
    if expected_status is not None:
        query = query.filter(models.Paper.status == expected_status.value)
    n_rows = query.update(values, synchronize_session='fetch')
    if n_rows == 0:
        current = _load(paper_id)   # Raises NoSuchPaper.
        raise ConsistencyError(f'Paper {paper_id} is {current.status}, not'
                               f' {expected_status.value}')
    session.flush()
    return _load(paper_id).to_paper()


@handle_operational_errors
def append_review_event(event: ReviewEvent) -> ReviewEvent:
    """Add a review event to the audit trail of a paper."""
    session = current_session()
    db_event = models.ReviewEvent.from_event(event)
    session.add(db_event)
    session.flush()
    return db_event.to_event()


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_review_events(paper_id: str) -> List[ReviewEvent]:
    """Get the review events for a paper, oldest first."""
    session = current_session()
    rows = session.query(models.ReviewEvent) \
        .filter(models.ReviewEvent.paper_id == paper_id) \
        .order_by(models.ReviewEvent.created.asc(),
                  models.ReviewEvent.event_id.asc())
    return [row.to_event() for row in rows]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_by_role(role: Role, actor_id: str,
                 statuses: Iterable[Status]) -> List[Paper]:
    """
    Get papers in ``statuses`` that are visible to a reviewer.

    Faculty only see papers they have been assigned; other reviewers see
    every paper in the given statuses.
    """
    session = current_session()
    query = session.query(models.Paper) \
        .filter(models.Paper.status.in_([s.value for s in statuses]))
    if role is Role.FACULTY:
        query = query.filter(models.Paper.faculty_id == actor_id)
    query = query.order_by(models.Paper.created.desc())
    return [row.to_paper() for row in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_by_author(author_id: str) -> List[Paper]:
    """Get every paper submitted by a user, newest first."""
    session = current_session()
    query = session.query(models.Paper) \
        .filter(models.Paper.author_id == author_id) \
        .order_by(models.Paper.created.desc())
    return [row.to_paper() for row in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_all(status: Optional[Status] = None) -> List[Paper]:
    """Get every paper, optionally in one status, newest first."""
    session = current_session()
    query = session.query(models.Paper)
    if status is not None:
        query = query.filter(models.Paper.status == status.value)
    query = query.order_by(models.Paper.created.desc())
    return [row.to_paper() for row in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_published(category: Optional[str] = None,
                   search: Optional[str] = None) -> List[Paper]:
    """Get approved papers, most recently published first."""
    session = current_session()
    query = session.query(models.Paper) \
        .filter(models.Paper.status == Status.APPROVED.value)
    if category:
        query = query.filter(models.Paper.category == category)
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(models.Paper.title.ilike(pattern),
                                 models.Paper.abstract.ilike(pattern)))
    query = query.order_by(models.Paper.published.desc())
    return [row.to_paper() for row in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def get_user(user_id: str) -> Optional[User]:
    """Get a user from the directory, if they exist."""
    row = current_session().get(models.User, user_id)
    return row.to_user() if row is not None else None


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_users_by_role(role: Role) -> List[str]:
    """Get the IDs of every user holding ``role``."""
    session = current_session()
    query = session.query(models.User.user_id) \
        .filter(models.User.role == role.value) \
        .order_by(models.User.user_id)
    return [user_id for user_id, in query]


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_faculty(department: Optional[str] = None) -> List[User]:
    """Get faculty members, for authors choosing a first reviewer."""
    session = current_session()
    query = session.query(models.User) \
        .filter(models.User.role == Role.FACULTY.value)
    if department:
        query = query.filter(models.User.department == department)
    query = query.order_by(models.User.full_name)
    return [row.to_user() for row in query]


@handle_operational_errors
def store_notification(notice: Notice) -> Notice:
    """Put a notification in a user's inbox."""
    session = current_session()
    row = models.Notification.from_notice(notice)
    session.add(row)
    session.flush()
    return row.to_notice()


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_notifications(user_id: str,
                       unread_only: bool = False) -> List[Notice]:
    """Get a user's notifications, newest first."""
    session = current_session()
    query = session.query(models.Notification) \
        .filter(models.Notification.user_id == user_id)
    if unread_only:
        query = query.filter(models.Notification.read.is_(False))
    query = query.order_by(models.Notification.created.desc(),
                           models.Notification.notification_id.desc())
    return [row.to_notice() for row in query]


@handle_operational_errors
def mark_notification_read(notice_id: int, user_id: str) -> Notice:
    """Mark one of a user's notifications as read."""
    session = current_session()
    row = session.query(models.Notification) \
        .filter(models.Notification.notification_id == notice_id) \
        .filter(models.Notification.user_id == user_id) \
        .one_or_none()
    if row is None:
        raise NoSuchNotification(f'Notification {notice_id} not found')
    row.read = True
    session.flush()
    return row.to_notice()


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def list_categories() -> List[Category]:
    """Get every research category, ordered by name."""
    session = current_session()
    query = session.query(models.Category).order_by(models.Category.name)
    return [row.to_category() for row in query]


@handle_operational_errors
def record_view(paper_id: str, user_id: str) -> Paper:
    """
    Count a view of a paper, and remember who viewed it.

    Returns
    -------
    :class:`.domain.Paper`
        The paper with its counters after the update.

    Raises
    ------
    :class:`.exceptions.NoSuchPaper`

    """
    return _record_access(models.PaperView, models.Paper.view_count,
                          paper_id, user_id)


@handle_operational_errors
def record_download(paper_id: str, user_id: str) -> Paper:
    """Count a download of a paper, and remember who downloaded it."""
    return _record_access(models.PaperDownload, models.Paper.download_count,
                          paper_id, user_id)


# Private functions down here.

def _load(paper_id: str) -> models.Paper:
    row = current_session().get(models.Paper, paper_id)
    if row is None:
        raise NoSuchPaper(f'Paper {paper_id} not found')
    return row


def _record_access(model: type, counter: Any, paper_id: str,
                   user_id: str) -> Paper:
    session = current_session()
    n_rows = session.query(models.Paper) \
        .filter(models.Paper.paper_id == paper_id) \
        .update({counter: counter + 1}, synchronize_session='fetch')
    if n_rows == 0:
        raise NoSuchPaper(f'Paper {paper_id} not found')
    session.add(model(paper_id=paper_id, user_id=user_id))
    session.flush()
    return _load(paper_id).to_paper()


def init_app(app: Flask) -> None:
    """Register the SQLAlchemy extension to an application."""
    db.init_app(app)

    @app.teardown_request
    def teardown_request(exception: Optional[BaseException]) -> None:
        if exception:
            db.session.rollback()
        db.session.remove()


def create_all() -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(db.engine)


def drop_all() -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(db.engine)
