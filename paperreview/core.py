"""
Workflow operations on research papers.

Each status-changing operation runs in two phases:

1. **Commit state.** Load the paper, ask :mod:`.machine` what the action does,
   and write the result. The write is conditional on the paper still having
   the status that we read, so two reviewers acting on the same paper at the
   same time cannot both win. If this phase fails the caller gets an
   exception and nothing has changed.
2. **Emit effects.** Append to the review trail and notify the people
   involved. These are best effort: failures are logged and swallowed, since
   the transition has already happened.
"""

import logging
from typing import Optional, List, Iterable, Iterator, Union, Callable, \
    TypeVar, Any

from .domain import Paper, Draft, Patch, User, Role, Status, ReviewEvent, \
    Notice, Kind, Category, as_status
from .exceptions import ValidationError, NotFoundError, PermissionDenied, \
    ConcurrentTransitionError, PersistenceFailure
from .machine import Action, Transition, decide, initial_status, resubmit, \
    reviewer_for
from .services import database, notification
from .services.database import NoSuchPaper, NoSuchNotification, \
    ConsistencyError, TransactionFailed, Unavailable, transaction

logger = logging.getLogger(__name__)

T = TypeVar('T')

ASSIGNED_STATUSES = {
    Role.FACULTY: [Status.PENDING_FACULTY],
    Role.STAFF: [Status.PENDING_EDITOR, Status.PENDING],
    Role.ADMIN: [Status.PENDING_ADMIN, Status.UNDER_REVIEW],
}
"""Statuses that make up each reviewer's queue by default."""

APPROVAL_MESSAGES = {
    Status.PENDING_EDITOR: 'Your research has been approved by faculty and is'
                           ' now under editor review',
    Status.PENDING_ADMIN: 'Your research has been approved by the editor and'
                          ' is awaiting final admin approval',
    Status.APPROVED: 'Congratulations! Your research has been approved and'
                     ' published',
}


def submit(draft: Draft, submitter: User,
           paper_id: Optional[str] = None) -> Paper:
    """
    Submit a new paper, or resubmit an existing one.

    Parameters
    ----------
    draft : :class:`.Draft`
        Metadata, a reference to the stored content, and (for new papers
        only) the faculty member chosen as first reviewer.
    submitter : :class:`.User`
    paper_id : str
        If provided, the paper to update. Papers awaiting revision go back to
        review; other papers only have their metadata and content updated.

    Returns
    -------
    :class:`.Paper`

    Raises
    ------
    :class:`.ValidationError`
    :class:`.NotFoundError`
    :class:`.PermissionDenied`
        If ``submitter`` is not the author of the paper being updated.
    :class:`.ConcurrentTransitionError`
    :class:`.PersistenceFailure`

    """
    _validate_draft(draft, paper_id)
    if paper_id is None:
        return _create(draft, submitter)
    return _resubmit(paper_id, draft, submitter)


def approve(paper_id: str, actor: User,
            comments: Optional[str] = None) -> Paper:
    """Approve a paper at the actor's review stage."""
    return _review(paper_id, actor, Action.APPROVE, comments or None)


def reject(paper_id: str, actor: User, reason: Optional[str]) -> Paper:
    """Reject a paper. A non-empty reason is required."""
    return _review(paper_id, actor, Action.REJECT, reason)


def request_revision(paper_id: str, actor: User,
                     notes: Optional[str]) -> Paper:
    """Send a paper back to its author. Non-empty notes are required."""
    return _review(paper_id, actor, Action.REQUEST_REVISION, notes)


def get_assigned(actor: User,
                 status: Union[str, Status, None] = None) -> List[Paper]:
    """
    Get the papers waiting on the actor's review stage.

    Faculty see only papers assigned to them. Staff also see legacy papers
    that were submitted without a faculty reviewer. If ``status`` is given it
    replaces the default statuses of the actor's queue.
    """
    statuses = ASSIGNED_STATUSES.get(actor.role)
    if statuses is None:
        return []
    if status is not None:
        statuses = [_status_filter(status)]
    return _read(database.list_by_role, actor.role, actor.native_id,
                 statuses)


def get(paper_id: str) -> Paper:
    """Get a single paper."""
    return _read(database.get_paper, paper_id)


def get_mine(author: User) -> List[Paper]:
    """Get the papers submitted by ``author``, newest first."""
    return _read(database.list_by_author, author.native_id)


def get_all(status: Union[str, Status, None] = None) -> List[Paper]:
    """Get every paper, newest first, optionally in a single status."""
    return _read(database.list_all, _status_filter(status))


def get_published(category: Optional[str] = None,
                  search: Optional[str] = None) -> List[Paper]:
    """Get approved papers, most recently published first."""
    return _read(database.list_published, category or None,
                 (search or '').strip() or None)


def get_history(paper_id: str) -> List[ReviewEvent]:
    """Get the review trail for a paper, oldest first."""
    _read(database.get_paper, paper_id)
    return _read(database.get_review_events, paper_id)


def get_inbox(user: User, unread_only: bool = False) -> List[Notice]:
    """Get a user's notifications, newest first."""
    return _read(database.list_notifications, user.native_id, unread_only)


def mark_read(notice_id: int, user: User) -> Notice:
    """Mark one of the user's notifications as read."""
    try:
        with transaction():
            return database.mark_notification_read(notice_id, user.native_id)
    except NoSuchNotification as e:
        raise NotFoundError(str(e)) from e
    except (TransactionFailed, Unavailable) as e:
        raise PersistenceFailure('Could not update notification') from e


def get_faculty(department: Optional[str] = None) -> List[User]:
    """Get faculty members that an author can pick as first reviewer."""
    return _read(database.list_faculty, department or None)


def get_categories() -> List[Category]:
    """Get the research categories, by name."""
    return _read(database.list_categories)


def track_view(paper_id: str, user: User) -> Paper:
    """
    Count a view of a paper by ``user``.

    Returns the paper with its updated counters.
    """
    return _record_access(database.record_view, paper_id, user)


def track_download(paper_id: str, user: User) -> Paper:
    """Count a download of a paper by ``user``."""
    return _record_access(database.record_download, paper_id, user)


def emit_effects(events: Iterable[ReviewEvent],
                 notices: Iterable[Notice]) -> None:
    """
    Record review events and dispatch notices, absorbing any failure.

    ``notices`` may be lazy; recipients are often looked up while iterating,
    and a failed lookup is treated like a failed dispatch.
    """
    for event in events:
        try:
            with transaction():
                database.append_review_event(event)
        except Exception:
            logger.warning('Could not record %s decision on %s',
                           event.decision.value, event.paper_id,
                           exc_info=True)
    try:
        for notice in notices:
            try:
                notification.notify(notice)
            except Exception:
                logger.warning('Could not notify %s about %s',
                               notice.recipient_id, notice.paper_id,
                               exc_info=True)
    except Exception:
        logger.warning('Could not work out whom to notify', exc_info=True)


# Private functions down here.

def _validate_draft(draft: Draft, paper_id: Optional[str]) -> None:
    missing = draft.metadata.missing
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}')
    if paper_id is None and draft.content is None:
        raise ValidationError('Paper content is required')


def _create(draft: Draft, submitter: User) -> Paper:
    if draft.assigned_faculty_id:
        faculty = _read(database.get_user, draft.assigned_faculty_id)
        if faculty is None or faculty.role is not Role.FACULTY:
            raise ValidationError('Assigned reviewer must be a faculty member')
    paper = Paper(author_id=submitter.native_id,
                  status=initial_status(draft.assigned_faculty_id),
                  metadata=draft.metadata,
                  content=draft.content,
                  assigned_faculty_id=draft.assigned_faculty_id)
    try:
        with transaction():
            paper = database.create_paper(paper)
    except (TransactionFailed, Unavailable) as e:
        raise PersistenceFailure('Could not store paper') from e
    logger.info('Paper %s submitted by %s, status %s', paper.paper_id,
                submitter.native_id, paper.status.value)
    emit_effects([], _submission_notices(paper, submitter,
                                         reviewer_for(paper.status),
                                         'New Research Submission',
                                         'submitted'))
    return paper


def _resubmit(paper_id: str, draft: Draft, submitter: User) -> Paper:
    before = _read(database.get_paper, paper_id)
    if before.author_id != submitter.native_id:
        raise PermissionDenied('Only the author may update this paper')

    patch: Patch = {'metadata': draft.metadata}
    if draft.content is not None:
        patch['content'] = draft.content
    transition = resubmit(before)
    if transition is not None:
        patch.update(transition.patch)
        reviewer = transition.next_reviewer
    else:
        reviewer = reviewer_for(before.status)
    after = _commit(before, patch, submitter.role)
    logger.info('Paper %s updated by author, status %s -> %s', paper_id,
                before.status.value, after.status.value)
    emit_effects([], _submission_notices(after, submitter, reviewer,
                                         'Research Revised', 'resubmitted'))
    return after


def _review(paper_id: str, actor: User, action: Action,
            note: Optional[str]) -> Paper:
    before = _read(database.get_paper, paper_id)
    transition = decide(before, actor, action, note)
    after = _commit(before, transition.patch, actor.role)
    logger.info('Paper %s: %s by %s (%s), %s -> %s', paper_id,
                action.value, actor.native_id, actor.role.value,
                transition.before.value, transition.after.value)

    events: List[ReviewEvent] = []
    if transition.decision is not None:
        events.append(ReviewEvent(paper_id=paper_id,
                                  reviewer_id=actor.native_id,
                                  reviewer_role=actor.role,
                                  decision=transition.decision,
                                  comments=note))
    emit_effects(events, _notices_for(after, transition, note))
    return after


def _commit(before: Paper, patch: Patch, role: Role) -> Paper:
    """Write ``patch``, as long as ``before`` is still current."""
    try:
        with transaction():
            return database.update_paper(before.paper_id, patch,
                                         expected_status=before.status)
    except NoSuchPaper as e:
        raise NotFoundError(str(e)) from e
    except ConsistencyError as e:
        logger.info('Lost race on paper %s: %s', before.paper_id, e)
        raise ConcurrentTransitionError(
            before.status.value, role.value,
            'Paper status changed while this request was being processed'
        ) from e
    except (TransactionFailed, Unavailable) as e:
        raise PersistenceFailure('Could not update paper') from e


def _record_access(func: Callable[[str, str], Paper], paper_id: str,
                   user: User) -> Paper:
    try:
        with transaction():
            return func(paper_id, user.native_id)
    except NoSuchPaper as e:
        raise NotFoundError(str(e)) from e
    except (TransactionFailed, Unavailable) as e:
        raise PersistenceFailure('Could not record access') from e


def _read(func: Callable[..., T], *args: Any) -> T:
    """Call a store read, translating its exceptions."""
    try:
        return func(*args)
    except NoSuchPaper as e:
        raise NotFoundError(str(e)) from e
    except Unavailable as e:
        raise PersistenceFailure('Paper store unavailable') from e


def _status_filter(value: Union[str, Status, None]) -> Optional[Status]:
    try:
        return as_status(value)
    except ValueError as e:
        raise ValidationError(f'Unknown status: {value}') from e


def _notices_for(paper: Paper, transition: Transition,
                 note: Optional[str]) -> Iterator[Notice]:
    """Generate notices for the parties named by ``transition``."""
    if transition.notify_author:
        yield _author_notice(paper, transition, note)
    if transition.next_reviewer is not None:
        yield from _review_requests(
            paper, transition.next_reviewer, Kind.REVIEW_REQUEST,
            'New Research for Review',
            f'Research "{paper.title}" is ready for your review'
        )


def _author_notice(paper: Paper, transition: Transition,
                   note: Optional[str]) -> Notice:
    title = paper.title
    if transition.action is Action.APPROVE:
        kind, subject = Kind.APPROVAL, 'Research Approved'
        message = APPROVAL_MESSAGES[transition.after]
    elif transition.action is Action.REJECT:
        kind, subject = Kind.REJECTION, 'Research Rejected'
        message = f'Your research "{title}" was not accepted. Reason: {note}'
    else:
        kind, subject = Kind.REVISION, 'Revision Requested'
        message = f'Please revise "{title}" and resubmit. Notes: {note}'
    return Notice(recipient_id=paper.author_id, paper_id=paper.paper_id,
                  kind=kind, title=subject, message=message)


def _submission_notices(paper: Paper, author: User, reviewer: Optional[Role],
                        title: str, verb: str) -> Iterator[Notice]:
    """Tell the reviewers of the paper's current stage that it is ready."""
    if reviewer is None:
        return
    known = database.get_user(author.native_id)
    name = (known or author).display_name
    where = 'for your review' if paper.status is Status.PENDING_FACULTY \
        else 'for review'
    yield from _review_requests(paper, reviewer, Kind.SUBMISSION, title,
                                f'{name} {verb} "{paper.title}" {where}')


def _review_requests(paper: Paper, reviewer: Role, kind: Kind, title: str,
                     message: str) -> Iterator[Notice]:
    """Generate a notice for each user who reviews as ``reviewer``."""
    for recipient_id in _reviewers_of(paper, reviewer):
        yield Notice(recipient_id=recipient_id,
                     paper_id=paper.paper_id,
                     kind=kind,
                     title=title,
                     message=message)


def _reviewers_of(paper: Paper, reviewer: Role) -> List[str]:
    """IDs of the users who review ``paper`` as ``reviewer``."""
    if reviewer is Role.FACULTY:
        return [paper.assigned_faculty_id] if paper.has_faculty else []
    return database.list_users_by_role(reviewer)
