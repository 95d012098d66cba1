"""
Decision logic for moving a paper through review.

Nothing in this module touches the database or sends anything; it answers
the question "given this paper, this actor and this action, what happens
next, and who needs to hear about it?" The orchestrator in :mod:`.core`
applies the answer.

Papers move through three sequential review stages, each owned by a role:

=========  ====================  =========================
Reviewer   Status(es)            Approval moves paper to
=========  ====================  =========================
faculty    ``pending_faculty``   ``pending_editor``
staff      ``pending_editor``    ``pending_admin``
admin      ``pending_admin``     ``approved``
=========  ====================  =========================

At the faculty stage the reviewer is the one faculty member assigned to the
paper, not any holder of the role.

``pending`` is the first-review stage for papers submitted without an
assigned faculty member. The editors hold it. Nobody can approve it, but it
can still be rejected or sent back for revision. ``under_review`` is an older
name for the admin stage.

Only the reviewer of a stage may request a revision there. A rejection may
also come from anyone who outranks that reviewer. When the author resubmits,
:func:`resume_status` decides which stage gets the paper back.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, NoReturn

from dataclasses import dataclass, field

from .domain.agent import Role, User
from .domain.paper import Status, Paper, Patch
from .domain.review import Decision
from .domain.util import get_tzaware_utc_now
from .exceptions import InvalidTransitionError, ValidationError

logger = logging.getLogger(__name__)


class Action(Enum):
    """Things that can happen to a paper under review."""

    APPROVE = 'approve'
    REJECT = 'reject'
    REQUEST_REVISION = 'request_revision'
    RESUBMIT = 'resubmit'


@dataclass(frozen=True)
class Stage:
    """
    A point in the review pipeline.

    ``legacy`` marks the first-review variant that has no assigned faculty
    member; the editors review it, and it cannot be approved.
    """

    reviewer: Role
    legacy: bool = False


STAGES: Dict[Role, Status] = {
    Role.FACULTY: Status.PENDING_FACULTY,
    Role.STAFF: Status.PENDING_EDITOR,
    Role.ADMIN: Status.PENDING_ADMIN,
}
"""The status at which each reviewing role does its review."""

STAGE_FOR_STATUS: Dict[Status, Stage] = {
    Status.PENDING_FACULTY: Stage(Role.FACULTY),
    Status.PENDING: Stage(Role.STAFF, legacy=True),
    Status.PENDING_EDITOR: Stage(Role.STAFF),
    Status.PENDING_ADMIN: Stage(Role.ADMIN),
    Status.UNDER_REVIEW: Stage(Role.ADMIN),
}

APPROVES_TO: Dict[Role, Status] = {
    Role.FACULTY: Status.PENDING_EDITOR,
    Role.STAFF: Status.PENDING_ADMIN,
    Role.ADMIN: Status.APPROVED,
}
"""Where a paper goes when the reviewer of its stage approves it."""


@dataclass
class Transition:
    """The outcome of a decision: what to write and whom to tell."""

    action: Action
    role: Optional[Role]
    before: Status
    after: Status
    patch: Patch = field(default_factory=dict)
    decision: Optional[Decision] = field(default=None)
    """What goes into the audit trail, if anything."""

    notify_author: bool = field(default=True)
    next_reviewer: Optional[Role] = field(default=None)
    """Role whose members should be asked to review next."""


def initial_status(assigned_faculty_id: Optional[str]) -> Status:
    """Status of a newly submitted paper."""
    if assigned_faculty_id:
        return Status.PENDING_FACULTY
    return Status.PENDING


def stage_of(status: Status) -> Optional[Stage]:
    """Get the review stage for a status, if it is awaiting a reviewer."""
    return STAGE_FOR_STATUS.get(status)


def reviewer_for(status: Status) -> Optional[Role]:
    """The role that reviews papers in ``status``."""
    stage = stage_of(status)
    return stage.reviewer if stage is not None else None


def decide(paper: Paper, actor: User, action: Action,
           note: Optional[str] = None,
           now: Optional[datetime] = None) -> Transition:
    """
    Work out what ``action`` by ``actor`` does to ``paper``.

    Parameters
    ----------
    paper : :class:`.Paper`
    actor : :class:`.User`
        The acting reviewer. Only their role matters, except at the faculty
        stage where they must also be the assigned faculty member.
    action : :class:`.Action`
        One of approve, reject, or request revision.
    note : str
        Comments for an approval, the reason for a rejection, or the notes
        for a revision request.
    now : datetime
        Used as the publication time on final approval.

    Returns
    -------
    :class:`.Transition`

    Raises
    ------
    :class:`.ValidationError`
        If a rejection has no reason or a revision request has no notes.
    :class:`.InvalidTransitionError`
        If the role/status/action combination is not allowed.

    """
    if action is Action.APPROVE:
        return _approve(paper, actor, now or get_tzaware_utc_now())
    if action is Action.REJECT:
        return _reject(paper, actor, note)
    if action is Action.REQUEST_REVISION:
        return _request_revision(paper, actor, note)
    raise InvalidTransitionError(paper.status.value, actor.role.value,
                                 f'Cannot {action.value} through review')


def resume_status(paper: Paper) -> Status:
    """
    Pick the status a resubmitted paper goes back to.

    In order of preference: the stage of whoever asked for the revision, the
    status the paper had before the revision was requested, the faculty stage
    if a faculty member is assigned, and finally the unassigned first-review
    stage.
    """
    if paper.last_reviewer_role is not None \
            and paper.last_reviewer_role in STAGES:
        return STAGES[paper.last_reviewer_role]
    if paper.previous_status is not None:
        return paper.previous_status
    if paper.has_faculty:
        return Status.PENDING_FACULTY
    return Status.PENDING


def resubmit(paper: Paper) -> Optional[Transition]:
    """
    Return a paper that was sent back for revision to an active stage.

    Returns ``None`` if the paper is not awaiting revision; in that case a
    resubmission only updates content, and the status stays put.
    """
    if not paper.in_revision:
        return None
    after = resume_status(paper)
    logger.debug('Resubmission of %s: %s -> %s', paper.paper_id,
                 paper.status.value, after.value)
    return Transition(
        action=Action.RESUBMIT,
        role=None,
        before=paper.status,
        after=after,
        patch={'status': after, 'revision_notes': None,
               'last_reviewer_role': None, 'previous_status': None},
        notify_author=False,
        next_reviewer=reviewer_for(after)
    )


def _approve(paper: Paper, actor: User, now: datetime) -> Transition:
    stage = stage_of(paper.status)
    if stage is None or stage.legacy or not _is_reviewer(stage, paper, actor):
        raise InvalidTransitionError(
            paper.status.value, actor.role.value,
            'Invalid approval workflow. Please check the paper status and'
            ' your role.'
        )
    after = APPROVES_TO[actor.role]
    patch: Patch = {'status': after}
    if after is Status.APPROVED:
        patch['published'] = now
    return Transition(
        action=Action.APPROVE,
        role=actor.role,
        before=paper.status,
        after=after,
        patch=patch,
        decision=Decision.APPROVED,
        next_reviewer=reviewer_for(after)
    )


def _reject(paper: Paper, actor: User, reason: Optional[str]) -> Transition:
    reason = _require_text(reason, 'Rejection reason is required')
    stage = stage_of(paper.status)
    if stage is None or not (_is_reviewer(stage, paper, actor)
                             or actor.role.outranks(stage.reviewer)):
        _refuse(paper, actor, Action.REJECT)
    return Transition(
        action=Action.REJECT,
        role=actor.role,
        before=paper.status,
        after=Status.REJECTED,
        patch={'status': Status.REJECTED, 'rejection_reason': reason},
        decision=Decision.REJECTED,
    )


def _request_revision(paper: Paper, actor: User,
                      notes: Optional[str]) -> Transition:
    notes = _require_text(notes, 'Revision notes are required')
    stage = stage_of(paper.status)
    if stage is None or not _is_reviewer(stage, paper, actor):
        _refuse(paper, actor, Action.REQUEST_REVISION)
    return Transition(
        action=Action.REQUEST_REVISION,
        role=actor.role,
        before=paper.status,
        after=Status.REVISION_REQUIRED,
        patch={'status': Status.REVISION_REQUIRED, 'revision_notes': notes,
               'last_reviewer_role': actor.role,
               'previous_status': paper.status},
        decision=Decision.REVISION_REQUIRED,
    )


def _is_reviewer(stage: Stage, paper: Paper, actor: User) -> bool:
    """Is ``actor`` the reviewer of ``paper`` at ``stage``?"""
    if actor.role is not stage.reviewer:
        return False
    if stage.reviewer is Role.FACULTY:
        return actor.native_id == paper.assigned_faculty_id
    return True


def _refuse(paper: Paper, actor: User, action: Action) -> NoReturn:
    raise InvalidTransitionError(
        paper.status.value, actor.role.value,
        f'Cannot {action.value.replace("_", " ")} a paper in this status'
    )


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()
