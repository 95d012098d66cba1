"""Tests for :mod:`paperreview.machine`."""

from unittest import TestCase
from datetime import datetime

from pytz import UTC

from ..domain import Paper, User, Role, Status, Decision
from ..exceptions import InvalidTransitionError, ValidationError
from .. import machine
from ..machine import Action, decide, resubmit, resume_status

ACTORS = {
    Role.STUDENT: User('s-2', Role.STUDENT),
    Role.FACULTY: User('f-1', Role.FACULTY),
    Role.STAFF: User('e-1', Role.STAFF),
    Role.ADMIN: User('a-1', Role.ADMIN),
}
"""One actor per role; the faculty member is assigned to every test paper."""

OTHER_FACULTY = User('f-2', Role.FACULTY)


def paper_in(status: Status, **kwargs) -> Paper:
    kwargs.setdefault('assigned_faculty_id', 'f-1')
    return Paper(author_id='s-1', status=status, paper_id='p-1', **kwargs)


class TestApprove(TestCase):
    """Every role/status pair for approval."""

    VALID = {
        (Role.FACULTY, Status.PENDING_FACULTY):
            (Status.PENDING_EDITOR, Role.STAFF),
        (Role.STAFF, Status.PENDING_EDITOR):
            (Status.PENDING_ADMIN, Role.ADMIN),
        (Role.ADMIN, Status.PENDING_ADMIN): (Status.APPROVED, None),
        (Role.ADMIN, Status.UNDER_REVIEW): (Status.APPROVED, None),
    }

    def test_valid_pairs(self):
        """Each valid pair yields the mapped status and next reviewer."""
        for (role, status), (after, next_reviewer) in self.VALID.items():
            transition = decide(paper_in(status), ACTORS[role],
                                Action.APPROVE)
            self.assertEqual(transition.after, after, f'{role} on {status}')
            self.assertEqual(transition.patch['status'], after)
            self.assertEqual(transition.next_reviewer, next_reviewer)
            self.assertEqual(transition.decision, Decision.APPROVED)
            self.assertTrue(transition.notify_author)

    def test_invalid_pairs(self):
        """Every other pair is refused with the status and role attached."""
        for role, actor in ACTORS.items():
            for status in Status:
                if (role, status) in self.VALID:
                    continue
                with self.assertRaises(InvalidTransitionError,
                                       msg=f'{role} on {status}') as ctx:
                    decide(paper_in(status), actor, Action.APPROVE)
                self.assertEqual(ctx.exception.status, status.value)
                self.assertEqual(ctx.exception.role, role.value)

    def test_staff_cannot_skip_faculty(self):
        """Staff may not approve a paper that is waiting on faculty."""
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_FACULTY), ACTORS[Role.STAFF],
                   Action.APPROVE)

    def test_only_assigned_faculty(self):
        """Faculty approve only the papers assigned to them."""
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_FACULTY), OTHER_FACULTY,
                   Action.APPROVE)

    def test_legacy_pending_has_no_approval(self):
        """Nobody can approve a paper that has no faculty reviewer."""
        paper = paper_in(Status.PENDING, assigned_faculty_id=None)
        for actor in ACTORS.values():
            with self.assertRaises(InvalidTransitionError):
                decide(paper, actor, Action.APPROVE)

    def test_final_approval_publishes(self):
        """Final approval sets the publication time."""
        now = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
        transition = decide(paper_in(Status.PENDING_ADMIN),
                            ACTORS[Role.ADMIN], Action.APPROVE, now=now)
        self.assertEqual(transition.patch['published'], now)

    def test_intermediate_approval_does_not_publish(self):
        """Only final approval sets the publication time."""
        transition = decide(paper_in(Status.PENDING_FACULTY),
                            ACTORS[Role.FACULTY], Action.APPROVE)
        self.assertNotIn('published', transition.patch)


class TestReject(TestCase):
    """Tests for rejection."""

    def test_reject_requires_reason(self):
        """An empty or blank reason is refused."""
        for reason in (None, '', '   '):
            with self.assertRaises(ValidationError):
                decide(paper_in(Status.PENDING_EDITOR), ACTORS[Role.STAFF],
                       Action.REJECT, reason)

    def test_higher_role_may_reject(self):
        """A reviewer may reject at their own stage or an earlier one."""
        transition = decide(paper_in(Status.PENDING_FACULTY),
                            ACTORS[Role.ADMIN], Action.REJECT, 'Out of scope')
        self.assertEqual(transition.after, Status.REJECTED)
        self.assertEqual(transition.patch['rejection_reason'], 'Out of scope')
        self.assertEqual(transition.decision, Decision.REJECTED)
        self.assertTrue(transition.notify_author)
        self.assertIsNone(transition.next_reviewer)

    def test_lower_role_may_not_reject(self):
        """Faculty cannot reject a paper that is past their stage."""
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_ADMIN), ACTORS[Role.FACULTY],
                   Action.REJECT, 'No')

    def test_unassigned_faculty_may_not_reject(self):
        """Faculty reject only the papers assigned to them."""
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_FACULTY), OTHER_FACULTY,
                   Action.REJECT, 'No')

    def test_legacy_pending_belongs_to_editors(self):
        """Editors and admins may reject an unassigned paper; faculty not."""
        paper = paper_in(Status.PENDING, assigned_faculty_id=None)
        for role in (Role.STAFF, Role.ADMIN):
            transition = decide(paper, ACTORS[role], Action.REJECT, 'No')
            self.assertEqual(transition.after, Status.REJECTED)
        with self.assertRaises(InvalidTransitionError):
            decide(paper, ACTORS[Role.FACULTY], Action.REJECT, 'No')

    def test_students_may_not_reject(self):
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING), ACTORS[Role.STUDENT],
                   Action.REJECT, 'No')

    def test_terminal_papers_stay_put(self):
        """Approved and rejected papers cannot be rejected again."""
        for status in (Status.APPROVED, Status.REJECTED,
                       Status.REVISION_REQUIRED):
            with self.assertRaises(InvalidTransitionError):
                decide(paper_in(status), ACTORS[Role.ADMIN], Action.REJECT,
                       'No')


class TestRequestRevision(TestCase):
    """Tests for revision requests."""

    def test_requires_notes(self):
        with self.assertRaises(ValidationError):
            decide(paper_in(Status.PENDING_EDITOR), ACTORS[Role.STAFF],
                   Action.REQUEST_REVISION, ' ')

    def test_records_who_asked(self):
        """Staff asking for revision at the editor stage is recorded."""
        transition = decide(paper_in(Status.PENDING_EDITOR),
                            ACTORS[Role.STAFF], Action.REQUEST_REVISION,
                            'Fix figures')
        self.assertEqual(transition.after, Status.REVISION_REQUIRED)
        self.assertEqual(transition.patch['last_reviewer_role'], Role.STAFF)
        self.assertEqual(transition.patch['previous_status'],
                         Status.PENDING_EDITOR)
        self.assertEqual(transition.patch['revision_notes'], 'Fix figures')
        self.assertEqual(transition.decision, Decision.REVISION_REQUIRED)
        self.assertTrue(transition.notify_author)
        self.assertIsNone(transition.next_reviewer)

    def test_higher_role_may_not_request_revision(self):
        """Only the stage's own reviewer may send a paper back."""
        paper = paper_in(Status.PENDING_FACULTY)
        for role in (Role.STAFF, Role.ADMIN):
            with self.assertRaises(InvalidTransitionError) as ctx:
                decide(paper, ACTORS[role], Action.REQUEST_REVISION, 'Redo')
            self.assertEqual(ctx.exception.status, 'pending_faculty')
            self.assertEqual(ctx.exception.role, role.value)
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_EDITOR), ACTORS[Role.ADMIN],
                   Action.REQUEST_REVISION, 'Redo')

    def test_unassigned_faculty_may_not_request_revision(self):
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_FACULTY), OTHER_FACULTY,
                   Action.REQUEST_REVISION, 'Redo')

    def test_legacy_pending(self):
        """Editors, and only editors, send an unassigned paper back."""
        paper = paper_in(Status.PENDING, assigned_faculty_id=None)
        transition = decide(paper, ACTORS[Role.STAFF],
                            Action.REQUEST_REVISION,
                            'Needs an abstract that says something')
        self.assertEqual(transition.patch['previous_status'], Status.PENDING)
        self.assertEqual(transition.patch['last_reviewer_role'], Role.STAFF)
        for role in (Role.FACULTY, Role.ADMIN):
            with self.assertRaises(InvalidTransitionError):
                decide(paper, ACTORS[role], Action.REQUEST_REVISION, 'Redo')

    def test_resubmit_is_not_a_review_action(self):
        with self.assertRaises(InvalidTransitionError):
            decide(paper_in(Status.PENDING_EDITOR), ACTORS[Role.STAFF],
                   Action.RESUBMIT)


class TestResubmit(TestCase):
    """Where a revised paper goes when its author sends it back."""

    def test_round_trip(self):
        """The paper returns to the stage of whoever asked for revision."""
        for role, stage in machine.STAGES.items():
            paper = paper_in(stage)
            revision = decide(paper, ACTORS[role], Action.REQUEST_REVISION,
                              'Again')
            revised = paper_in(Status.REVISION_REQUIRED,
                               last_reviewer_role=role,
                               previous_status=stage,
                               revision_notes='Again')
            self.assertEqual(revision.after, revised.status)

            transition = resubmit(revised)
            self.assertEqual(transition.after, stage)
            self.assertEqual(transition.patch['status'], stage)
            self.assertIsNone(transition.patch['last_reviewer_role'])
            self.assertIsNone(transition.patch['previous_status'])
            self.assertIsNone(transition.patch['revision_notes'])
            self.assertFalse(transition.notify_author)
            self.assertEqual(transition.next_reviewer, role)

    def test_reviewer_role_comes_first(self):
        """The role that asked wins over the recorded previous status."""
        paper = paper_in(Status.REVISION_REQUIRED,
                         last_reviewer_role=Role.STAFF,
                         previous_status=Status.PENDING)
        self.assertEqual(resume_status(paper), Status.PENDING_EDITOR)

    def test_fallback_to_previous_status(self):
        """Without a reviewer role, the previous status is used."""
        paper = paper_in(Status.REVISION_REQUIRED,
                         previous_status=Status.PENDING_EDITOR)
        self.assertEqual(resume_status(paper), Status.PENDING_EDITOR)

    def test_fallback_to_faculty(self):
        """With nothing recorded, an assigned faculty member gets it."""
        paper = paper_in(Status.REVISION_REQUIRED)
        self.assertEqual(resume_status(paper), Status.PENDING_FACULTY)

    def test_legacy_fallback(self):
        """With nothing recorded and no faculty, back to ``pending``."""
        paper = paper_in(Status.REVISION_REQUIRED, assigned_faculty_id=None)
        self.assertEqual(resume_status(paper), Status.PENDING)
        self.assertEqual(resubmit(paper).next_reviewer, Role.STAFF)

    def test_not_in_revision(self):
        """Updating a paper that is not in revision changes no status."""
        self.assertIsNone(resubmit(paper_in(Status.PENDING_EDITOR)))


class TestStages(TestCase):
    def test_initial_status(self):
        self.assertEqual(machine.initial_status('f-1'),
                         Status.PENDING_FACULTY)
        self.assertEqual(machine.initial_status(None), Status.PENDING)
        self.assertEqual(machine.initial_status(''), Status.PENDING)

    def test_reviewer_for(self):
        """Unassigned papers are reviewed by the editors."""
        self.assertEqual(machine.reviewer_for(Status.PENDING), Role.STAFF)
        self.assertEqual(machine.reviewer_for(Status.PENDING_FACULTY),
                         Role.FACULTY)
        self.assertIsNone(machine.reviewer_for(Status.REVISION_REQUIRED))
