"""Tests for storing and updating papers."""

from unittest import TestCase
from datetime import datetime

from pytz import UTC

from ....domain import Paper, PaperMetadata, Content, Role, Status, \
    ReviewEvent, Decision, Notice, Kind
from ....tests.util import in_memory_db, add_user
from .. import create_paper, update_paper, get_paper, list_by_role, \
    list_users_by_role, append_review_event, get_review_events, \
    store_notification, list_notifications, mark_notification_read, \
    record_view, record_download, list_categories, transaction, models
from ..exceptions import NoSuchPaper, ConsistencyError, NoSuchNotification


def new_paper(**kwargs) -> Paper:
    kwargs.setdefault('status', Status.PENDING_FACULTY)
    kwargs.setdefault('assigned_faculty_id', 'f-1')
    return Paper(
        author_id='s-1',
        metadata=PaperMetadata(title='Foo', abstract='Bar', category='baz',
                               keywords=['a', 'b']),
        content=Content(url='https://files/foo.pdf', name='foo.pdf',
                        size=12),
        **kwargs
    )


class TestCreatePaper(TestCase):
    """Tests for :func:`.create_paper`."""

    def test_create(self):
        """The paper gets an identifier and timestamps."""
        with in_memory_db() as session:
            with transaction():
                paper = create_paper(new_paper())
            self.assertIsNotNone(paper.paper_id)
            self.assertIsNotNone(paper.created)
            self.assertIsNotNone(paper.created.tzinfo)

            row = session.get(models.Paper, paper.paper_id)
            self.assertEqual(row.status, 'pending_faculty')
            self.assertEqual(row.faculty_id, 'f-1')
            self.assertEqual(row.keywords, ['a', 'b'])
            self.assertEqual(row.file_name, 'foo.pdf')

            loaded = get_paper(paper.paper_id)
            self.assertEqual(loaded.metadata, paper.metadata)
            self.assertEqual(loaded.content, paper.content)

    def test_get_missing(self):
        with in_memory_db():
            with self.assertRaises(NoSuchPaper):
                get_paper('nope')


class TestUpdatePaper(TestCase):
    """Tests for :func:`.update_paper`."""

    def test_update(self):
        with in_memory_db():
            with transaction():
                paper = create_paper(new_paper())
            with transaction():
                after = update_paper(paper.paper_id, {
                    'status': Status.REVISION_REQUIRED,
                    'last_reviewer_role': Role.FACULTY,
                    'previous_status': Status.PENDING_FACULTY,
                    'revision_notes': 'More'
                }, expected_status=Status.PENDING_FACULTY)
            self.assertEqual(after.status, Status.REVISION_REQUIRED)
            self.assertEqual(after.last_reviewer_role, Role.FACULTY)
            self.assertEqual(after.previous_status, Status.PENDING_FACULTY)
            self.assertEqual(get_paper(paper.paper_id).revision_notes, 'More')

    def test_stale_status(self):
        """Nothing is written if the status changed under us."""
        with in_memory_db():
            with transaction():
                paper = create_paper(new_paper())
            with self.assertRaises(ConsistencyError):
                with transaction():
                    update_paper(paper.paper_id,
                                 {'status': Status.REJECTED},
                                 expected_status=Status.PENDING_EDITOR)
            self.assertEqual(get_paper(paper.paper_id).status,
                             Status.PENDING_FACULTY)

    def test_missing(self):
        with in_memory_db():
            with self.assertRaises(NoSuchPaper):
                with transaction():
                    update_paper('nope', {'status': Status.REJECTED},
                                 expected_status=Status.PENDING)

    def test_unknown_field(self):
        with self.assertRaises(KeyError):
            models.Paper.columns_for({'author_id': 'someone-else'})

    def test_publish(self):
        published = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)
        with in_memory_db():
            with transaction():
                paper = create_paper(new_paper(status=Status.PENDING_ADMIN))
            with transaction():
                update_paper(paper.paper_id, {'status': Status.APPROVED,
                                              'published': published})
            self.assertEqual(get_paper(paper.paper_id).published, published)


class TestListByRole(TestCase):
    """Tests for :func:`.list_by_role`."""

    def test_faculty_see_their_own(self):
        with in_memory_db():
            with transaction():
                mine = create_paper(new_paper())
                create_paper(new_paper(assigned_faculty_id='f-2'))
            papers = list_by_role(Role.FACULTY, 'f-1',
                                  [Status.PENDING_FACULTY])
            self.assertEqual([p.paper_id for p in papers], [mine.paper_id])

            papers = list_by_role(Role.STAFF, 'e-1',
                                  [Status.PENDING_FACULTY])
            self.assertEqual(len(papers), 2, 'Other roles see everything')

    def test_users_by_role(self):
        with in_memory_db() as session:
            add_user(session, 'e-2', Role.STAFF)
            add_user(session, 'e-1', Role.STAFF)
            add_user(session, 'a-1', Role.ADMIN)
            self.assertEqual(list_users_by_role(Role.STAFF), ['e-1', 'e-2'])
            self.assertEqual(list_users_by_role(Role.FACULTY), [])


class TestReviewEvents(TestCase):
    """Review events are appended and read back in order."""

    def test_append(self):
        with in_memory_db():
            with transaction():
                paper = create_paper(new_paper())
            for decision in (Decision.REVISION_REQUIRED, Decision.APPROVED):
                with transaction():
                    append_review_event(ReviewEvent(
                        paper_id=paper.paper_id, reviewer_id='f-1',
                        reviewer_role=Role.FACULTY, decision=decision
                    ))
            events = get_review_events(paper.paper_id)
            self.assertEqual([e.decision for e in events],
                             [Decision.REVISION_REQUIRED, Decision.APPROVED])
            self.assertTrue(all(e.event_id for e in events))


class TestNotifications(TestCase):
    """Inbox storage."""

    def test_inbox(self):
        with in_memory_db():
            with transaction():
                stored = store_notification(Notice(
                    recipient_id='s-1', paper_id='p-1', kind=Kind.APPROVAL,
                    title='Research Approved', message='Yay'
                ))
            self.assertIsNotNone(stored.notice_id)
            self.assertEqual(len(list_notifications('s-1')), 1)
            self.assertEqual(list_notifications('f-1'), [])

            with transaction():
                mark_notification_read(stored.notice_id, 's-1')
            self.assertEqual(list_notifications('s-1', unread_only=True), [])

            with self.assertRaises(NoSuchNotification):
                mark_notification_read(stored.notice_id, 'f-1')


class TestAccessCounts(TestCase):
    """Views and downloads are counted and logged per user."""

    def test_record(self):
        with in_memory_db() as session:
            with transaction():
                paper = create_paper(new_paper())
            self.assertEqual(paper.view_count, 0)
            with transaction():
                record_view(paper.paper_id, 'e-1')
            with transaction():
                after = record_view(paper.paper_id, 's-1')
            self.assertEqual(after.view_count, 2)
            with transaction():
                after = record_download(paper.paper_id, 's-1')
            self.assertEqual(after.download_count, 1)

            viewers = [row.user_id for row in
                       session.query(models.PaperView)
                       .order_by(models.PaperView.view_id)]
            self.assertEqual(viewers, ['e-1', 's-1'])
            self.assertEqual(session.query(models.PaperDownload).count(), 1)

    def test_missing(self):
        with in_memory_db() as session:
            with self.assertRaises(NoSuchPaper):
                with transaction():
                    record_download('nope', 's-1')
            self.assertEqual(session.query(models.PaperDownload).count(), 0)

    def test_categories(self):
        with in_memory_db() as session:
            session.add(models.Category(name='Zoology'))
            session.add(models.Category(name='Astronomy'))
            session.commit()
            self.assertEqual([c.name for c in list_categories()],
                             ['Astronomy', 'Zoology'])
