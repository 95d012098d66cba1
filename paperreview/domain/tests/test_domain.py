"""Tests for the domain classes."""

from unittest import TestCase
from datetime import datetime

from ..agent import Role, User, agent_factory
from ..paper import Paper, PaperMetadata, Draft, Content, Status, as_status


class TestRole(TestCase):
    def test_ranking(self):
        """Admins outrank staff, who outrank faculty, who outrank students."""
        self.assertTrue(Role.ADMIN.outranks(Role.STAFF))
        self.assertTrue(Role.STAFF.outranks(Role.FACULTY))
        self.assertFalse(Role.FACULTY.outranks(Role.FACULTY))
        self.assertFalse(Role.FACULTY.outranks(Role.STAFF))
        self.assertFalse(Role.STUDENT.outranks(Role.FACULTY))


class TestUser(TestCase):
    def test_coercion(self):
        user = User(1234, 'faculty', 'prof@uni.edu')
        self.assertEqual(user.native_id, '1234')
        self.assertIs(user.role, Role.FACULTY)
        self.assertEqual(user.display_name, 'prof@uni.edu')

    def test_factory(self):
        user = agent_factory(native_id='a-1', role='admin', extra='ignored')
        self.assertEqual(user, User('a-1', Role.ADMIN))
        with self.assertRaises(ValueError):
            agent_factory(role='admin')


class TestPaperMetadata(TestCase):
    def test_cleanup(self):
        """Markup is stripped from titles and keywords are split."""
        metadata = PaperMetadata(
            title='  A <b>bold</b>\n title ',
            abstract='First line\nsecond line.\n\n\n\nNext   paragraph. ',
            category=' physics ',
            keywords='a, b,,  c'
        )
        self.assertEqual(metadata.title, 'A bold title')
        self.assertEqual(metadata.abstract,
                         'First line second line.\n\nNext paragraph.')
        self.assertEqual(metadata.category, 'physics')
        self.assertEqual(metadata.keywords, ['a', 'b', 'c'])
        self.assertEqual(metadata.missing, [])

    def test_missing(self):
        self.assertEqual(PaperMetadata(title='T').missing,
                         ['abstract', 'category'])


class TestPaper(TestCase):
    def test_coercion(self):
        """Raw values from storage or the wire are coerced."""
        paper = Paper(author_id='s-1', status='revision_required',
                      metadata={'title': 'T'},
                      content={'url': 'https://files/x.pdf'},
                      last_reviewer_role='staff',
                      previous_status='pending_editor',
                      created='2024-01-01T00:00:00')
        self.assertIs(paper.status, Status.REVISION_REQUIRED)
        self.assertIs(paper.last_reviewer_role, Role.STAFF)
        self.assertIs(paper.previous_status, Status.PENDING_EDITOR)
        self.assertIsInstance(paper.content, Content)
        self.assertIsInstance(paper.created, datetime)
        self.assertIsNotNone(paper.created.tzinfo)
        self.assertTrue(paper.in_revision)
        self.assertFalse(paper.has_faculty)
        self.assertEqual(paper.view_count, 0)
        self.assertEqual(paper.download_count, 0)

    def test_draft(self):
        draft = Draft(metadata={'title': 'T'}, assigned_faculty_id='')
        self.assertIsInstance(draft.metadata, PaperMetadata)
        self.assertIsNone(draft.assigned_faculty_id)

    def test_as_status(self):
        self.assertIs(as_status('pending'), Status.PENDING)
        self.assertIsNone(as_status(None))
        with self.assertRaises(ValueError):
            as_status('lost')
