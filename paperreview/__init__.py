"""
Review workflow for research papers.

Members of an academic organization submit research papers, which then move
through a sequence of human reviewers (faculty, then an editor, then an
administrator) before being published. This package implements that
workflow: the rules for who may do what to a paper in which state, the
revision protocol that sends a paper back to its author and then returns it
to the right reviewer, and the notifications that go out along the way.

Overview
========

Domain classes are defined in :mod:`.domain`. :mod:`.machine` holds the pure
decision logic: given a :class:`.Paper`, the acting :class:`.User` and an
action, it produces a :class:`.machine.Transition` or raises
:class:`.InvalidTransitionError`. Nothing there touches the database.

:mod:`.core` applies those decisions. It is the API that web controllers
should use.

.. code-block:: python

   from paperreview import submit, approve, User, Role, Draft

   >>> author = User('u-1', Role.STUDENT, 'student@uni.edu')
   >>> draft = Draft(metadata={'title': 'On foo', 'abstract': 'Foo.',
   ...                         'category': 'physics'},
   ...               content={'url': 'https://files/foo.pdf'},
   ...               assigned_faculty_id='f-1')
   >>> paper = submit(draft, author)
   >>> paper.status
   <Status.PENDING_FACULTY: 'pending_faculty'>
   >>> faculty = User('f-1', Role.FACULTY, 'prof@uni.edu')
   >>> approve(paper.paper_id, faculty).status
   <Status.PENDING_EDITOR: 'pending_editor'>


Watch out for :class:`.ValidationError` and :class:`.InvalidTransitionError`
to catch bad requests, and :class:`.PersistenceFailure` for problems writing
to the database. Once a transition has been written, review events and
notifications are best effort; failures there are logged, not raised.

:mod:`.services.database` provides the paper record store, and
:mod:`.services.notification` puts notices in user inboxes, optionally via
the worker in :mod:`.worker`.
"""

from flask import Flask

from .domain import Role, User, Status, Paper, PaperMetadata, Draft, \
    Content, ReviewEvent, Decision, Notice, Kind, Category
from .exceptions import ValidationError, NotFoundError, PermissionDenied, \
    InvalidTransitionError, ConcurrentTransitionError, PersistenceFailure
from .core import submit, approve, reject, request_revision, get_assigned, \
    get, get_mine, get_all, get_published, get_history, get_inbox, \
    mark_read, get_faculty, get_categories, track_view, track_download
from .services import database
from . import config


def init_app(app: Flask) -> None:
    """Set defaults and attach the paper record store to ``app``."""
    app.config.setdefault('ENABLE_ASYNC', config.ENABLE_ASYNC)
    app.config.setdefault('NOTIFICATIONS_ENABLED',
                          config.NOTIFICATIONS_ENABLED)
    database.init_app(app)
