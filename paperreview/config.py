"""Review workflow configuration parameters."""

from os import environ
import warnings

LOGLEVEL = int(environ.get('LOGLEVEL', '20'))
"""
Logging verbosity.

See `https://docs.python.org/3/library/logging.html#levels`_.
"""

JWT_SECRET = environ.get('JWT_SECRET')
"""Secret key for verifying authentication JWTs."""

if not JWT_SECRET:
    warnings.warn('JWT_SECRET is not set; authn/z may not work correctly!')

CORE_VERSION = "0.1.0"

ENABLE_ASYNC = bool(int(environ.get('ENABLE_ASYNC', '0')))
"""
Enable/disable dispatching notifications to the worker.

If disabled, notifications are written in-thread after the workflow
transition has been committed.
"""

NOTIFICATIONS_ENABLED = bool(int(environ.get('NOTIFICATIONS_ENABLED', '1')))
"""Enable/disable user inbox notifications. Default is enabled (True)."""


# --- DATABASE CONFIGURATION ---

DATABASE_URI = environ.get('DATABASE_URI', 'sqlite://')
"""Full database URI for the paper record store."""

SQLALCHEMY_DATABASE_URI = DATABASE_URI
"""Full database URI for the paper record store."""

SQLALCHEMY_TRACK_MODIFICATIONS = False
"""Track modifications feature should always be disabled."""


# --- WORKER CONFIGURATION ---

BROKER_URL = environ.get('REVIEW_BROKER_URL', 'redis://localhost/0')
"""Celery broker used to dispatch notifications."""

RESULT_BACKEND = environ.get('REVIEW_RESULT_BACKEND', BROKER_URL)
"""Celery result backend."""

QUEUE_NAME = environ.get('REVIEW_QUEUE_NAME', 'review-worker')
"""Default queue for notification tasks."""

PREFETCH_MULTIPLIER = int(environ.get('REVIEW_WORKER_PREFETCH_MULTIPLIER',
                                      '1'))
TASK_ACKS_LATE = bool(int(environ.get('REVIEW_TASK_ACKS_LATE', '1')))
