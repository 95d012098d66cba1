"""Tests for :mod:`paperreview.tasks`."""

from unittest import TestCase, mock

from flask import Flask

from .. import tasks


def double(x):
    return x * 2


class TestIsAsync(TestCase):
    """Tests for :func:`.tasks.is_async`."""

    def setUp(self):
        self.app = Flask('foo')
        self.task = tasks.is_async(double)

    def test_sync(self):
        """With async disabled, the function runs in-thread."""
        self.app.config['ENABLE_ASYNC'] = False
        with self.app.app_context():
            self.assertEqual(self.task(2), 4)

    @mock.patch(f'{tasks.__name__}.get_or_create_worker_app')
    def test_async(self, mock_get_app):
        """With async enabled, a task is sent and nothing is returned."""
        self.app.config['ENABLE_ASYNC'] = True
        with self.app.app_context():
            self.assertIsNone(self.task(2))
        mock_get_app.return_value.send_task.assert_called_once_with(
            'test_tasks.double', (2,)
        )

    def test_worker_config(self):
        """The worker only speaks our serialization format."""
        app = tasks.create_worker_app()
        self.assertEqual(app.conf.accept_content, ['ejson'])
        self.assertEqual(app.conf.task_serializer, 'ejson')
