"""
Entry-point for the notification worker application.

The worker is a Celery application that listens for tasks on a Redis queue.
Tasks are identified by name, and get registered by the
:func:`.tasks.is_async` decorator; importing :mod:`.services.notification`
registers the delivery task as a side-effect.

Run with ``celery -A paperreview.worker.worker_app worker``.
"""

import logging

from flask import Flask

from .tasks import get_or_create_worker_app
from . import init_app, config
from .services import notification    # noqa: F401

logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s',
                    level=config.LOGLEVEL)

app = Flask(__name__)
app.config.from_object(config)
app.app_context().push()
init_app(app)
worker_app = get_or_create_worker_app()
