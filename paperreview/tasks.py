"""Provides support for asynchronous tasks."""

import logging
from typing import Callable, Any, Optional
from functools import wraps

from celery import Celery
from kombu.serialization import register

from .util import get_application_config, get_application_global
from .serializer import dumps, loads
from . import config

logger = logging.getLogger(__name__)

register('ejson', dumps, loads,
         content_type='application/x-ejson',
         content_encoding='utf-8')


def create_worker_app() -> Celery:
    """Initialize the worker application."""
    result_backend = config.RESULT_BACKEND
    broker = config.BROKER_URL
    celery_app = Celery('paperreview',
                        backend=result_backend,
                        broker=broker)
    celery_app.conf.update(
        accept_content=['ejson'],
        task_serializer='ejson',
        result_serializer='ejson',
        task_default_queue=config.QUEUE_NAME,
        worker_prefetch_multiplier=config.PREFETCH_MULTIPLIER,
        task_acks_late=config.TASK_ACKS_LATE,
        task_ignore_result=True
    )
    return celery_app


def get_or_create_worker_app() -> Celery:
    """
    Get the current worker app, or create one.

    Uses the Flask application global to keep track of the worker app.
    """
    g = get_application_global()
    if not g:
        return create_worker_app()
    if 'worker' not in g:
        g.worker = create_worker_app()
    return g.worker


def name_for_task(func: Callable) -> str:
    """Produce a name for a function suitable for use as a task name."""
    parent = func.__module__.split('.')[-1]
    return f'{parent}.{func.__name__}'


def is_async(func: Callable) -> Callable:
    """
    Turn a function into an asynchronous task.

    Registers the function with the worker application, and decorates the
    function with logic to dispatch the function to the worker when called.
    When the decorated function is called, a task is added to the worker queue
    and ``None`` is returned right away; nobody waits for the outcome. If
    ``ENABLE_ASYNC=0`` on the app config, calls to the decorated function will
    execute in-thread and return normally.
    """
    worker_app = get_or_create_worker_app()
    name = name_for_task(func)
    worker_app.task(name=name)(func)

    @wraps(func)
    def execute_task(*args: Any) -> Optional[Any]:
        """Execute the task asynchronously, if enabled."""
        if bool(int(get_application_config().get('ENABLE_ASYNC', '0'))):
            logger.debug('Send task %s', name)
            get_or_create_worker_app().send_task(name, args)
            return None
        return func(*args)
    return execute_task
