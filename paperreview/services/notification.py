"""
Delivery of inbox notifications.

Notifications are fire-and-forget. When ``ENABLE_ASYNC`` is on, each notice
is handed to the worker and the caller moves on; otherwise the notice is
written in-thread. Either way, the caller must not let a failure here undo
the workflow transition that produced the notice.
"""

import logging

from ..domain import Notice
from ..tasks import is_async
from ..util import get_application_config
from . import database

logger = logging.getLogger(__name__)


def notifications_enabled() -> bool:
    """Determine whether or not notifications are enabled."""
    return bool(int(get_application_config()
                    .get('NOTIFICATIONS_ENABLED', '1')))


@is_async
def deliver(notice: Notice) -> None:
    """Write a notice to the recipient's inbox."""
    with database.transaction():
        database.store_notification(notice)
    logger.debug('Delivered %s notice to %s', notice.kind.value,
                 notice.recipient_id)


def notify(notice: Notice) -> None:
    """
    Dispatch a notice to its recipient.

    Raises whatever the delivery raises; see :func:`.core.emit_effects` for
    where that gets absorbed.
    """
    if not notifications_enabled():
        logger.debug('Notifications disabled; dropping notice for %s',
                     notice.recipient_id)
        return
    deliver(notice)
