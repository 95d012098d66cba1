"""Controllers for user inboxes."""

from http import HTTPStatus

from werkzeug.exceptions import BadRequest

import paperreview as review
from paperreview import User

from .util import Response, handle_workflow_errors


@handle_workflow_errors
def get_inbox(user: User, params: dict) -> Response:
    """Get the notifications of the requesting user."""
    unread_only = params.get('unread', '').lower() in ('1', 'true', 'yes')
    return review.get_inbox(user, unread_only=unread_only), HTTPStatus.OK, {}


@handle_workflow_errors
def mark_read(notice_id: int, user: User) -> Response:
    """Mark one of the requesting user's notifications as read."""
    if notice_id < 1:
        raise BadRequest('Invalid notification id')
    return review.mark_read(notice_id, user), HTTPStatus.OK, {}
