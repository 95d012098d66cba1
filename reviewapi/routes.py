"""Provides the review workflow REST API."""

import logging
from typing import Callable, Any
from functools import wraps

from flask import Blueprint, Response, request, g, jsonify, make_response

from paperreview import Role
from paperreview.serializer import to_dict

from .auth import authenticated
from .controllers import research, notifications

logger = logging.getLogger(__name__)

blueprint = Blueprint('review', __name__)

REVIEWERS = (Role.FACULTY, Role.STAFF, Role.ADMIN)
SUBMITTERS = (Role.STUDENT, Role.STAFF, Role.ADMIN)


def json_response(func: Callable) -> Callable:
    """Generate a wrapper for routes that JSONifies the response body."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Response:
        r_body, r_status, r_headers = func(*args, **kwargs)
        response: Response = make_response(jsonify(to_dict(r_body)),
                                           r_status, r_headers)
        return response
    return wrapper


@blueprint.route('/research', methods=['POST'])
@json_response
@authenticated(*SUBMITTERS)
def submit_paper() -> tuple:
    """Submit a new paper, or resubmit a revised one."""
    return research.submit(request.get_json(silent=True), g.user)


@blueprint.route('/research/mine', methods=['GET'])
@json_response
@authenticated(*SUBMITTERS)
def get_my_papers() -> tuple:
    """Papers submitted by the current user."""
    return research.get_mine(g.user)


@blueprint.route('/research/faculty-assigned', methods=['GET'])
@json_response
@authenticated(Role.FACULTY)
def get_faculty_assigned() -> tuple:
    """Papers assigned to the current faculty member."""
    return research.get_assigned(g.user, request.args)


@blueprint.route('/research/assigned', methods=['GET'])
@json_response
@authenticated(*REVIEWERS)
def get_assigned() -> tuple:
    """Papers waiting on the current reviewer's stage."""
    return research.get_assigned(g.user, request.args)


@blueprint.route('/research/all', methods=['GET'])
@json_response
@authenticated(Role.STAFF, Role.ADMIN)
def get_all_papers() -> tuple:
    """Every paper in the system."""
    return research.get_all(request.args)


@blueprint.route('/research/published', methods=['GET'])
@json_response
def get_published() -> tuple:
    """Published papers; no authentication required."""
    return research.get_published(request.args)


@blueprint.route('/research/categories', methods=['GET'])
@json_response
def get_categories() -> tuple:
    """Research categories; no authentication required."""
    return research.get_categories()


@blueprint.route('/research/faculty', methods=['GET'])
@json_response
@authenticated()
def get_faculty() -> tuple:
    """Faculty members that can be chosen as first reviewer."""
    return research.get_faculty(request.args)


@blueprint.route('/research/<string:paper_id>', methods=['GET'])
@json_response
@authenticated()
def get_paper(paper_id: str) -> tuple:
    """Get the current state of a paper."""
    return research.get_paper(paper_id)


@blueprint.route('/research/<string:paper_id>/history', methods=['GET'])
@json_response
@authenticated()
def get_history(paper_id: str) -> tuple:
    """Get the review trail of a paper."""
    return research.get_history(paper_id)


@blueprint.route('/research/<string:paper_id>/view', methods=['POST'])
@json_response
@authenticated()
def track_view(paper_id: str) -> tuple:
    """Count a view of a paper."""
    return research.track_view(paper_id, g.user)


@blueprint.route('/research/<string:paper_id>/download', methods=['POST'])
@json_response
@authenticated()
def track_download(paper_id: str) -> tuple:
    """Count a download of a paper."""
    return research.track_download(paper_id, g.user)


@blueprint.route('/research/<string:paper_id>/approve', methods=['POST'])
@json_response
@authenticated(*REVIEWERS)
def approve(paper_id: str) -> tuple:
    """Approve a paper."""
    return research.approve(paper_id, request.get_json(silent=True), g.user)


@blueprint.route('/research/<string:paper_id>/reject', methods=['POST'])
@json_response
@authenticated(*REVIEWERS)
def reject(paper_id: str) -> tuple:
    """Reject a paper."""
    return research.reject(paper_id, request.get_json(silent=True), g.user)


@blueprint.route('/research/<string:paper_id>/request-revision',
                 methods=['POST'])
@json_response
@authenticated(*REVIEWERS)
def request_revision(paper_id: str) -> tuple:
    """Send a paper back to its author."""
    return research.request_revision(paper_id, request.get_json(silent=True),
                                     g.user)


@blueprint.route('/notifications', methods=['GET'])
@json_response
@authenticated()
def get_notifications() -> tuple:
    """The current user's notifications."""
    return notifications.get_inbox(g.user, request.args)


@blueprint.route('/notifications/<int:notice_id>/read', methods=['POST'])
@json_response
@authenticated()
def mark_notification_read(notice_id: int) -> tuple:
    """Mark a notification as read."""
    return notifications.mark_read(notice_id, g.user)
