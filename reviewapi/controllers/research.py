"""Controllers for research papers and their review."""

import logging
from http import HTTPStatus
from typing import Optional, Any

from flask import url_for
from werkzeug.exceptions import BadRequest

import paperreview as review
from paperreview import User, Draft, PaperMetadata, Content, Status

from .util import Response, handle_workflow_errors, get_json_body

logger = logging.getLogger(__name__)

NEXT_STAGE = {
    Status.PENDING_EDITOR: 'Editor Review',
    Status.PENDING_ADMIN: 'Admin Review',
    Status.APPROVED: 'Published',
}


@handle_workflow_errors
def submit(data: Optional[dict], user: User) -> Response:
    """
    Submit a new paper, or resubmit one that the user already owns.

    Parameters
    ----------
    data : dict
        Request body. Includes ``id`` if this is a resubmission.
    user : :class:`.User`

    Returns
    -------
    dict
        Response data.
    int
        HTTP status code.
    dict
        Headers to add to the response.

    """
    data = get_json_body(data)
    paper_id = data.get('id') or None
    logger.debug('Received %s from %s',
                 'resubmission' if paper_id else 'submission',
                 user.native_id)
    paper = review.submit(_draft_from(data), user, paper_id=paper_id)
    headers = {'Location': url_for('review.get_paper',
                                   paper_id=paper.paper_id)}
    if paper_id:
        body = {'message': 'Research updated successfully', 'research': paper}
        return body, HTTPStatus.OK, headers
    body = {'message': 'Research submitted successfully', 'research': paper}
    return body, HTTPStatus.CREATED, headers


@handle_workflow_errors
def get_paper(paper_id: str) -> Response:
    """Retrieve the current state of a paper."""
    return review.get(paper_id), HTTPStatus.OK, {}


@handle_workflow_errors
def get_history(paper_id: str) -> Response:
    """Retrieve the review trail of a paper."""
    return review.get_history(paper_id), HTTPStatus.OK, {}


@handle_workflow_errors
def get_mine(user: User) -> Response:
    """Papers submitted by the requesting user."""
    return review.get_mine(user), HTTPStatus.OK, {}


@handle_workflow_errors
def get_assigned(user: User, params: dict) -> Response:
    """Papers waiting on the requesting reviewer."""
    status = params.get('status') or None
    return review.get_assigned(user, status), HTTPStatus.OK, {}


@handle_workflow_errors
def get_all(params: dict) -> Response:
    """Every paper, optionally filtered by status."""
    return review.get_all(params.get('status') or None), HTTPStatus.OK, {}


@handle_workflow_errors
def get_published(params: dict) -> Response:
    """Published papers, optionally filtered by category and search term."""
    papers = review.get_published(category=params.get('category'),
                                  search=params.get('search'))
    return papers, HTTPStatus.OK, {}


@handle_workflow_errors
def get_faculty(params: dict) -> Response:
    """Faculty members available as first reviewers."""
    faculty = review.get_faculty(params.get('department'))
    body = [{'id': f.native_id, 'name': f.name, 'email': f.email,
             'department': f.department} for f in faculty]
    return body, HTTPStatus.OK, {}


@handle_workflow_errors
def get_categories() -> Response:
    """Research categories that papers can be filed under."""
    return review.get_categories(), HTTPStatus.OK, {}


@handle_workflow_errors
def track_view(paper_id: str, user: User) -> Response:
    """Count a view of a paper by the requesting user."""
    paper = review.track_view(paper_id, user)
    body = {'message': 'View tracked successfully',
            'viewCount': paper.view_count}
    return body, HTTPStatus.OK, {}


@handle_workflow_errors
def track_download(paper_id: str, user: User) -> Response:
    """Count a download of a paper by the requesting user."""
    paper = review.track_download(paper_id, user)
    body = {'message': 'Download tracked successfully',
            'downloadCount': paper.download_count}
    return body, HTTPStatus.OK, {}


@handle_workflow_errors
def approve(paper_id: str, data: Optional[dict], user: User) -> Response:
    """Approve a paper at the user's review stage."""
    data = get_json_body(data)
    paper = review.approve(paper_id, user, _text(data, 'comments'))
    body = {'message': 'Research approved successfully',
            'status': paper.status,
            'nextStage': NEXT_STAGE.get(paper.status, 'Unknown'),
            'research': paper}
    return body, HTTPStatus.OK, {}


@handle_workflow_errors
def reject(paper_id: str, data: Optional[dict], user: User) -> Response:
    """Reject a paper."""
    data = get_json_body(data)
    paper = review.reject(paper_id, user, _text(data, 'reason'))
    body = {'message': 'Research rejected successfully',
            'status': paper.status, 'research': paper}
    return body, HTTPStatus.OK, {}


@handle_workflow_errors
def request_revision(paper_id: str, data: Optional[dict],
                     user: User) -> Response:
    """Send a paper back to its author for revision."""
    data = get_json_body(data)
    paper = review.request_revision(paper_id, user, _text(data, 'notes'))
    body = {'message': 'Revision requested successfully',
            'newStatus': paper.status, 'research': paper}
    return body, HTTPStatus.OK, {}


def _text(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise BadRequest(f'{key} must be a string')
    return value


def _draft_from(data: dict) -> Draft:
    """Build a :class:`.Draft` from a request body."""
    try:
        metadata = PaperMetadata(
            title=_text(data, 'title'),
            abstract=_text(data, 'abstract'),
            category=_text(data, 'category'),
            keywords=data.get('keywords') or [],
            co_authors=_text(data, 'coAuthors'),
            department=_text(data, 'department')
        )
        content: Optional[Content] = None
        file_data: Any = data.get('file')
        if file_data:
            if not isinstance(file_data, dict) or not file_data.get('url'):
                raise BadRequest('file must be an object with a url')
            content = Content(url=file_data['url'],
                              name=file_data.get('name') or '',
                              size=file_data.get('size'))
    except (TypeError, AttributeError) as e:
        raise BadRequest('Malformed submission data') from e
    return Draft(metadata=metadata, content=content,
                 assigned_faculty_id=data.get('facultyId') or None)
