"""Helpers shared by the request controllers."""

import logging
from functools import wraps
from http import HTTPStatus
from typing import Callable, Tuple, Any, Optional

from werkzeug.exceptions import BadRequest, Forbidden, NotFound, \
    InternalServerError

from paperreview import ValidationError, NotFoundError, PermissionDenied, \
    InvalidTransitionError, ConcurrentTransitionError, PersistenceFailure

logger = logging.getLogger(__name__)

Response = Tuple[Any, int, dict]


def handle_workflow_errors(func: Callable) -> Callable:
    """
    Translate workflow exceptions into HTTP responses.

    Invalid transitions are returned as a response body, since clients need
    the offending status and role; everything else is raised as a
    :mod:`werkzeug.exceptions` exception.
    """
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Response:
        try:
            return func(*args, **kwargs)
        except ConcurrentTransitionError as e:
            return _transition_error(e, HTTPStatus.CONFLICT)
        except InvalidTransitionError as e:
            return _transition_error(e, HTTPStatus.BAD_REQUEST)
        except ValidationError as e:
            raise BadRequest(str(e)) from e
        except NotFoundError as e:
            raise NotFound(str(e)) from e
        except PermissionDenied as e:
            raise Forbidden(str(e)) from e
        except PersistenceFailure as e:
            logger.error('Persistence failure: %s', e, exc_info=True)
            raise InternalServerError('Problem interacting with database') \
                from e
    return inner


def _transition_error(error: InvalidTransitionError,
                      code: HTTPStatus) -> Response:
    body = {'reason': error.message,
            'currentStatus': error.status,
            'yourRole': error.role}
    return body, code, {}


def get_json_body(data: Optional[Any]) -> dict:
    """Make sure that the request body is a JSON object."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')
    return data
