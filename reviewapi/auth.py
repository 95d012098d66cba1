"""
Request authentication with bearer JWTs.

Tokens are issued elsewhere; here we only check the signature and read the
``id``, ``role`` and ``email`` claims, which are trusted as given.
"""

import logging
from functools import wraps
from http import HTTPStatus
from typing import Callable, Optional, Any

import jwt
from flask import request, current_app, g

from paperreview.domain import User, Role

logger = logging.getLogger(__name__)

DecodeError = jwt.exceptions.PyJWTError

MISSING_TOKEN = {'reason': 'No token provided'}
INVALID_TOKEN = {'reason': 'Invalid or expired token'}
INVALID_ROLE = {'reason': 'Access denied'}


def get_auth_token() -> Optional[str]:
    """Retrieve the bearer token from the Authorization header."""
    header = request.headers.get('Authorization')
    if not header:
        return None
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1]
    return None


def decode_authorization_token(token: str) -> dict:
    """Decode and verify a JWT."""
    secret = current_app.config.get('JWT_SECRET')
    return jwt.decode(token, secret, algorithms=['HS256'])


def user_from_claims(claims: dict) -> User:
    """Build the acting :class:`.User` from token claims."""
    return User(native_id=claims['id'],
                role=Role(claims['role']),
                email=claims.get('email') or '',
                name=claims.get('name') or '')


def authenticated(*roles: Role) -> Callable:
    """
    Generate a decorator that requires a valid token.

    If ``roles`` are given, the user must hold one of them. The user is
    attached to :data:`flask.g` as ``g.user``.
    """
    def protector(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """Check the authorization token before executing the method."""
            token = get_auth_token()
            if token is None:
                return MISSING_TOKEN, HTTPStatus.UNAUTHORIZED, {}
            try:
                g.user = user_from_claims(decode_authorization_token(token))
            except (DecodeError, KeyError, TypeError, ValueError) as e:
                logger.debug('Rejected token: %s', e)
                return INVALID_TOKEN, HTTPStatus.UNAUTHORIZED, {}
            if roles and g.user.role not in roles:
                return INVALID_ROLE, HTTPStatus.FORBIDDEN, {}
            return func(*args, **kwargs)
        return wrapper
    return protector
